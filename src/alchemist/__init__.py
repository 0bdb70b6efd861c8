"""Data Alchemist: intake validation engine and allocation rule model."""

from alchemist.dataloader.types import EntityType, ValidationIssue, ValidationResult
from alchemist.errors import AlchemistError, ConfigError, DataError, ExportError, RuleError

__version__ = "0.1.0"

__all__ = [
    "AlchemistError",
    "ConfigError",
    "DataError",
    "EntityType",
    "ExportError",
    "RuleError",
    "ValidationIssue",
    "ValidationResult",
    "__version__",
]

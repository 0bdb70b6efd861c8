from alchemist.validator.validator import (
    CrossValidation,
    DatasetResults,
    DataValidator,
    validate_dataset,
)

__all__ = ["CrossValidation", "DataValidator", "DatasetResults", "validate_dataset"]

# src/alchemist/dataloader/config_loader.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from alchemist.errors import ConfigError
from alchemist.schemas.models import Config

logger = logging.getLogger(__name__)

_SOURCE = "ConfigLoader"


class ConfigLoader:
    """
    @brief
    Reads config.yaml and validates it into a `Config`.

    @details
    Every failure mode (bad path, unreadable file, YAML syntax, empty or
    non-mapping document, schema mismatch) is raised as `ConfigError` with
    a suggested action. Sections missing from the file take their defaults.
    """

    def load(self, path: Path | str | None = None) -> Config:
        """
        @brief
        Load configuration from YAML, or return defaults when no path is given.

        @params
            path : Path | str | None
                Location of config.yaml (.yaml or .yml).

        @returns
            Validated Config instance.

        @raises
            ConfigError
                Raised if the file is missing, malformed, or fails schema validation.
        """
        if path is None:
            logger.info("No config file given, using built-in defaults")
            return Config()

        # (1) Read and parse YAML document
        data = self._read_yaml(self._as_path(path))

        # (2) Validate mapping against the Config schema
        cfg = self._validate(data)
        logger.info("Configuration loaded from %s", path)
        return cfg

    def _as_path(self, path: Path | str) -> Path:
        if isinstance(path, Path):
            return path
        if isinstance(path, str) and path.strip():
            return Path(path)
        raise ConfigError(
            message=f"Invalid config path: {path!r}",
            source=f"{_SOURCE}._as_path",
            suggested_action="Pass a pathlib.Path or a non-empty string pointing to config.yaml.",
        )

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        """
        @brief
        Read a YAML file into a plain mapping.

        @raises
            ConfigError
                Raised on missing file, wrong extension, I/O or syntax error,
                empty document, or non-mapping root.
        """
        # (1) Existence and extension
        if not path.exists():
            raise ConfigError(
                message=f"Configuration file not found: {path}",
                source=f"{_SOURCE}._read_yaml",
                suggested_action="Check the --config path or create config/config.yaml.",
            )
        if path.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError(
                message=f"Invalid configuration file extension: {path.suffix}",
                source=f"{_SOURCE}._read_yaml",
                suggested_action="Use a .yaml or .yml configuration file.",
            )

        # (2) Parse
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"YAML parsing failed: {e}",
                source=f"{_SOURCE}._read_yaml",
                suggested_action="Fix YAML syntax or indentation in the config file.",
            ) from e
        except OSError as e:
            raise ConfigError(
                message=f"Unable to read configuration file: {e}",
                source=f"{_SOURCE}._read_yaml",
                suggested_action="Check file permissions and path accessibility.",
            ) from e

        # (3) Document shape
        if data is None:
            raise ConfigError(
                message="Configuration file is empty.",
                source=f"{_SOURCE}._read_yaml",
                suggested_action="Add at least one section (limits, headers, cross_checks).",
            )
        if not isinstance(data, Mapping):
            raise ConfigError(
                message="Configuration root must be a mapping (key: value pairs).",
                source=f"{_SOURCE}._read_yaml",
                suggested_action="Use top-level section names as YAML keys.",
            )

        return dict(data)

    def _validate(self, data: dict[str, Any]) -> Config:
        try:
            return Config.model_validate(data)
        except ValidationError as e:
            raise ConfigError(
                message=f"Invalid configuration structure: {e}",
                source=f"{_SOURCE}._validate",
                suggested_action=(
                    "Check section names, value types and bounds in config.yaml. "
                    "Unknown keys are rejected."
                ),
            ) from e


__all__ = ["ConfigLoader"]

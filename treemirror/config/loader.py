# TreeMirror Configuration Loader
# Load, validate, and create YAML configuration files

import copy
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from treemirror.config.defaults import DEFAULT_GENERAL, generate_default_config
from treemirror.config.schema import GeneralConfig, MirrorConfig

# Lookup of normalised key -> alias used in the schema
_GENERAL_KEYS = {
    field.alias.replace("_", "").lower(): field.alias
    for field in GeneralConfig.model_fields.values()
    if field.alias
}

# Field name -> YAML key, for error locations reported by field name
_FIELD_ALIASES = {name: field.alias for name, field in GeneralConfig.model_fields.items() if field.alias}


class ConfigError(ValueError):
    """Exception raised for unreadable or invalid configuration files."""

    def __init__(self, message: str, path: Optional[Path] = None, errors: Optional[list[str]] = None):
        self.message = message
        self.path = path
        self.errors = errors or []
        super().__init__(message)


def load_config(config_path: Path | str) -> MirrorConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file.

    Returns:
        MirrorConfig: Validated, immutable configuration object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigError: If config file is not valid YAML or fails validation.
    """
    config_path = Path(config_path).expanduser()

    if not config_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    data = _read_yaml(config_path)
    merged = _merge_with_defaults(_normalize(data))
    merged["config_path"] = str(config_path)

    try:
        return MirrorConfig.model_validate(merged)
    except ValidationError as e:
        errors = _format_errors(e)
        raise ConfigError(
            f"Invalid configuration {config_path}:\n  " + "\n  ".join(errors),
            path=config_path,
            errors=errors,
        ) from e


def load_configs(config_paths: Iterable[Path | str]) -> list[MirrorConfig]:
    """
    Load several configuration files.

    Raises:
        ConfigError: If no path was given, or any file is invalid.
        FileNotFoundError: If any file doesn't exist.
    """
    configs = [load_config(path) for path in config_paths]
    if not configs:
        raise ConfigError("No configuration file given")
    return configs


def validate_config_file(config_path: Path | str) -> tuple[bool, list[str]]:
    """
    Validate a configuration file without loading it into the system.

    Args:
        config_path: Path to config file to validate.

    Returns:
        Tuple of (is_valid, error_messages).
    """
    try:
        load_config(config_path)
    except FileNotFoundError as e:
        return False, [str(e)]
    except ConfigError as e:
        return False, e.errors or [e.message]
    return True, []


def write_default_config(
    config_path: Path | str,
    *,
    source: Optional[str] = None,
    destination: Optional[str] = None,
    force: bool = False,
) -> Path:
    """
    Write a commented default configuration file.

    Raises:
        FileExistsError: If the file exists and force is False.
    """
    config_path = Path(config_path).expanduser()

    if config_path.exists() and not force:
        raise FileExistsError(f"Configuration file already exists: {config_path}")

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(source, destination), encoding="utf-8")
    return config_path


def _read_yaml(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}", path=config_path, errors=[str(e)]) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration root must be a mapping: {config_path}",
            path=config_path,
            errors=["Configuration root must be a mapping"],
        )
    return data


def _normalize(data: dict[str, Any]) -> dict[str, Any]:
    """Match section and key names case-insensitively, with or without underscores."""
    general: Any = {}
    for key, value in data.items():
        if str(key).lower() == "general":
            general = value

    if not isinstance(general, dict):
        return {"general": general}

    normalized: dict[str, Any] = {}
    for key, value in general.items():
        lookup = str(key).replace("_", "").lower()
        normalized[_GENERAL_KEYS.get(lookup, key)] = value
    return {"general": normalized}


def _merge_with_defaults(data: dict[str, Any]) -> dict[str, Any]:
    """Merge loaded data with default values for missing keys."""
    general = data.get("general")
    if not isinstance(general, dict):
        return data
    return {"general": {**copy.deepcopy(DEFAULT_GENERAL), **general}}


def _format_errors(error: ValidationError) -> list[str]:
    messages = []
    for item in error.errors():
        loc = " -> ".join(_FIELD_ALIASES.get(str(part), str(part)) for part in item["loc"])
        msg = item["msg"].removeprefix("Value error, ")
        messages.append(f"{loc}: {msg}")
    return messages

# TreeMirror Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from treemirror.config.defaults import (
    DEFAULT_CONFIG,
    DEFAULT_LOOP_INTERVAL_MS,
    DEFAULT_MAX_CONCURRENT_WORKERS,
    generate_default_config,
)
from treemirror.config.loader import (
    ConfigError,
    load_config,
    load_configs,
    validate_config_file,
    write_default_config,
)
from treemirror.config.schema import GeneralConfig, MirrorConfig

__all__ = [
    # Schema
    "MirrorConfig",
    "GeneralConfig",
    # Loader
    "ConfigError",
    "load_config",
    "load_configs",
    "validate_config_file",
    "write_default_config",
    # Defaults
    "DEFAULT_CONFIG",
    "DEFAULT_LOOP_INTERVAL_MS",
    "DEFAULT_MAX_CONCURRENT_WORKERS",
    "generate_default_config",
]

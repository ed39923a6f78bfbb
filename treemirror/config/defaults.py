# TreeMirror Default Configuration
# Default values and a commented YAML template

import copy
from typing import Any

import yaml

DEFAULT_LOOP_INTERVAL_MS = 60000
DEFAULT_MAX_CONCURRENT_WORKERS = 100

# Values filled in when a config file leaves them out
DEFAULT_GENERAL: dict[str, Any] = {
    "loopIntervalMS": DEFAULT_LOOP_INTERVAL_MS,
    "maxConcurrentWorkers": DEFAULT_MAX_CONCURRENT_WORKERS,
}

DEFAULT_CONFIG: dict[str, Any] = {
    "general": {
        "sourceDirectory": "~/mirror/source",
        "destinationDirectory": "~/mirror/destination",
        **DEFAULT_GENERAL,
    },
}


def generate_default_config(source: str | None = None, destination: str | None = None) -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# TreeMirror Configuration
#
# One file configures one mirror loop. Pass several files to
# `treemirror run` to mirror several trees in parallel.
#
# general:
#   sourceDirectory:      tree to read from (required)
#   destinationDirectory: tree to mirror into (required, fully owned)
#   loopIntervalMS:       pause between scans in milliseconds
#   maxConcurrentWorkers: parallel file operations (0 = one thread per operation, unlimited)

"""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if source:
        config["general"]["sourceDirectory"] = source
    if destination:
        config["general"]["destinationDirectory"] = destination
    return header + yaml.dump(config, default_flow_style=False, sort_keys=False, allow_unicode=True)

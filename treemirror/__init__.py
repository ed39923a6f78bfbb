"""TreeMirror - periodic one-way directory mirroring.

Rescans a source tree at a fixed interval and reconciles a destination
tree with it: stale or missing files are copied, orphans are removed.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "MirrorConfig",
    "load_config",
    "load_configs",
    "MirrorLoop",
    "MirrorService",
    "CycleResult",
    "MirrorError",
    "scan_tree",
    "plan_operations",
    "execute_operations",
]


def __getattr__(name: str):
    """Lazy import to avoid loading dependencies during setup."""
    if name in ("MirrorConfig", "load_config", "load_configs"):
        from treemirror import config

        return getattr(config, name)
    if name in ("MirrorLoop", "MirrorService", "CycleResult", "MirrorError"):
        from treemirror import mirror

        return getattr(mirror, name)
    if name == "scan_tree":
        from treemirror.mirror.scanner import scan_tree

        return scan_tree
    if name == "plan_operations":
        from treemirror.mirror.planner import plan_operations

        return plan_operations
    if name == "execute_operations":
        from treemirror.mirror.pool import execute_operations

        return execute_operations
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

# TreeMirror Output Module
# Rich console output

from treemirror.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]

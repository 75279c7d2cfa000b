"""
intakeflow core package: flow documents, validation, layout and traversal.
"""

from .version import __version__  # noqa: F401

__all__ = [
    "config",
    "errors",
    "flows",
    "graph",
    "observability",
    "parser",
    "server",
    "studio",
    "validation",
    "__version__",
]

"""
Editor-facing helpers: layout, canvas manifest and status log buffer.
"""

from .canvas import build_canvas_manifest, source_handle
from .layout import LayoutConfig, Position, assign_layers, find_back_edges, layout, layout_dict
from .logs import LogBuffer, log_event

__all__ = [
    "LayoutConfig",
    "LogBuffer",
    "Position",
    "assign_layers",
    "build_canvas_manifest",
    "find_back_edges",
    "layout",
    "layout_dict",
    "log_event",
    "source_handle",
]

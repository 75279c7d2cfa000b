"""
Flow document parser.

Public API is `parse` (never raises, returns a ParseResult), the
raise-on-failure `parse_document`, and the serializer `render_document`.
"""

from __future__ import annotations

from .document import (
    DEFAULT_FLOW_NAME,
    connection_to_dict,
    flow_from_dict,
    flow_to_dict,
    node_to_dict,
    parse,
    parse_document,
    render_document,
    revise,
)
from .errors import ParseError, ParseErrorKind
from .legacy import parse_legacy
from .result import ParseResult

__all__ = [
    "DEFAULT_FLOW_NAME",
    "ParseError",
    "ParseErrorKind",
    "ParseResult",
    "connection_to_dict",
    "flow_from_dict",
    "flow_to_dict",
    "node_to_dict",
    "parse",
    "parse_document",
    "parse_legacy",
    "render_document",
    "revise",
]

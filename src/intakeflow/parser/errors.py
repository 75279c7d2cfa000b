"""Parser error types (delegates to core error definitions)."""

from __future__ import annotations

from intakeflow.errors import ParseError, ParseErrorKind

__all__ = ["ParseError", "ParseErrorKind"]

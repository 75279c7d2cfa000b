"""Discriminated parse result."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..graph import FlowDefinition
from .errors import ParseError, ParseErrorKind


@dataclass(frozen=True)
class ParseResult:
    flow: Optional[FlowDefinition] = None
    error: Optional[ParseError] = None
    # "json" when a structured block was canonical, "legacy" for the heading parser
    format: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.flow is not None

    @classmethod
    def ok(cls, flow: FlowDefinition, format: str = "json") -> "ParseResult":
        return cls(flow=flow, error=None, format=format)

    @classmethod
    def failure(cls, error: ParseError) -> "ParseResult":
        return cls(flow=None, error=error, format=None)

    @classmethod
    def schema_error(cls, message: str, line: Optional[int] = None) -> "ParseResult":
        return cls.failure(ParseError(message=message, line=line, kind=ParseErrorKind.SCHEMA))

    def unwrap(self) -> FlowDefinition:
        """Return the flow or raise the carried ParseError."""

        if self.error is not None:
            raise self.error
        assert self.flow is not None
        return self.flow

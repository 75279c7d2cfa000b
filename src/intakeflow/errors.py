"""
Custom error types for the intakeflow engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass
class IntakeFlowError(Exception):
    """Base error with optional location metadata."""

    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        location = ""
        if self.line is not None:
            location = f" (line {self.line}"
            if self.column is not None:
                location += f", column {self.column}"
            location += ")"
        return f"{self.message}{location}"


class ParseErrorKind(str, Enum):
    SYNTAX = "syntax"
    SCHEMA = "schema"


@dataclass
class ParseError(IntakeFlowError):
    """A flow document could not be turned into a FlowDefinition."""

    kind: ParseErrorKind = ParseErrorKind.SYNTAX

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "line": self.line,
            "column": self.column,
        }


class GraphErrorKind(str, Enum):
    BROKEN_LINK = "broken_link"
    UNRESOLVED_BRANCH = "unresolved_branch"
    TERMINAL_NODE = "terminal_node"
    NOT_TERMINAL = "not_terminal"
    NO_HISTORY = "no_history"
    INVALID_ANSWER = "invalid_answer"
    INVALID_FLOW = "invalid_flow"
    BUSY = "busy"
    SEALED = "sealed"


@dataclass
class GraphError(IntakeFlowError):
    """A traversal transition could not be applied; the session state is untouched."""

    kind: GraphErrorKind = GraphErrorKind.UNRESOLVED_BRANCH
    node_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "node_id": self.node_id}


@dataclass
class FlowValidationError(IntakeFlowError):
    """Raised when a session is started or resumed over a flow with validation errors."""

    issues: List[Any] = field(default_factory=list)


class SessionBusyError(IntakeFlowError):
    """Raised when a persistence call is attempted while another is in flight."""


class SealedStateError(IntakeFlowError):
    """Raised when a finalized traversal state is mutated or finalized again."""


class DraftNotFoundError(IntakeFlowError):
    """Raised by persistence adapters for unknown draft handles."""

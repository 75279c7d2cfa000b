"""
Mutable traversal state owned by a single FlowSession.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import SealedStateError


class SessionStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Response:
    question: str
    answer: str

    def to_dict(self) -> Dict[str, str]:
        return {"question": self.question, "answer": self.answer}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Response":
        answer = data.get("answer")
        return cls(question=str(data.get("question") or ""), answer="" if answer is None else str(answer))


@dataclass
class TraversalState:
    current_node_id: Optional[str]
    history: List[str] = field(default_factory=list)
    answer_cache: Dict[str, Any] = field(default_factory=dict)
    responses: List[Response] = field(default_factory=list)
    sealed: bool = False

    @classmethod
    def initial(cls, start_id: Optional[str]) -> "TraversalState":
        return cls(current_node_id=start_id)

    def snapshot(self) -> "TraversalState":
        return TraversalState(
            current_node_id=self.current_node_id,
            history=list(self.history),
            answer_cache=copy.deepcopy(self.answer_cache),
            responses=list(self.responses),
            sealed=self.sealed,
        )

    def ensure_open(self) -> None:
        if self.sealed:
            raise SealedStateError("Traversal state is sealed; the submission was already finalized")

    def commit(self, other: "TraversalState") -> None:
        """Replace this state's contents with ``other`` in one step."""

        self.ensure_open()
        self.current_node_id = other.current_node_id
        self.history = list(other.history)
        self.answer_cache = dict(other.answer_cache)
        self.responses = list(other.responses)

    def seal(self) -> None:
        self.ensure_open()
        self.responses = tuple(self.responses)  # type: ignore[assignment]
        self.sealed = True

    @property
    def status(self) -> SessionStatus:
        if self.sealed:
            return SessionStatus.COMPLETED
        if not self.history and not self.responses:
            return SessionStatus.NOT_STARTED
        return SessionStatus.IN_PROGRESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_node_id": self.current_node_id,
            "history": list(self.history),
            "answers": dict(self.answer_cache),
            "responses": [r.to_dict() for r in self.responses],
            "sealed": self.sealed,
            "status": self.status.value,
        }

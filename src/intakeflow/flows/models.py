"""
Result and draft records exchanged by the execution engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import GraphError
from .state import Response

DraftHandle = str
SubmissionId = str


@dataclass(frozen=True)
class TransitionResult:
    success: bool
    node_id: Optional[str] = None
    error: Optional[GraphError] = None
    restored_answer: Any = None

    @classmethod
    def ok(cls, node_id: Optional[str], restored_answer: Any = None) -> "TransitionResult":
        return cls(success=True, node_id=node_id, restored_answer=restored_answer)

    @classmethod
    def failure(cls, error: GraphError) -> "TransitionResult":
        return cls(success=False, node_id=error.node_id, error=error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "node_id": self.node_id,
            "error": self.error.to_dict() if self.error else None,
            "restored_answer": self.restored_answer,
        }


@dataclass
class Draft:
    responses: List[Response] = field(default_factory=list)
    current_node_id: Optional[str] = None
    answers: Optional[Dict[str, Any]] = None
    flow_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "flow_id": self.flow_id,
            "current_node_id": self.current_node_id,
            "responses": [r.to_dict() for r in self.responses],
        }
        if self.answers is not None:
            data["answers"] = dict(self.answers)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Draft":
        answers = data.get("answers")
        return cls(
            responses=[Response.from_dict(item) for item in data.get("responses") or [] if isinstance(item, dict)],
            current_node_id=data.get("current_node_id") or data.get("currentNodeId"),
            answers=dict(answers) if isinstance(answers, dict) else None,
            flow_id=data.get("flow_id"),
        )

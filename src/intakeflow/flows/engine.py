"""
Stateful traversal driver over a validated FlowDefinition.

A FlowSession owns one TraversalState. Every transition is computed on a
snapshot and committed only when it succeeds, so a failed advance or back
leaves the state exactly as it was.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..errors import FlowValidationError, GraphError, GraphErrorKind, SessionBusyError
from ..graph import FlowDefinition, InfoNode, Node
from ..observability.logging_utils import redact_answer
from ..validation import ValidationReport, validate_report
from .models import Draft, DraftHandle, SubmissionId, TransitionResult
from .persistence import InMemoryPersistenceAdapter, PersistenceAdapter
from .resolution import check_answer, normalize_answer, recorded_answer, resolve_connection
from .state import Response, SessionStatus, TraversalState

logger = logging.getLogger("intakeflow.flows")


class FlowSession:
    def __init__(
        self,
        flow: FlowDefinition,
        state: Optional[TraversalState] = None,
        persistence: Optional[PersistenceAdapter] = None,
        flow_id: Optional[str] = None,
        strict: bool = True,
        redact_answers: Optional[bool] = None,
    ) -> None:
        self.flow = flow
        self.flow_id = flow_id or flow.id
        self.report: ValidationReport = validate_report(flow)
        if strict and self.report.has_errors:
            raise FlowValidationError(
                f"Flow '{flow.name}' has {len(self.report.errors)} validation error(s)",
                issues=list(self.report.errors),
            )
        start = flow.start_node
        self.state = state if state is not None else TraversalState.initial(start.id if start else None)
        self.persistence: PersistenceAdapter = persistence if persistence is not None else InMemoryPersistenceAdapter()
        self.redact_answers = redact_answers
        self._busy = False

    @classmethod
    def begin(cls, flow: FlowDefinition, **kwargs) -> "FlowSession":
        return cls(flow, **kwargs)

    @classmethod
    def resume(cls, flow: FlowDefinition, draft: Draft, **kwargs) -> "FlowSession":
        """
        Rebuild a session from a saved draft.

        The current node falls back to start when the draft's node is missing
        or no longer part of the flow. Cached answers come from the draft's
        ``answers`` when present; otherwise each response is matched to the
        first node whose question text equals it.
        """

        start = flow.start_node
        current = draft.current_node_id if flow.has_node(draft.current_node_id) else (start.id if start else None)
        if draft.answers is not None:
            cache = {node_id: value for node_id, value in draft.answers.items() if flow.has_node(node_id)}
        else:
            cache = {}
            for response in draft.responses:
                node = flow.find_by_question(response.question)
                if node is not None and node.id not in cache:
                    cache[node.id] = response.answer
        state = TraversalState(current_node_id=current, answer_cache=cache, responses=list(draft.responses))
        if draft.flow_id and "flow_id" not in kwargs:
            kwargs["flow_id"] = draft.flow_id
        return cls(flow, state=state, **kwargs)

    @classmethod
    async def load(cls, flow: FlowDefinition, handle: DraftHandle, persistence: PersistenceAdapter, **kwargs) -> "FlowSession":
        draft = await persistence.load_draft(handle)
        return cls.resume(flow, draft, persistence=persistence, **kwargs)

    @property
    def current_node(self) -> Optional[Node]:
        return self.flow.get(self.state.current_node_id)

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    @property
    def busy(self) -> bool:
        return self._busy

    def _log_answer(self, answer: Any) -> Any:
        return redact_answer(answer, self.redact_answers)

    def _refuse(self) -> Optional[TransitionResult]:
        if self.state.sealed:
            return TransitionResult.failure(
                GraphError("The submission is finalized", kind=GraphErrorKind.SEALED, node_id=self.state.current_node_id)
            )
        if self._busy:
            return TransitionResult.failure(
                GraphError("A persistence call is in flight", kind=GraphErrorKind.BUSY, node_id=self.state.current_node_id)
            )
        if self.report.has_errors:
            return TransitionResult.failure(
                GraphError("Flow has unresolved validation errors", kind=GraphErrorKind.INVALID_FLOW)
            )
        return None

    def advance(self, answer: Any = None) -> TransitionResult:
        refused = self._refuse()
        if refused:
            return refused
        node = self.current_node
        if node is None:
            return TransitionResult.failure(
                GraphError(
                    f"Current node '{self.state.current_node_id}' does not exist",
                    kind=GraphErrorKind.BROKEN_LINK,
                    node_id=self.state.current_node_id,
                )
            )
        if node.is_terminal:
            return TransitionResult.failure(
                GraphError("The flow is already at a terminal node", kind=GraphErrorKind.TERMINAL_NODE, node_id=node.id)
            )

        answer = normalize_answer(node, answer)
        invalid = check_answer(node, answer)
        if invalid is not None:
            return TransitionResult.failure(invalid)

        conn = resolve_connection(self.flow, node, answer)
        if conn is None:
            logger.info("No branch for answer %r at node %s", self._log_answer(answer), node.id)
            return TransitionResult.failure(
                GraphError(
                    f"No connection from '{node.id}' matches the answer",
                    kind=GraphErrorKind.UNRESOLVED_BRANCH,
                    node_id=node.id,
                )
            )
        if not self.flow.has_node(conn.target_node_id):
            return TransitionResult.failure(
                GraphError(
                    f"Connection '{conn.id}' points at missing node '{conn.target_node_id}'",
                    kind=GraphErrorKind.BROKEN_LINK,
                    node_id=node.id,
                )
            )

        nxt = self.state.snapshot()
        # start and bare info steps are neither logged nor cached
        skip_record = node.is_start or (isinstance(node, InfoNode) and answer is None)
        if not skip_record:
            nxt.responses.append(Response(question=node.display_question, answer=recorded_answer(node, answer)))
            nxt.answer_cache[node.id] = answer
        nxt.history.append(node.id)
        nxt.current_node_id = conn.target_node_id
        self.state.commit(nxt)
        logger.debug("Advanced %s -> %s via %s", node.id, conn.target_node_id, conn.id)
        return TransitionResult.ok(conn.target_node_id)

    def back(self) -> TransitionResult:
        refused = self._refuse()
        if refused:
            return refused
        if not self.state.history:
            return TransitionResult.failure(
                GraphError("There is no previous step", kind=GraphErrorKind.NO_HISTORY, node_id=self.state.current_node_id)
            )
        nxt = self.state.snapshot()
        previous = nxt.history.pop()
        nxt.current_node_id = previous
        self.state.commit(nxt)
        return TransitionResult.ok(previous, restored_answer=self.state.answer_cache.get(previous))

    def restart(self) -> TransitionResult:
        refused = self._refuse()
        if refused:
            return refused
        start = self.flow.start_node
        self.state.commit(TraversalState.initial(start.id if start else None))
        logger.debug("Restarted session for flow %s", self.flow_id)
        return TransitionResult.ok(self.state.current_node_id)

    def _acquire(self) -> None:
        if self._busy:
            raise SessionBusyError("A persistence call is already in flight")
        self._busy = True

    async def save_draft(self) -> DraftHandle:
        self._acquire()
        try:
            handle = await self.persistence.save_draft(
                self.flow_id,
                list(self.state.responses),
                self.state.current_node_id,
                answers=dict(self.state.answer_cache),
            )
        finally:
            self._busy = False
        logger.info("Saved draft %s for flow %s at node %s", handle, self.flow_id, self.state.current_node_id)
        return handle

    async def finalize(self) -> SubmissionId:
        node = self.current_node
        if node is None or not node.is_terminal:
            raise GraphError(
                "Submissions can only be finalized at a terminal node",
                kind=GraphErrorKind.NOT_TERMINAL,
                node_id=self.state.current_node_id,
            )
        self.state.ensure_open()
        self._acquire()
        try:
            submission_id = await self.persistence.finalize_submission(self.flow_id, list(self.state.responses))
            self.state.seal()
        finally:
            self._busy = False
        logger.info("Finalized submission %s for flow %s (%d responses)", submission_id, self.flow_id, len(self.state.responses))
        return submission_id

    def progress(self) -> int:
        steps = [n for n in self.flow.nodes if not n.is_start and not n.is_terminal]
        if not steps:
            return 0
        start = self.flow.start_node
        visited = [node_id for node_id in self.state.history if start is None or node_id != start.id]
        return min(100, round(len(visited) / len(steps) * 100))

    def to_dict(self) -> Dict[str, Any]:
        node = self.current_node
        return {
            "flow_id": self.flow_id,
            "status": self.status.value,
            "current_node": {"id": node.id, "type": node.type, "question": node.display_question} if node else None,
            "can_go_back": bool(self.state.history),
            "progress": self.progress(),
            "state": self.state.to_dict(),
        }

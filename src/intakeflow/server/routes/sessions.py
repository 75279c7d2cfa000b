"""Session routes driving the execution engine over HTTP."""

from __future__ import annotations

from typing import Any, Callable, Dict

from fastapi import APIRouter

from ...errors import DraftNotFoundError, FlowValidationError, GraphError, SealedStateError, SessionBusyError
from ...flows import FlowSession, PersistenceAdapter
from ..errors import conflict, not_found, unwrap_parse
from ..schemas import AdvanceRequest, SessionCreateRequest, SessionResumeRequest
from ..sessions import SessionRegistry


def build_sessions_router(
    log_buffer,
    log_event,
    parse_fn: Callable[..., Any],
    registry: SessionRegistry,
    persistence: PersistenceAdapter,
    redact_answers: bool = True,
) -> APIRouter:
    router = APIRouter()

    def _session(session_id: str) -> FlowSession:
        session = registry.get(session_id)
        if session is None:
            raise not_found(f"Session '{session_id}' not found")
        return session

    def _payload(session_id: str, session: FlowSession, **extra: Any) -> Dict[str, Any]:
        return {"session_id": session_id, **session.to_dict(), **extra}

    def _invalid(exc: FlowValidationError):
        return conflict(exc, kind="invalid_flow", issues=[issue.to_dict() for issue in exc.issues])

    def _transition(session_id: str, session: FlowSession, result) -> Any:
        if not result.success:
            log_event(log_buffer, "transition_failed", level="warning", session_id=session_id, **result.error.to_dict())
            return conflict(result.error)
        return _payload(session_id, session, result=result.to_dict())

    @router.post("/api/sessions")
    def api_create_session(payload: SessionCreateRequest):
        flow = unwrap_parse(parse_fn(payload.document, flow_id=payload.flow_id))
        try:
            session = FlowSession(flow, persistence=persistence, redact_answers=redact_answers)
        except FlowValidationError as exc:
            return _invalid(exc)
        session_id = registry.add(session)
        log_event(log_buffer, "session_started", level="info", session_id=session_id, flow_id=session.flow_id)
        return _payload(session_id, session)

    @router.post("/api/sessions/resume")
    async def api_resume_session(payload: SessionResumeRequest):
        flow = unwrap_parse(parse_fn(payload.document, flow_id=payload.flow_id))
        try:
            session = await FlowSession.load(flow, payload.draft_handle, persistence, redact_answers=redact_answers)
        except DraftNotFoundError as exc:
            raise not_found(exc.message) from exc
        except FlowValidationError as exc:
            return _invalid(exc)
        session_id = registry.add(session)
        log_event(log_buffer, "session_resumed", level="info", session_id=session_id, draft_handle=payload.draft_handle)
        return _payload(session_id, session)

    @router.get("/api/sessions/{session_id}")
    def api_get_session(session_id: str) -> Dict[str, Any]:
        return _payload(session_id, _session(session_id))

    @router.delete("/api/sessions/{session_id}")
    def api_discard_session(session_id: str) -> Dict[str, Any]:
        if not registry.remove(session_id):
            raise not_found(f"Session '{session_id}' not found")
        log_event(log_buffer, "session_discarded", level="info", session_id=session_id)
        return {"session_id": session_id, "discarded": True}

    # transitions share the event loop with save_draft and finalize
    @router.post("/api/sessions/{session_id}/advance")
    async def api_advance(session_id: str, payload: AdvanceRequest):
        session = _session(session_id)
        result = session.advance(payload.answer)
        log_event(log_buffer, "session_advance", level="debug", session_id=session_id, answer=payload.answer)
        return _transition(session_id, session, result)

    @router.post("/api/sessions/{session_id}/back")
    async def api_back(session_id: str):
        session = _session(session_id)
        return _transition(session_id, session, session.back())

    @router.post("/api/sessions/{session_id}/restart")
    async def api_restart(session_id: str):
        session = _session(session_id)
        return _transition(session_id, session, session.restart())

    @router.post("/api/sessions/{session_id}/draft")
    async def api_save_draft(session_id: str):
        session = _session(session_id)
        try:
            handle = await session.save_draft()
        except SessionBusyError as exc:
            return conflict(exc, kind="busy")
        log_event(log_buffer, "draft_saved", level="info", session_id=session_id, draft_handle=handle)
        return _payload(session_id, session, draft_handle=handle)

    @router.post("/api/sessions/{session_id}/finalize")
    async def api_finalize(session_id: str):
        session = _session(session_id)
        try:
            submission_id = await session.finalize()
        except GraphError as exc:
            return conflict(exc)
        except SessionBusyError as exc:
            return conflict(exc, kind="busy")
        except SealedStateError as exc:
            return conflict(exc, kind="sealed")
        registry.remove(session_id)
        log_event(log_buffer, "submission_finalized", level="info", session_id=session_id, submission_id=submission_id)
        return _payload(session_id, session, submission_id=submission_id)

    return router


__all__ = ["build_sessions_router"]

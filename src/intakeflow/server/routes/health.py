"""Health, server status and event log routes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter


def build_health_router(log_buffer, log_event, status_payload) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> Dict[str, str]:
        log_event(log_buffer, "health_ping", level="debug")
        return {"status": "ok"}

    @router.get("/api/status")
    def api_status() -> Dict[str, Any]:
        return status_payload()

    @router.get("/api/logs")
    def api_logs(limit: int = 100, after: int = 0, session_id: Optional[str] = None) -> Dict[str, Any]:
        # polling clients pass the last id they saw
        if after:
            events, latest = log_buffer.snapshot_after(after, session_id=session_id)
            return {"events": events[-limit:] if limit > 0 else events, "latest": latest}
        events = log_buffer.history(limit, session_id=session_id)
        return {"events": events, "latest": events[-1]["id"] if events else 0}

    return router


__all__ = ["build_health_router"]

"""Error payload helpers for the FastAPI server."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException
from fastapi.responses import JSONResponse

from ..errors import GraphError, IntakeFlowError
from ..parser import ParseResult


def conflict(error: IntakeFlowError, kind: str = "invalid_flow", **extra: Any) -> JSONResponse:
    if isinstance(error, GraphError):
        payload: Dict[str, Any] = error.to_dict()
    else:
        payload = {"kind": kind, "message": error.message, "node_id": None}
    payload.update(extra)
    return JSONResponse(status_code=409, content={"error": payload})


def unwrap_parse(result: ParseResult):
    if not result.success:
        raise HTTPException(status_code=422, detail=result.error.to_dict())
    return result.flow


def not_found(message: str, detail: Optional[Dict[str, Any]] = None) -> HTTPException:
    return HTTPException(status_code=404, detail=detail or {"message": message})


__all__ = ["conflict", "not_found", "unwrap_parse"]

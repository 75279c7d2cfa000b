"""Stateless document routes: parse, validate, layout and canvas."""

from __future__ import annotations

from typing import Any, Callable, Dict

from fastapi import APIRouter

from ...parser import flow_to_dict
from ...studio import LayoutConfig, build_canvas_manifest, layout_dict
from ...validation import validate_report
from ..errors import unwrap_parse
from ..schemas import DocumentRequest


def build_flows_router(log_buffer, log_event, parse_fn: Callable[..., Any], layout_config: LayoutConfig) -> APIRouter:
    """Build the router for editor-facing document operations."""

    router = APIRouter()

    def _flow(payload: DocumentRequest):
        result = parse_fn(payload.document)
        if not result.success:
            log_event(log_buffer, "parse_failed", level="warning", kind=result.error.kind.value, message=result.error.message)
        return unwrap_parse(result), result.format

    @router.post("/api/flows/parse")
    def api_parse(payload: DocumentRequest) -> Dict[str, Any]:
        flow, fmt = _flow(payload)
        log_event(log_buffer, "flow_parsed", level="info", flow_id=flow.id, nodes=len(flow.nodes))
        return {"format": fmt, "flow": flow_to_dict(flow)}

    @router.post("/api/flows/validate")
    def api_validate(payload: DocumentRequest) -> Dict[str, Any]:
        flow, _ = _flow(payload)
        report = validate_report(flow)
        log_event(log_buffer, "flow_validated", level="info", flow_id=flow.id, **report.summary())
        return report.to_dict()

    @router.post("/api/flows/layout")
    def api_layout(payload: DocumentRequest) -> Dict[str, Any]:
        flow, _ = _flow(payload)
        return {"positions": layout_dict(flow, layout_config)}

    @router.post("/api/flows/canvas")
    def api_canvas(payload: DocumentRequest) -> Dict[str, Any]:
        flow, _ = _flow(payload)
        return build_canvas_manifest(flow, config=layout_config)

    return router


__all__ = ["build_flows_router"]

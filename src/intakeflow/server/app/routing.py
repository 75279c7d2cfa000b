"""Router composition for the FastAPI app."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

from ..routes.flows import build_flows_router
from ..routes.health import build_health_router
from ..routes.sessions import build_sessions_router

if TYPE_CHECKING:
    from .factory import RoutingDeps


def include_routers(app: FastAPI, deps: RoutingDeps) -> None:
    """Include all routers in the correct order."""

    app.include_router(build_health_router(deps.log_buffer, deps.log_event, deps.status_payload))
    app.include_router(build_flows_router(deps.log_buffer, deps.log_event, deps.parse_fn, deps.layout_config))
    app.include_router(
        build_sessions_router(
            deps.log_buffer,
            deps.log_event,
            deps.parse_fn,
            deps.registry,
            deps.persistence,
            redact_answers=deps.redact_answers,
        )
    )

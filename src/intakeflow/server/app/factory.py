"""Application factory that builds the FastAPI app with all wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI

from ...config import IntakeConfig, load_config
from ...flows import PersistenceAdapter, build_persistence
from ...parser import parse
from ...studio import LayoutConfig, LogBuffer, log_event
from ...version import __version__
from ..sessions import SessionRegistry
from .routing import include_routers


@dataclass
class RoutingDeps:
    log_buffer: LogBuffer
    log_event: Callable[..., Any]
    status_payload: Callable[[], Dict[str, Any]]
    parse_fn: Callable[..., Any]
    layout_config: LayoutConfig
    registry: SessionRegistry
    persistence: PersistenceAdapter
    redact_answers: bool


def create_app(
    config: Optional[IntakeConfig] = None,
    persistence: Optional[PersistenceAdapter] = None,
    log_buffer: Optional[LogBuffer] = None,
) -> FastAPI:
    """Create the FastAPI app."""

    config = config or load_config()
    app = FastAPI(title="intakeflow", version=__version__)
    log_buffer = log_buffer or LogBuffer(mirror_logging=True, redact_answers=config.redact_answers)
    registry = SessionRegistry()
    persistence = persistence if persistence is not None else build_persistence(config.draft_dir)

    def status_payload() -> Dict[str, Any]:
        return {
            "version": __version__,
            "sessions": len(registry),
            "persistence": type(persistence).__name__,
            "draft_dir": config.draft_dir,
        }

    deps = RoutingDeps(
        log_buffer=log_buffer,
        log_event=log_event,
        status_payload=status_payload,
        parse_fn=parse,
        layout_config=LayoutConfig.from_config(config),
        registry=registry,
        persistence=persistence,
        redact_answers=config.redact_answers,
    )
    include_routers(app, deps)
    app.state.registry = registry
    app.state.persistence = persistence
    app.state.log_buffer = log_buffer
    log_event(log_buffer, "server_ready", level="info", persistence=type(persistence).__name__)
    return app

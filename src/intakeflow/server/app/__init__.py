"""Application package for the intakeflow FastAPI server."""

from __future__ import annotations

from .factory import create_app

# Module-level app instance for `uvicorn intakeflow.server.app:app`.
app = create_app()

__all__ = ["create_app", "app"]

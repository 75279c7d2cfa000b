"""Pydantic schemas used by the FastAPI server."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class DocumentRequest(BaseModel):
    document: str = Field(..., description="Markdown flow document or bare JSON")


class SessionCreateRequest(DocumentRequest):
    flow_id: Optional[str] = None


class SessionResumeRequest(DocumentRequest):
    flow_id: Optional[str] = None
    draft_handle: str


class AdvanceRequest(BaseModel):
    answer: Any = None

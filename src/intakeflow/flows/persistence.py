"""
Persistence adapters for drafts and finalized submissions.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence
from uuid import uuid4

from ..errors import DraftNotFoundError
from .models import Draft, DraftHandle, SubmissionId
from .state import Response

logger = logging.getLogger("intakeflow.flows.persistence")

_HANDLE_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class PersistenceAdapter(Protocol):
    async def save_draft(
        self,
        flow_id: str,
        responses: Sequence[Response],
        current_node_id: Optional[str],
        answers: Optional[Dict[str, Any]] = None,
    ) -> DraftHandle:
        ...

    async def finalize_submission(self, flow_id: str, responses: Sequence[Response]) -> SubmissionId:
        ...

    async def load_draft(self, handle: DraftHandle) -> Draft:
        ...


class InMemoryPersistenceAdapter:
    def __init__(self) -> None:
        self.drafts: Dict[DraftHandle, Draft] = {}
        self.submissions: Dict[SubmissionId, Dict[str, Any]] = {}

    async def save_draft(self, flow_id, responses, current_node_id, answers=None) -> DraftHandle:
        handle = uuid4().hex
        self.drafts[handle] = Draft(
            responses=list(responses),
            current_node_id=current_node_id,
            answers=dict(answers) if answers is not None else None,
            flow_id=flow_id,
        )
        return handle

    async def finalize_submission(self, flow_id, responses) -> SubmissionId:
        submission_id = uuid4().hex
        self.submissions[submission_id] = {"flow_id": flow_id, "responses": [r.to_dict() for r in responses]}
        return submission_id

    async def load_draft(self, handle: DraftHandle) -> Draft:
        draft = self.drafts.get(handle)
        if draft is None:
            raise DraftNotFoundError(f"Draft '{handle}' not found")
        return draft


class JsonFilePersistenceAdapter:
    """Stores each draft and submission as a JSON document under ``root``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.drafts_dir = self.root / "drafts"
        self.submissions_dir = self.root / "submissions"

    def _write(self, path: Path, payload: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        tmp.replace(path)

    def _read(self, path: Path) -> Dict[str, Any]:
        return json.loads(path.read_text(encoding="utf-8"))

    async def save_draft(self, flow_id, responses, current_node_id, answers=None) -> DraftHandle:
        handle = uuid4().hex
        draft = Draft(
            responses=list(responses),
            current_node_id=current_node_id,
            answers=dict(answers) if answers is not None else None,
            flow_id=flow_id,
        )
        await asyncio.to_thread(self._write, self.drafts_dir / f"{handle}.json", draft.to_dict())
        logger.debug("Saved draft %s for flow %s", handle, flow_id)
        return handle

    async def finalize_submission(self, flow_id, responses) -> SubmissionId:
        submission_id = uuid4().hex
        payload = {"flow_id": flow_id, "responses": [r.to_dict() for r in responses]}
        await asyncio.to_thread(self._write, self.submissions_dir / f"{submission_id}.json", payload)
        logger.debug("Stored submission %s for flow %s", submission_id, flow_id)
        return submission_id

    async def load_draft(self, handle: DraftHandle) -> Draft:
        if not _HANDLE_RE.match(handle or ""):
            raise DraftNotFoundError(f"Draft '{handle}' not found")
        path = self.drafts_dir / f"{handle}.json"
        if not path.exists():
            raise DraftNotFoundError(f"Draft '{handle}' not found")
        data = await asyncio.to_thread(self._read, path)
        return Draft.from_dict(data)

    def list_submissions(self) -> List[str]:
        if not self.submissions_dir.exists():
            return []
        return sorted(p.stem for p in self.submissions_dir.glob("*.json"))


def build_persistence(draft_dir: Optional[str] = None) -> PersistenceAdapter:
    if draft_dir:
        return JsonFilePersistenceAdapter(draft_dir)
    return InMemoryPersistenceAdapter()

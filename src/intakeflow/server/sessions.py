"""In-memory registry of live FlowSessions keyed by session id."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional
from uuid import uuid4

from ..flows import FlowSession


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: Dict[str, FlowSession] = {}
        self._lock = threading.Lock()

    def add(self, session: FlowSession) -> str:
        session_id = uuid4().hex
        with self._lock:
            self._sessions[session_id] = session
        return session_id

    def get(self, session_id: str) -> Optional[FlowSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

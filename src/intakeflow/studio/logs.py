"""
Ring buffer of editor and session events for the status/log endpoints.

Events carrying a ``session_id`` can be filtered per session. Answer values
are redacted before they are stored, so the buffer never holds raw responses
unless redaction is switched off.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import Deque, List, Optional, Tuple

from ..observability.logging_utils import redact_event

logger = logging.getLogger("intakeflow.studio")

_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


class LogBuffer:
    def __init__(self, max_events: int = 300, mirror_logging: bool = False, redact_answers: Optional[bool] = None) -> None:
        self.max_events = max_events
        self._events: Deque[dict] = deque(maxlen=max_events)
        self._lock = threading.Lock()
        self._seq = 0
        self._mirror_logging = mirror_logging
        self._redact_answers = redact_answers

    def append(self, event: str, level: str = "info", session_id: Optional[str] = None, **details) -> dict:
        details = redact_event(details, self._redact_answers)
        with self._lock:
            self._seq += 1
            entry = {
                "id": self._seq,
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
                "level": level,
                "event": event,
                "session_id": session_id,
                "details": details,
            }
            self._events.append(entry)
        if self._mirror_logging:
            logger.log(_LEVELS.get(level, logging.INFO), "%s session=%s %s", event, session_id or "-", details)
        return entry

    def _select(self, session_id: Optional[str]) -> List[dict]:
        events = list(self._events)
        if session_id is None:
            return events
        return [e for e in events if e["session_id"] == session_id]

    def history(self, limit: int | None = None, session_id: Optional[str] = None) -> List[dict]:
        with self._lock:
            events = self._select(session_id)
        if limit is None or limit <= 0:
            return events
        return events[-limit:]

    def snapshot_after(self, last_id: int, session_id: Optional[str] = None) -> Tuple[List[dict], int]:
        """Events newer than ``last_id`` plus the latest sequence number for polling clients."""

        with self._lock:
            events = [e for e in self._select(session_id) if e["id"] > last_id]
            latest = self._seq
        return events, latest


def log_event(buffer: LogBuffer, event: str, level: str = "info", **details) -> dict:
    return buffer.append(event, level=level, **details)

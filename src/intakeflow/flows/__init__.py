"""
Execution engine: sessions, traversal state and persistence adapters.
"""

from .engine import FlowSession
from .models import Draft, DraftHandle, SubmissionId, TransitionResult
from .persistence import (
    InMemoryPersistenceAdapter,
    JsonFilePersistenceAdapter,
    PersistenceAdapter,
    build_persistence,
)
from .resolution import format_form_answer, resolve_connection
from .state import Response, SessionStatus, TraversalState

__all__ = [
    "Draft",
    "DraftHandle",
    "FlowSession",
    "InMemoryPersistenceAdapter",
    "JsonFilePersistenceAdapter",
    "PersistenceAdapter",
    "Response",
    "SessionStatus",
    "SubmissionId",
    "TransitionResult",
    "TraversalState",
    "build_persistence",
    "format_form_answer",
    "resolve_connection",
]

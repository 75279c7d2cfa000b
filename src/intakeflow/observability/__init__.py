"""
Logging helpers shared by the engine and server.
"""

from .logging_utils import configure_logging, redact_answer, redact_event, redact_responses

__all__ = ["configure_logging", "redact_answer", "redact_event", "redact_responses"]

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

REDACTED = "[REDACTED]"


def _env_bool(name: str, default: bool = True) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def redact_answer(answer: Any, enabled: Optional[bool] = None) -> Any:
    if enabled is None:
        enabled = _env_bool("INTAKEFLOW_LOG_REDACT_ANSWERS", True)
    if not enabled:
        return answer
    if answer is None or answer == "":
        return answer
    return REDACTED


def redact_responses(responses: List[Dict[str, Any]], enabled: Optional[bool] = None) -> List[Dict[str, Any]]:
    """Keep the questions, hide what was answered."""

    return [
        {"question": item.get("question"), "answer": redact_answer(item.get("answer"), enabled)}
        for item in responses
    ]


def redact_event(event: Dict[str, Any], enabled: Optional[bool] = None) -> Dict[str, Any]:
    sanitized = dict(event)
    for key in ("answer", "restored_answer"):
        if key in sanitized:
            sanitized[key] = redact_answer(sanitized[key], enabled)
    if isinstance(sanitized.get("responses"), list):
        sanitized["responses"] = redact_responses(sanitized["responses"], enabled)
    return sanitized


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

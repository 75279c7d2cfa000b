"""
Centralized configuration loader for layout, persistence and logging settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class IntakeConfig:
    horizontal_spacing: int = 450
    vertical_spacing: int = 250
    origin_x: int = 100
    origin_y: int = 100
    draft_dir: Optional[str] = None
    redact_answers: bool = True
    log_level: str = "INFO"


def _env_int(environ, names: list[str], default: int) -> int:
    for name in names:
        raw = environ.get(name)
        if raw is None or str(raw).strip() == "":
            continue
        try:
            return int(str(raw).strip())
        except ValueError:
            continue
    return default


def _env_bool(environ, name: str, default: bool) -> bool:
    val = environ.get(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def load_config(env: Optional[dict] = None) -> IntakeConfig:
    environ = env if env is not None else os.environ
    defaults = IntakeConfig()
    return IntakeConfig(
        horizontal_spacing=_env_int(environ, ["INTAKEFLOW_LAYOUT_HSPACING"], defaults.horizontal_spacing),
        vertical_spacing=_env_int(environ, ["INTAKEFLOW_LAYOUT_VSPACING"], defaults.vertical_spacing),
        origin_x=_env_int(environ, ["INTAKEFLOW_LAYOUT_ORIGIN_X"], defaults.origin_x),
        origin_y=_env_int(environ, ["INTAKEFLOW_LAYOUT_ORIGIN_Y"], defaults.origin_y),
        draft_dir=environ.get("INTAKEFLOW_DRAFT_DIR") or None,
        redact_answers=_env_bool(environ, "INTAKEFLOW_LOG_REDACT_ANSWERS", defaults.redact_answers),
        log_level=(environ.get("INTAKEFLOW_LOG_LEVEL") or defaults.log_level).upper(),
    )

"""Timer package."""

from .engine import (
    SessionEngine,
    SessionStatus,
    ResetPolicy,
    TICK_INTERVAL_MS,
    TRANSITION_DELAY_MS,
)
from .formatting import format_percent, format_time
from .template import Phase, PhaseKind, SessionTemplate, TemplateError

__all__ = [
    "SessionEngine",
    "SessionStatus",
    "ResetPolicy",
    "TICK_INTERVAL_MS",
    "TRANSITION_DELAY_MS",
    "format_percent",
    "format_time",
    "Phase",
    "PhaseKind",
    "SessionTemplate",
    "TemplateError",
]

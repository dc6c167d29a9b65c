"""Application settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/StudySession/settings.json

Usage::

    settings = load_settings()
    settings.sound_enabled = False
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path

from .timer.engine import ResetPolicy, TRANSITION_DELAY_MS

logger = logging.getLogger(__name__)

# Same directory as the database and the sound cache
APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "StudySession"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── timer ─────────────────────────────────────────────────────────
    transition_delay_ms: int = TRANSITION_DELAY_MS
    reset_policy: str = ResetPolicy.RESTART_PHASE.value

    # ── audio ─────────────────────────────────────────────────────────
    sound_enabled: bool = True
    sound_volume: int = 30                 # 0-100

    # ── notifications ─────────────────────────────────────────────────
    notifications_enabled: bool = True

    @property
    def reset_policy_enum(self) -> ResetPolicy:
        """Parsed ``reset_policy``; unknown values fall back to restart."""
        try:
            return ResetPolicy(self.reset_policy)
        except ValueError:
            return ResetPolicy.RESTART_PHASE


_FIELD_TYPES = {
    "transition_delay_ms": int,
    "reset_policy": str,
    "sound_enabled": bool,
    "sound_volume": int,
    "notifications_enabled": bool,
}


def _valid_fields(data: dict) -> dict:
    """Keep known keys whose JSON value has the right type.

    Anything else is dropped with a warning so the dataclass default
    applies.  ``true``/``false`` are not accepted as numbers.
    """
    kept = {}
    for f in fields(Settings):
        if f.name not in data:
            continue
        value = data[f.name]
        expected = _FIELD_TYPES[f.name]
        if isinstance(value, expected) and not (expected is int and isinstance(value, bool)):
            kept[f.name] = value
        else:
            logger.warning("Ignoring setting %s=%r (expected %s)", f.name, value, expected.__name__)
    return kept


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    try:
        if SETTINGS_PATH.exists():
            data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
            return Settings(**_valid_fields(data))
    except (OSError, ValueError, TypeError, AttributeError):
        logger.warning("Could not read %s, using defaults", SETTINGS_PATH, exc_info=True)
    return Settings()


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )

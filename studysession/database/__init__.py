"""Database package."""

from .db import configure_engine, get_session, init_db, sessions_completed_on
from .models import StudyRecord, DailyStats

__all__ = [
    "configure_engine",
    "get_session",
    "init_db",
    "sessions_completed_on",
    "StudyRecord",
    "DailyStats",
]

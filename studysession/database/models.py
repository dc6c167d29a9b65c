"""SQLAlchemy ORM models for StudySession."""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class StudyRecord(Base):
    """One started study session.  ``completed`` flips once the final
    phase runs out; reset or abandoned sessions stay incomplete."""

    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    start_time = Column(DateTime, nullable=False, default=datetime.now)
    end_time = Column(DateTime, nullable=True)
    title = Column(String(255), nullable=False, default="")
    topic = Column(String(255), nullable=True)
    phase_count = Column(Integer, nullable=False, default=1)
    phases_completed = Column(Integer, nullable=False, default=0)
    focus_minutes = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<StudyRecord id={self.id} title={self.title!r} "
            f"completed={self.completed}>"
        )


class DailyStats(Base):
    """Per-day totals; the source of "sessions completed today"."""

    __tablename__ = "daily_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, unique=True)
    sessions_completed = Column(Integer, nullable=False, default=0)
    focus_minutes = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<DailyStats date={self.date} sessions={self.sessions_completed} "
            f"focus={self.focus_minutes}m>"
        )

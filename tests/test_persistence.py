"""Tests for session records and the daily completion counter."""

from datetime import date

import pytest

from studysession.database.db import get_session, sessions_completed_on
from studysession.database.models import DailyStats, StudyRecord
from studysession.timer.engine import SessionEngine, SessionStatus
from studysession.timer.template import SessionTemplate

from helpers import (
    POMODORO,
    THREE_PHASE,
    RecordingSink,
    finish_transition,
    run_phase,
    run_session,
    tick_n,
)


class TestStudyRecords:

    def test_start_creates_incomplete_record(self, engine_db):
        engine_db.start(POMODORO, "Statistics")
        with get_session() as db:
            records = db.query(StudyRecord).all()
            assert len(records) == 1
            rec = records[0]
            assert rec.title == "Pomodoro"
            assert rec.topic == "Statistics"
            assert rec.phase_count == 2
            assert rec.completed is False
            assert rec.end_time is None

    def test_completion_updates_record(self, engine_db):
        engine_db.start(THREE_PHASE)
        run_session(engine_db)
        with get_session() as db:
            rec = db.query(StudyRecord).one()
            assert rec.completed is True
            assert rec.end_time is not None
            assert rec.phases_completed == 3
            assert rec.focus_minutes == 3

    def test_empty_topic_stored_as_null(self, engine_db):
        engine_db.start(POMODORO)
        with get_session() as db:
            assert db.query(StudyRecord).one().topic is None

    def test_reset_to_idle_leaves_record_incomplete(self, qapp):
        eng = SessionEngine(db_enabled=True, reset_policy="idle")
        eng.start(POMODORO)
        tick_n(eng, 30)
        eng.reset()
        with get_session() as db:
            assert db.query(StudyRecord).one().completed is False
            assert db.query(DailyStats).count() == 0

    def test_restart_phase_keeps_same_record(self, engine_db):
        engine_db.start(POMODORO)
        tick_n(engine_db, 30)
        engine_db.reset()
        run_session(engine_db)
        with get_session() as db:
            assert db.query(StudyRecord).count() == 1
            assert db.query(StudyRecord).one().completed is True

    def test_replacing_session_opens_new_record(self, engine_db):
        engine_db.start(POMODORO)
        engine_db.start(SessionTemplate(duration_minutes=1))
        run_session(engine_db)
        with get_session() as db:
            completed = [r.completed for r in db.query(StudyRecord).order_by(StudyRecord.id)]
            assert completed == [False, True]


class TestDailyStats:

    def test_completion_bumps_today(self, engine_db):
        engine_db.start(POMODORO)
        run_session(engine_db)
        assert sessions_completed_on(date.today()) == 1
        with get_session() as db:
            stats = db.query(DailyStats).one()
            assert stats.focus_minutes == 25

    def test_two_sessions_share_one_row(self, engine_db):
        for _ in range(2):
            engine_db.start(SessionTemplate(duration_minutes=1))
            run_session(engine_db)
        with get_session() as db:
            assert db.query(DailyStats).count() == 1
        assert sessions_completed_on(date.today()) == 2

    def test_no_row_means_zero(self):
        assert sessions_completed_on(date(2001, 1, 1)) == 0

    def test_counter_seeded_from_database(self, qapp):
        first = SessionEngine(db_enabled=True)
        first.start(SessionTemplate(duration_minutes=1))
        run_session(first)

        second = SessionEngine(db_enabled=True)
        assert second.sessions_completed_today == 1

    def test_explicit_count_overrides_database(self, qapp):
        with get_session() as db:
            db.add(DailyStats(date=date.today(), sessions_completed=7, focus_minutes=0))
        eng = SessionEngine(db_enabled=True, sessions_completed_today=2)
        assert eng.sessions_completed_today == 2

    def test_db_disabled_writes_nothing(self, engine):
        engine.start(POMODORO)
        run_session(engine)
        with get_session() as db:
            assert db.query(StudyRecord).count() == 0
            assert db.query(DailyStats).count() == 0


class TestPhaseProgress:

    def test_progress_written_after_each_phase(self, engine_db):
        engine_db.start(THREE_PHASE)
        run_phase(engine_db)
        with get_session() as db:
            assert db.query(StudyRecord).one().phases_completed == 1
        finish_transition(engine_db)
        run_phase(engine_db)
        with get_session() as db:
            assert db.query(StudyRecord).one().phases_completed == 2

    def test_abandoned_session_keeps_progress(self, qapp):
        eng = SessionEngine(db_enabled=True, reset_policy="idle")
        eng.start(THREE_PHASE)
        run_phase(eng)
        finish_transition(eng)
        run_phase(eng)
        finish_transition(eng)
        tick_n(eng, 10)
        eng.reset()
        with get_session() as db:
            rec = db.query(StudyRecord).one()
            assert rec.phases_completed == 2
            assert rec.completed is False


def _broken_session():
    raise RuntimeError("database is locked")


@pytest.fixture
def broken_db(monkeypatch):
    """Make every database write fail from here on."""
    monkeypatch.setattr("studysession.database.db.get_session", _broken_session)


class TestDatabaseFailures:

    def test_session_completes_when_final_write_fails(self, engine_db, broken_db):
        sink = RecordingSink()
        engine_db.add_sink(sink)
        engine_db.start(SessionTemplate(duration_minutes=1))
        tick_n(engine_db, 60)
        assert engine_db.status == SessionStatus.COMPLETED
        assert engine_db.remaining == 0
        assert engine_db.sessions_completed_today == 1
        assert not engine_db._qt_timer.isActive()
        assert sink.events[-1] == ("session",)

    def test_failed_start_write_keeps_state_consistent(self, engine_db, monkeypatch):
        engine_db.start(THREE_PHASE)
        run_phase(engine_db)
        finish_transition(engine_db)
        run_phase(engine_db)
        finish_transition(engine_db)
        assert engine_db.current_phase_index == 2

        monkeypatch.setattr("studysession.database.db.get_session", _broken_session)
        one_block = SessionTemplate(duration_minutes=1)
        engine_db.start(one_block)
        assert engine_db.template == one_block
        assert engine_db.current_phase_index == 0
        assert engine_db.current_phase == one_block.effective_phases[0]
        assert engine_db.status == SessionStatus.RUNNING
        assert engine_db.remaining == 60

    def test_failed_start_write_still_completes(self, engine_db, broken_db):
        engine_db.start(POMODORO)
        run_session(engine_db)
        assert engine_db.status == SessionStatus.COMPLETED
        assert engine_db.sessions_completed_today == 1

    def test_failed_progress_write_keeps_transition(self, engine_db, monkeypatch):
        engine_db.start(THREE_PHASE)
        monkeypatch.setattr("studysession.database.db.get_session", _broken_session)
        run_phase(engine_db)
        assert engine_db.status == SessionStatus.TRANSITIONING
        finish_transition(engine_db)
        assert engine_db.current_phase_index == 1

    def test_counter_starts_at_zero_when_database_unreadable(self, qapp, broken_db):
        eng = SessionEngine(db_enabled=True)
        assert eng.sessions_completed_today == 0


def test_data_files_share_app_support_dir():
    from studysession.database import db
    from studysession import settings

    assert db.DB_PATH.parent == settings.SETTINGS_PATH.parent
    assert db.APP_SUPPORT_DIR.parts[-3:] == ("Library", "Application Support", "StudySession")

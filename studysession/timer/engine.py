"""Phase-sequenced countdown state machine for StudySession.

States
------
IDLE           Nothing running, waiting for ``start``.
RUNNING        Current phase counting down.
PAUSED         Countdown frozen.
TRANSITIONING  A phase just ended; short non-ticking pause before the next.
COMPLETED      Final phase reached 0.  Stays here until restarted.

Transitions
-----------
IDLE | COMPLETED → RUNNING           (start)
RUNNING → PAUSED                     (pause)
PAUSED → RUNNING                     (resume)
RUNNING → TRANSITIONING → RUNNING    (phase reaches 0, more phases left)
RUNNING → COMPLETED                  (last phase reaches 0)
Any → RUNNING at same phase          (reset, ResetPolicy.RESTART_PHASE)
Any → IDLE                           (reset, ResetPolicy.IDLE / stop)

Invalid commands are ignored, never raised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from ..notifications import NotificationSink
from .template import Phase, SessionTemplate, TemplateError

logger = logging.getLogger(__name__)


# ── enums ─────────────────────────────────────────────────────────────────


class SessionStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    TRANSITIONING = "transitioning"
    COMPLETED = "completed"


class ResetPolicy(Enum):
    RESTART_PHASE = "restart_phase"  # same phase, full duration, running
    IDLE = "idle"                    # back to phase 0, not running


# ── constants ─────────────────────────────────────────────────────────────

TICK_INTERVAL_MS = 1000
TRANSITION_DELAY_MS = 2000

_ACTIVE_STATES = (
    SessionStatus.RUNNING,
    SessionStatus.PAUSED,
    SessionStatus.TRANSITIONING,
)


# ── engine ────────────────────────────────────────────────────────────────


class SessionEngine(QObject):
    """Drives one study session through its phases.

    A 1 Hz ``QTimer`` calls ``tick()`` while RUNNING; a single-shot
    ``QTimer`` holds the inter-phase delay.  Both are owned by the engine
    and cancelled on pause, reset, stop and completion.

    Signals
    -------
    ticked(remaining_seconds: int)
        Emitted after every counted second.
    state_changed(new_status: SessionStatus)
        Emitted on every status transition.
    phase_started(index: int, phase: Phase)
        Emitted whenever a phase begins counting from full duration.
    phase_completed(finished_name: str, next_name: str | None)
        Emitted once per phase when it reaches 0.
    session_completed(data: dict)
        Emitted after the final phase.  Keys: ``title``, ``topic``,
        ``phase_count``, ``focus_minutes``, ``start_time``, ``end_time``,
        ``sessions_completed_today``.
    """

    ticked = pyqtSignal(int)
    state_changed = pyqtSignal(object)
    phase_started = pyqtSignal(int, object)
    phase_completed = pyqtSignal(str, object)
    session_completed = pyqtSignal(object)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sinks: Iterable[NotificationSink] = (),
        reset_policy: ResetPolicy = ResetPolicy.RESTART_PHASE,
        transition_delay_ms: int = TRANSITION_DELAY_MS,
        db_enabled: bool = False,
        sessions_completed_today: int | None = None,
    ) -> None:
        super().__init__(parent)

        # ── configuration ─────────────────────────────────────────────
        self._sinks: list[NotificationSink] = list(sinks)
        self._reset_policy: ResetPolicy = ResetPolicy(reset_policy)
        self._transition_delay_ms: int = max(0, transition_delay_ms)
        self._db_enabled: bool = db_enabled

        # ── session state ─────────────────────────────────────────────
        self._status: SessionStatus = SessionStatus.IDLE
        self._template: SessionTemplate | None = None
        self._phases: tuple[Phase, ...] = ()
        self._topic: str = ""
        self._index: int = 0
        self._remaining: int = 0
        self._phase_duration: int = 0
        self._start_time: datetime | None = None

        if sessions_completed_today is None:
            sessions_completed_today = 0
            if db_enabled:
                sessions_completed_today = self._db_call(self._load_completed_today) or 0
        self._completed_today: int = sessions_completed_today

        # ── DB tracking ───────────────────────────────────────────────
        self._db_record_id: int | None = None

        # ── Qt timers ─────────────────────────────────────────────────
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(TICK_INTERVAL_MS)
        self._qt_timer.timeout.connect(self.tick)

        self._transition_timer = QTimer(self)
        self._transition_timer.setSingleShot(True)
        self._transition_timer.timeout.connect(self._on_transition_elapsed)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def template(self) -> SessionTemplate | None:
        return self._template

    @property
    def topic(self) -> str:
        """Display-only label for what is being studied."""
        return self._topic

    @property
    def phases(self) -> tuple[Phase, ...]:
        return self._phases

    @property
    def current_phase_index(self) -> int:
        return self._index

    @property
    def current_phase(self) -> Phase | None:
        if not self._phases:
            return None
        return self._phases[self._index]

    @property
    def next_phase(self) -> Phase | None:
        if self._index + 1 < len(self._phases):
            return self._phases[self._index + 1]
        return None

    @property
    def remaining(self) -> int:
        """Seconds left in the current phase."""
        return self._remaining

    @property
    def phase_duration(self) -> int:
        """Full length of the current phase in seconds."""
        return self._phase_duration

    @property
    def progress_fraction(self) -> float:
        """0.0 → 1.0 progress through the current phase."""
        if self._phase_duration <= 0:
            return 0.0
        elapsed = self._phase_duration - self._remaining
        return max(0.0, min(1.0, elapsed / self._phase_duration))

    @property
    def sessions_completed_today(self) -> int:
        return self._completed_today

    @property
    def is_running(self) -> bool:
        return self._status == SessionStatus.RUNNING

    @property
    def is_active(self) -> bool:
        """True while a session is in progress (running, paused or
        between phases)."""
        return self._status in _ACTIVE_STATES

    @property
    def transition_pending(self) -> bool:
        return self._transition_timer.isActive()

    @property
    def reset_policy(self) -> ResetPolicy:
        return self._reset_policy

    @reset_policy.setter
    def reset_policy(self, value: ResetPolicy) -> None:
        self._reset_policy = ResetPolicy(value)

    def add_sink(self, sink: NotificationSink) -> None:
        if sink not in self._sinks:
            self._sinks.append(sink)

    def remove_sink(self, sink: NotificationSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(
        self,
        template: SessionTemplate | Mapping,
        topic: str | None = None,
    ) -> None:
        """Begin a session at phase 0.

        A no-op while a session for an equal template is already in
        progress; a different template replaces it.  Raises
        ``TemplateError`` for malformed input before touching any state.
        """
        if isinstance(template, Mapping):
            template = SessionTemplate.from_dict(template)
        elif not isinstance(template, SessionTemplate):
            raise TemplateError(
                f"expected SessionTemplate or mapping, got {type(template).__name__}"
            )

        if self.is_active and template == self._template:
            logger.debug("start ignored: %r already %s", template.title, self._status.value)
            return

        topic = topic or ""
        start_time = datetime.now()
        record_id = None
        if self._db_enabled:
            record_id = self._db_call(self._persist_start, template, topic, start_time)

        self._cancel_timers()
        self._template = template
        self._phases = template.effective_phases
        self._topic = topic
        self._start_time = start_time
        self._db_record_id = record_id

        logger.info(
            "Session started: %s (%d phase%s)%s",
            template.title,
            len(self._phases),
            "" if len(self._phases) == 1 else "s",
            f" topic={self._topic!r}" if self._topic else "",
        )
        self._begin_phase(0)

    def pause(self) -> None:
        """Freeze the countdown.  Only valid while RUNNING."""
        if self._status != SessionStatus.RUNNING:
            logger.debug("pause ignored in state %s", self._status.value)
            return
        self._qt_timer.stop()
        self._set_state(SessionStatus.PAUSED)

    def resume(self) -> None:
        """Continue from the frozen remaining time.  Only valid while PAUSED."""
        if self._status != SessionStatus.PAUSED:
            logger.debug("resume ignored in state %s", self._status.value)
            return
        self._set_state(SessionStatus.RUNNING)
        self._qt_timer.start()

    def reset(self) -> None:
        """Restart the current phase, or go IDLE, per ``reset_policy``.

        Never changes ``sessions_completed_today``.  From IDLE or
        COMPLETED there is nothing to restart, so the engine goes IDLE.
        """
        self._cancel_timers()

        if not self._phases or self._status in (
            SessionStatus.IDLE, SessionStatus.COMPLETED
        ):
            self._go_idle()
            return

        if self._reset_policy == ResetPolicy.RESTART_PHASE:
            logger.info("Phase restarted: %s", self.current_phase.name)
            self._begin_phase(self._index)
        else:
            logger.info("Session reset to idle: %s", self._template.title)
            self._db_record_id = None  # user cancelled; record stays incomplete
            self._go_idle()

    def stop(self) -> None:
        """Dispose of the running session: cancel the driver and any
        pending transition, then go IDLE.  Nothing fires afterwards."""
        self._cancel_timers()
        self._db_record_id = None
        self._go_idle()

    def tick(self) -> None:
        """Count one second.  Ignored unless RUNNING."""
        if self._status != SessionStatus.RUNNING or self._remaining <= 0:
            return
        self._remaining -= 1
        self.ticked.emit(self._remaining)
        if self._remaining == 0:
            self._complete_phase()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: phase mechanics
    # ══════════════════════════════════════════════════════════════════

    def _begin_phase(self, index: int) -> None:
        phase = self._phases[index]
        self._index = index
        self._phase_duration = phase.duration_seconds
        self._remaining = self._phase_duration
        self._set_state(SessionStatus.RUNNING)
        self.phase_started.emit(index, phase)
        self._qt_timer.start()

    def _complete_phase(self) -> None:
        self._qt_timer.stop()
        finished = self.current_phase
        upcoming = self.next_phase
        next_name = upcoming.name if upcoming is not None else None
        logger.info("Phase complete: %s", finished.name)

        # State first, so hooks that query or command the engine see the
        # post-completion picture.
        if upcoming is not None:
            if self._db_record_id is not None:
                self._db_call(self._persist_progress, self._index + 1)
            self._set_state(SessionStatus.TRANSITIONING)
            self._transition_timer.start(self._transition_delay_ms)
            self._notify("on_phase_complete", finished.name, next_name)
            self.phase_completed.emit(finished.name, next_name)
            return

        end_time = datetime.now()
        if self._db_enabled:
            self._db_call(self._persist_completed, end_time)
            self._db_record_id = None
        self._completed_today += 1
        self._set_state(SessionStatus.COMPLETED)

        self._notify("on_phase_complete", finished.name, None)
        self.phase_completed.emit(finished.name, None)
        self._announce_session_complete(end_time)

    def _on_transition_elapsed(self) -> None:
        if self._status != SessionStatus.TRANSITIONING:
            return
        self._begin_phase(self._index + 1)

    def _announce_session_complete(self, end_time: datetime) -> None:
        logger.info(
            "Session complete: %s (%d today)",
            self._template.title,
            self._completed_today,
        )
        self._notify("on_session_complete")
        self.session_completed.emit({
            "title": self._template.title,
            "topic": self._topic,
            "phase_count": len(self._phases),
            "focus_minutes": self._template.focus_minutes,
            "start_time": self._start_time,
            "end_time": end_time,
            "sessions_completed_today": self._completed_today,
        })

    def _go_idle(self) -> None:
        self._index = 0
        if self._phases:
            self._phase_duration = self._phases[0].duration_seconds
        else:
            self._phase_duration = 0
        self._remaining = self._phase_duration
        self._set_state(SessionStatus.IDLE)

    def _cancel_timers(self) -> None:
        self._qt_timer.stop()
        self._transition_timer.stop()

    def _set_state(self, new_status: SessionStatus) -> None:
        self._status = new_status
        self.state_changed.emit(new_status)

    def _notify(self, hook: str, *args) -> None:
        """Call *hook* on every sink.  A failing sink never stops the clock."""
        for sink in list(self._sinks):
            try:
                getattr(sink, hook)(*args)
            except Exception:
                logger.exception("Notification hook %s failed on %r", hook, sink)

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: database persistence
    # ══════════════════════════════════════════════════════════════════

    def _db_call(self, action, *args):
        """Run a persistence step.  A database failure is logged and the
        countdown carries on without the record."""
        try:
            return action(*args)
        except Exception:
            logger.exception("Database write %s failed", action.__name__)
            return None

    def _persist_start(
        self, template: SessionTemplate, topic: str, start_time: datetime
    ) -> int:
        from ..database.db import get_session
        from ..database.models import StudyRecord

        with get_session() as db:
            record = StudyRecord(
                start_time=start_time,
                title=template.title,
                topic=topic or None,
                phase_count=len(template.effective_phases),
                phases_completed=0,
                focus_minutes=0,
                completed=False,
            )
            db.add(record)
            db.flush()
            return record.id

    def _persist_progress(self, phases_completed: int) -> None:
        from ..database.db import get_session
        from ..database.models import StudyRecord

        with get_session() as db:
            record = db.get(StudyRecord, self._db_record_id)
            if record:
                record.phases_completed = max(record.phases_completed, phases_completed)

    def _persist_completed(self, end_time: datetime) -> None:
        from ..database.db import get_session
        from ..database.models import DailyStats, StudyRecord

        focus_minutes = self._template.focus_minutes
        with get_session() as db:
            if self._db_record_id is not None:
                record = db.get(StudyRecord, self._db_record_id)
                if record:
                    record.end_time = end_time
                    record.phases_completed = len(self._phases)
                    record.focus_minutes = focus_minutes
                    record.completed = True

            day = end_time.date()
            stats = db.query(DailyStats).filter(DailyStats.date == day).first()
            if stats is None:
                stats = DailyStats(date=day, sessions_completed=0, focus_minutes=0)
                db.add(stats)
            stats.sessions_completed += 1
            stats.focus_minutes += focus_minutes

    def _load_completed_today(self) -> int:
        from ..database.db import sessions_completed_on

        return sessions_completed_on(date.today())

"""Shared test helpers for StudySession."""

from studysession.timer.engine import SessionEngine
from studysession.timer.template import Phase, PhaseKind, SessionTemplate


POMODORO = SessionTemplate(
    title="Pomodoro",
    phases=(
        Phase("Focus", PhaseKind.FOCUS, 25),
        Phase("Short Break", PhaseKind.SHORT_BREAK, 5),
    ),
)

THREE_PHASE = SessionTemplate(
    title="Sprint",
    phases=(
        Phase("Warm-up", PhaseKind.FOCUS, 1),
        Phase("Breather", PhaseKind.SHORT_BREAK, 1),
        Phase("Deep Work", PhaseKind.FOCUS, 2),
    ),
)


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class RecordingSink:
    """Notification sink that records every hook call in order."""

    def __init__(self):
        self.events: list[tuple] = []

    def on_phase_complete(self, finished, next_name):
        self.events.append(("phase", finished, next_name))

    def on_session_complete(self):
        self.events.append(("session",))


class ExplodingSink:
    """Notification sink whose hooks always raise."""

    def __init__(self):
        self.calls = 0

    def on_phase_complete(self, finished, next_name):
        self.calls += 1
        raise RuntimeError("phase hook exploded")

    def on_session_complete(self):
        self.calls += 1
        raise RuntimeError("session hook exploded")


def tick_n(engine: SessionEngine, n: int) -> None:
    for _ in range(n):
        engine.tick()


def run_phase(engine: SessionEngine) -> None:
    """Tick the current phase down to zero."""
    tick_n(engine, engine.remaining)


def finish_transition(engine: SessionEngine) -> None:
    """Fire the pending inter-phase delay without waiting for it."""
    engine._transition_timer.stop()
    engine._on_transition_elapsed()


def run_session(engine: SessionEngine) -> None:
    """Run every remaining phase to exhaustion."""
    while True:
        run_phase(engine)
        if not engine.transition_pending:
            return
        finish_transition(engine)

"""Run one study session in the terminal: python -m studysession."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path

from PyQt6.QtCore import QCoreApplication

from .audio.notifier import SoundNotifier
from .database.db import init_db
from .notifications import MessageNotifier
from .settings import load_settings
from .timer import (
    PhaseKind,
    Phase,
    SessionEngine,
    SessionTemplate,
    TemplateError,
    format_percent,
    format_time,
)

logger = logging.getLogger("studysession")

POMODORO = SessionTemplate(
    title="Pomodoro",
    phases=(
        Phase("Focus", PhaseKind.FOCUS, 25),
        Phase("Short Break", PhaseKind.SHORT_BREAK, 5),
    ),
)


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="studysession",
        description="Run a study session with focus and break phases.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--minutes", type=int, help="single focus block of N minutes")
    source.add_argument("--template", type=Path, help="JSON template file")
    parser.add_argument("--topic", default=None, help="what you are studying")
    parser.add_argument("--mute", action="store_true", help="no sound cues")
    parser.add_argument("--no-db", action="store_true", help="do not record the session")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def load_template(args: argparse.Namespace) -> SessionTemplate:
    if args.minutes is not None:
        return SessionTemplate(title="Focus", duration_minutes=args.minutes)
    if args.template is not None:
        data = json.loads(args.template.read_text(encoding="utf-8"))
        return SessionTemplate.from_dict(data)
    return POMODORO


def _build_sound_notifier(app: QCoreApplication, volume: int, enabled: bool):
    """Sound sink, or None when QtMultimedia is unavailable."""
    try:
        from .audio.sounds import SoundManager
    except ImportError:
        logger.warning("QtMultimedia not available; running without sound")
        return None
    return SoundNotifier(SoundManager(app, volume=volume), enabled=enabled)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        template = load_template(args)
    except (OSError, ValueError) as error:
        # TemplateError and JSONDecodeError are both ValueErrors
        kind = "Invalid template" if isinstance(error, TemplateError) else "Cannot load template"
        print(f"{kind}: {error}", file=sys.stderr)
        sys.exit(2)

    settings = load_settings()
    db_enabled = not args.no_db
    if db_enabled:
        try:
            init_db()
        except Exception:
            logger.exception("Could not open the database; running without history")
            db_enabled = False

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName("StudySession")

    engine = SessionEngine(
        app,
        reset_policy=settings.reset_policy_enum,
        transition_delay_ms=settings.transition_delay_ms,
        db_enabled=db_enabled,
    )
    engine.add_sink(MessageNotifier(
        lambda message: print(f"\n{message}"),
        enabled=settings.notifications_enabled,
    ))

    sound = _build_sound_notifier(
        app, settings.sound_volume, settings.sound_enabled and not args.mute
    )
    if sound is not None:
        engine.add_sink(sound)

    def show_clock(remaining: int) -> None:
        phase = engine.current_phase
        print(
            f"\r{phase.name:<14} {format_time(remaining)}  "
            f"{format_percent(engine.progress_fraction):>4}",
            end="",
            flush=True,
        )

    def on_phase_started(index: int, phase: Phase) -> None:
        print(f"\n▶ {phase.name} ({phase.duration_minutes} min)")

    def on_session_completed(data: dict) -> None:
        print(f"Sessions completed today: {data['sessions_completed_today']}")
        app.quit()

    engine.ticked.connect(show_clock)
    engine.phase_started.connect(on_phase_started)
    engine.session_completed.connect(on_session_completed)

    def handle_sigint(signum, frame) -> None:
        print("\nStopping…")
        engine.stop()
        app.quit()

    signal.signal(signal.SIGINT, handle_sigint)

    if args.topic:
        print(f"Studying: {args.topic}")
    print(f"Sessions completed today: {engine.sessions_completed_today}")
    engine.start(template, args.topic)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()

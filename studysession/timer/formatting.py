"""Display helpers for the countdown."""

from __future__ import annotations


def format_time(seconds: int) -> str:
    """``MM:SS`` for a number of seconds.  Minutes are not capped at 59."""
    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"


def format_percent(fraction: float) -> str:
    """Whole-number percentage, e.g. ``0.426`` → ``"43%"``."""
    fraction = max(0.0, min(1.0, fraction))
    return f"{round(fraction * 100)}%"

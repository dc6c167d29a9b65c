"""Notification hooks the engine calls on phase and session completion.

The engine never plays sound or shows UI itself.  Anything with the two
``NotificationSink`` methods can be registered with
``SessionEngine.add_sink``; a failing hook is logged and ignored.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol


SESSION_COMPLETE_MESSAGE = "🎉 Study session completed! Great work!"


class NotificationSink(Protocol):
    """Host-side receiver for completion events."""

    def on_phase_complete(self, finished: str, next_name: Optional[str]) -> None:
        ...

    def on_session_complete(self) -> None:
        ...


def phase_complete_message(finished: str, next_name: Optional[str]) -> str:
    if next_name is None:
        return f"{finished} complete!"
    return f"{finished} complete! Starting {next_name}"


class MessageNotifier:
    """Turns completion events into short toast messages.

    ``show`` receives the text; the host decides how to surface it.
    Disable with ``enabled = False`` (checked when each event fires).
    """

    def __init__(self, show: Callable[[str], None], *, enabled: bool = True) -> None:
        self._show = show
        self.enabled = enabled

    def on_phase_complete(self, finished: str, next_name: Optional[str]) -> None:
        # The last phase is announced by the session message instead.
        if next_name is None or not self.enabled:
            return
        self._show(phase_complete_message(finished, next_name))

    def on_session_complete(self) -> None:
        if not self.enabled:
            return
        self._show(SESSION_COMPLETE_MESSAGE)

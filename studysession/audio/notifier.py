"""Notification sink that plays an audible cue."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class SoundPlayer(Protocol):
    def play(self, name: str) -> None:
        ...


class SoundNotifier:
    """Plays ``phase_complete`` between phases and ``session_complete``
    at the end.

    ``enabled`` may be flipped at any time; it is read when an event
    fires.  Playback errors are logged and dropped; a missing audio
    device must not disturb the timer.
    """

    def __init__(self, player: SoundPlayer, *, enabled: bool = True) -> None:
        self._player = player
        self.enabled = enabled

    def on_phase_complete(self, finished: str, next_name: Optional[str]) -> None:
        if next_name is None:
            return  # the session cue covers the last phase
        self._play("phase_complete")

    def on_session_complete(self) -> None:
        self._play("session_complete")

    def _play(self, name: str) -> None:
        if not self.enabled:
            return
        try:
            self._player.play(name)
        except Exception:
            logger.debug("Sound %r failed to play", name, exc_info=True)

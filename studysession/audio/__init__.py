"""Audio package.

``SoundManager`` needs QtMultimedia and is imported from
``studysession.audio.sounds`` directly.
"""

from .notifier import SoundNotifier, SoundPlayer
from .synth import SOUND_NAMES

__all__ = ["SoundNotifier", "SoundPlayer", "SOUND_NAMES"]

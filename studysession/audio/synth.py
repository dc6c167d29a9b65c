"""WAV synthesis for the notification cues.

Sounds are sine waves shaped by ADSR envelopes, rendered to 16-bit mono
PCM.  No Qt here, so the generators can be used (and tested) headless.

Sound names
-----------
- ``phase_complete``:   soft two-note bell between phases
- ``session_complete``: bright ascending arpeggio at the very end
"""

from __future__ import annotations

import io
import wave
from typing import Callable

import numpy as np


SAMPLE_RATE = 44100

SOUND_NAMES = (
    "phase_complete",
    "session_complete",
)


def _make_envelope(
    length: int,
    attack: int = 200,
    decay: int = 400,
    sustain_level: float = 0.7,
    release: int = 800,
) -> np.ndarray:
    """ADSR envelope (all durations in samples)."""
    env = np.ones(length, dtype=np.float64)
    # Attack
    a = min(attack, length)
    if a > 0:
        env[:a] = np.linspace(0.0, 1.0, a)
    # Decay
    d_end = min(a + decay, length)
    if decay > 0 and d_end > a:
        env[a:d_end] = np.linspace(1.0, sustain_level, d_end - a)
    # Sustain
    s_end = max(length - release, d_end)
    if s_end > d_end:
        env[d_end:s_end] = sustain_level
    # Release
    if release > 0 and s_end < length:
        env[s_end:] = np.linspace(sustain_level, 0.0, length - s_end)
    return env


def _sine(freq: float, duration_s: float) -> np.ndarray:
    t = np.linspace(0, duration_s, int(SAMPLE_RATE * duration_s), endpoint=False)
    return np.sin(2 * np.pi * freq * t)


def _to_wav_bytes(samples: np.ndarray) -> bytes:
    """Convert a float64 array (-1..1) to 16-bit PCM WAV bytes."""
    samples = np.clip(samples, -1.0, 1.0)
    int_samples = (samples * 32767).astype(np.int16)

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(int_samples.tobytes())
    return buf.getvalue()


def generate_phase_bell() -> bytes:
    """Phase complete: A5 then E5, each with a quiet octave overtone."""
    parts: list[np.ndarray] = []
    for freq in (880.0, 659.25):
        tone = _sine(freq, 0.35) * 0.4 + _sine(freq * 2, 0.35) * 0.06
        env = _make_envelope(
            len(tone),
            attack=int(SAMPLE_RATE * 0.01),
            decay=int(SAMPLE_RATE * 0.1),
            sustain_level=0.3,
            release=int(SAMPLE_RATE * 0.2),
        )
        parts.append(tone * env)
        parts.append(np.zeros(int(SAMPLE_RATE * 0.04)))
    return _to_wav_bytes(np.concatenate(parts))


def generate_session_arpeggio() -> bytes:
    """Session complete: C5→E5→G5→C6, last note held."""
    notes = [523.25, 659.25, 783.99, 1046.50]
    parts: list[np.ndarray] = []
    for i, freq in enumerate(notes):
        last = i == len(notes) - 1
        tone = _sine(freq, 0.35 if last else 0.10) * 0.5
        if last:
            env = _make_envelope(len(tone), attack=80, decay=300, sustain_level=0.5, release=600)
        else:
            env = _make_envelope(len(tone), attack=60, decay=150, sustain_level=0.3, release=200)
        parts.append(tone * env)
        if not last:
            parts.append(np.zeros(int(SAMPLE_RATE * 0.02)))
    return _to_wav_bytes(np.concatenate(parts))


GENERATORS: dict[str, Callable[[], bytes]] = {
    "phase_complete": generate_phase_bell,
    "session_complete": generate_session_arpeggio,
}

"""Session templates: the phase structure a study session runs through.

A template is either a list of phases::

    SessionTemplate(
        title="Pomodoro",
        phases=(
            Phase("Focus", PhaseKind.FOCUS, 25),
            Phase("Short Break", PhaseKind.SHORT_BREAK, 5),
        ),
    )

or a single flat duration, which behaves like a one-phase focus block::

    SessionTemplate(title="Deep Work", duration_minutes=50)

Templates validate themselves on construction, so a malformed one never
reaches the engine.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum


SINGLE_PHASE_NAME = "Focus Time"
DEFAULT_TITLE = "Study Session"


class TemplateError(ValueError):
    """Raised when a session template is malformed."""


class PhaseKind(Enum):
    FOCUS = "focus"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"
    OTHER = "other"  # fallback for kinds we don't recognise

    @classmethod
    def parse(cls, value: object) -> PhaseKind:
        """Map a raw type tag to a kind.  Never raises."""
        if isinstance(value, cls):
            return value
        for kind in cls:
            if kind.value == value:
                return kind
        return cls.OTHER


def _check_minutes(value: object, what: str) -> int:
    # bool is an int subclass; True minutes is not a duration
    if isinstance(value, bool) or not isinstance(value, int):
        raise TemplateError(f"{what} must be an integer number of minutes, got {value!r}")
    if value <= 0:
        raise TemplateError(f"{what} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Phase:
    """One named, timed segment of a session."""

    name: str
    kind: PhaseKind
    duration_minutes: int

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise TemplateError("phase name must be a non-empty string")
        if not isinstance(self.kind, PhaseKind):
            object.__setattr__(self, "kind", PhaseKind.parse(self.kind))
        _check_minutes(self.duration_minutes, f"duration of phase {self.name!r}")

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    @property
    def is_break(self) -> bool:
        return self.kind in (PhaseKind.SHORT_BREAK, PhaseKind.LONG_BREAK)


@dataclass(frozen=True)
class SessionTemplate:
    """Phase structure of a session.  Exactly one of ``phases`` or
    ``duration_minutes`` is set."""

    title: str = DEFAULT_TITLE
    phases: tuple[Phase, ...] = ()
    duration_minutes: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.phases, tuple):
            object.__setattr__(self, "phases", tuple(self.phases))

        has_phases = len(self.phases) > 0
        has_duration = self.duration_minutes is not None
        if has_phases and has_duration:
            raise TemplateError("template has both phases and a flat duration")
        if not has_phases and not has_duration:
            raise TemplateError("template needs a non-empty phase list or a duration")

        if has_duration:
            _check_minutes(self.duration_minutes, "template duration")
        for phase in self.phases:
            if not isinstance(phase, Phase):
                raise TemplateError(f"expected Phase, got {type(phase).__name__}")

    # ── shape ─────────────────────────────────────────────────────────

    @property
    def is_single_phase(self) -> bool:
        """True for the flat-duration form."""
        return self.duration_minutes is not None

    @property
    def effective_phases(self) -> tuple[Phase, ...]:
        """The phase list the engine runs.  The flat form becomes a
        single focus phase."""
        if self.duration_minutes is not None:
            return (Phase(SINGLE_PHASE_NAME, PhaseKind.FOCUS, self.duration_minutes),)
        return self.phases

    @property
    def total_minutes(self) -> int:
        return sum(p.duration_minutes for p in self.effective_phases)

    @property
    def focus_minutes(self) -> int:
        """Minutes spent outside breaks."""
        return sum(
            p.duration_minutes for p in self.effective_phases if not p.is_break
        )

    # ── parsing ───────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: Mapping) -> SessionTemplate:
        """Build a template from a plain mapping.

        Accepted keys: ``title``, ``phases`` (list of mappings with
        ``name``, ``type`` and ``duration``) and ``duration``.
        ``duration_minutes`` is accepted as an alias for ``duration``.
        """
        if not isinstance(data, Mapping):
            raise TemplateError(f"template must be a mapping, got {type(data).__name__}")

        title = data.get("title") or DEFAULT_TITLE
        raw_phases = data.get("phases")
        duration = data.get("duration", data.get("duration_minutes"))

        phases: list[Phase] = []
        if raw_phases is not None:
            if isinstance(raw_phases, (str, bytes)) or not hasattr(raw_phases, "__iter__"):
                raise TemplateError("'phases' must be a list")
            for raw in raw_phases:
                if not isinstance(raw, Mapping):
                    raise TemplateError("each phase must be a mapping")
                phases.append(Phase(
                    name=raw.get("name", ""),
                    kind=PhaseKind.parse(raw.get("type", raw.get("kind"))),
                    duration_minutes=raw.get("duration", raw.get("duration_minutes")),
                ))
            if not phases:
                raise TemplateError("'phases' must not be empty")
            # a phase list wins over a stray flat duration, as the host UI does
            duration = None

        return cls(title=title, phases=tuple(phases), duration_minutes=duration)

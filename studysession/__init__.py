"""StudySession: a phase-sequenced study timer."""

__version__ = "0.1.0"

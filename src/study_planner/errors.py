"""Errors raised for invalid calls into the planner core."""


class PomodoroConfigError(Exception):
    """Raised when a focus session cannot start with the current settings."""


class InvalidRatingError(ValueError):
    """Raised for a flashcard rating outside 1-4."""


class StudyLogError(ValueError):
    """Raised for a study log entry that cannot be recorded."""


class ImportFormatError(ValueError):
    """Raised for a plan file that cannot be imported."""

"""
errors.py

Exception types raised by the solver core.
"""


class BoardValidationError(ValueError):
    """A board state is malformed. Reported as a warning, never raised to callers."""


class InitializationError(RuntimeError):
    """The parallel first-guess pass could not start, failed, or was superseded."""

"""Validation errors raised by the nutrition core."""


class CbLensError(ValueError):
    """Base class for core input-contract violations."""


class InvalidPortionError(CbLensError):
    """Raised when a portion preset has no multiplier mapping."""


class MissingCandidateError(CbLensError):
    """Raised when a scan is built without a selected dish candidate."""


class InvalidWindowError(CbLensError):
    """Raised when an aggregation window is empty or inverted."""


class InvalidGoalError(CbLensError):
    """Raised when a goal cannot be evaluated."""

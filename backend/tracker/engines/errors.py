"""Error kinds raised by the tracker engines.

Each kind maps onto one HTTP status family in tracker.main:
  NotFoundError    → 404  (transition, task, milestone or parent task absent)
  ValidationError  → 400  (date window, past date, cross-transition reference)
  ConflictError    → 409  (unique / integrity violation surfaced by the store)
"""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for domain errors raised by the engines."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(TrackerError):
    """A referenced entity does not exist."""

    status_code = 404


class ValidationError(TrackerError):
    """Input violates a temporal or hierarchy rule."""

    status_code = 400


class ConflictError(TrackerError):
    """A write collided with an existing row."""

    status_code = 409

"""Exceptions raised by the exam scheduler."""

from __future__ import annotations

from typing import Optional


class SchedulingError(ValueError):
    """Base class for every scheduling failure."""


class InvalidInput(SchedulingError):
    """Malformed input (empty lists, bad ranges, duplicates, count mismatch)."""


class CapacityInfeasible(SchedulingError):
    """The rooms or the period are too small for the courses."""


class PlacementFailed(SchedulingError):
    """A course could not be placed on any attempt."""

    def __init__(self, message: str, *, course_code: Optional[str] = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.course_code = course_code
        self.attempts = attempts

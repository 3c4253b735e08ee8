"""Data models for exam scheduling.

Inputs (`Course`, `Classroom`, `ExamPeriod`) are immutable for the duration of
a run. Outputs (`Exam`, `Conflict`, `ScheduleResult`) are produced by the
scheduler and the conflict audit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import FrozenSet, Optional, Tuple


# ----------------------------
# Inputs
# ----------------------------


@dataclass(frozen=True)
class Course:
    course_code: str
    enrolled_students: FrozenSet[str] = frozenset()
    # Count claimed by the upstream data source; checked against the enrolled set.
    reported_count: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "enrolled_students", frozenset(str(s) for s in self.enrolled_students))

    @property
    def student_count(self) -> int:
        if self.reported_count is not None:
            return int(self.reported_count)
        return len(self.enrolled_students)


@dataclass(frozen=True)
class Classroom:
    classroom_id: str
    capacity: int


@dataclass(frozen=True)
class ExamPeriod:
    start_date: date
    end_date: date
    min_slot: int
    max_slot: int
    max_exams_per_day: int = 2
    # Two exams of a student on the same day must be more than this many slots apart.
    min_gap_between_exams: int = 1

    @property
    def slots_per_day(self) -> int:
        return self.max_slot - self.min_slot + 1

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    @property
    def days(self) -> Tuple[date, ...]:
        return tuple(self.start_date + timedelta(days=i) for i in range(max(self.total_days, 0)))

    @property
    def slots(self) -> Tuple[int, ...]:
        return tuple(range(self.min_slot, self.max_slot + 1))


@dataclass(frozen=True)
class ExamProblem:
    """A complete scheduling request as loaded from a problem file."""

    name: str
    courses: Tuple[Course, ...]
    classrooms: Tuple[Classroom, ...]
    start_date: date
    end_date: date
    min_slot: int
    max_slot: int


# ----------------------------
# Outputs
# ----------------------------


@dataclass(frozen=True)
class Exam:
    course_code: str
    classroom_id: str
    exam_date: date
    slot: int
    duration: int = 2  # hours
    capacity: int = 0  # room capacity at the time of placement


class ConflictType(str, Enum):
    MAX_EXAMS_EXCEEDED = "MAX_EXAMS_EXCEEDED"
    CONSECUTIVE_EXAMS = "CONSECUTIVE_EXAMS"
    DOUBLE_BOOKING = "DOUBLE_BOOKING"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    ROOM_UNAVAILABLE = "ROOM_UNAVAILABLE"


@dataclass(frozen=True)
class Conflict:
    kind: ConflictType
    message: str
    date: date
    exams: Tuple[Exam, ...]
    student_id: Optional[str] = None

    def __str__(self) -> str:
        return f"Conflict[{self.kind.value}]: {self.message}"


@dataclass(frozen=True)
class ScheduleResult:
    """A generated exam timetable.

    exams are ordered by (date, slot); within one slot they keep placement order.
    """

    name: str
    period: ExamPeriod
    exams: Tuple[Exam, ...]
    conflicts: Tuple[Conflict, ...] = ()
    attempts: int = 1
    backtracks: int = 0

    @property
    def total_exams(self) -> int:
        return len(self.exams)

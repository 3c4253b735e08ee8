"""Exam scheduling: models, validation, generation and conflict audit."""

from .conflicts import audit_conflicts
from .errors import CapacityInfeasible, InvalidInput, PlacementFailed, SchedulingError
from .exam_scheduler import (
    compute_metrics,
    format_schedule_as_rows,
    generate_schedule,
    improvement_suggestions,
)
from .models import (
    Classroom,
    Conflict,
    ConflictType,
    Course,
    Exam,
    ExamPeriod,
    ExamProblem,
    ScheduleResult,
)
from .settings import ExamSchedulingSettings, settings_from_env
from .validation import sort_classrooms, sort_courses, validate_inputs

__all__ = [
    "audit_conflicts",
    "CapacityInfeasible",
    "InvalidInput",
    "PlacementFailed",
    "SchedulingError",
    "compute_metrics",
    "format_schedule_as_rows",
    "generate_schedule",
    "improvement_suggestions",
    "Classroom",
    "Conflict",
    "ConflictType",
    "Course",
    "Exam",
    "ExamPeriod",
    "ExamProblem",
    "ScheduleResult",
    "ExamSchedulingSettings",
    "settings_from_env",
    "sort_classrooms",
    "sort_courses",
    "validate_inputs",
]

"""Exam timetable generation module.

Assigns every course exactly one (date, slot, classroom) over an exam period,
using the greedy placement engine from `allocator.placement`.

Hard rules (never violated by a returned schedule)
-------------------------------------------------
- a classroom holds at most one exam per (date, slot)
- an exam's classroom seats all of its students
- a student sits at most `max_exams_per_day` exams on one date
- two exams of a student on the same date are more than
  `min_gap_between_exams` slots apart (adjacent slots are always refused)

Flow
----
validate -> order courses/rooms -> up to `max_attempts` placement attempts
(attempt 0 in deterministic order, later attempts shuffled) -> conflict audit.

The placement engine only ever undoes the most recent placement, so a failure
does not prove that no schedule exists.
"""

from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Dict, List, Optional, Sequence

import logging
import random

from allocator import PlacementConfig, PlacementEngine, UnplaceableError

from .conflicts import audit_conflicts
from .errors import PlacementFailed
from .models import Classroom, Course, Exam, ExamPeriod, ScheduleResult
from .settings import ExamSchedulingSettings
from .validation import slot_bound, sort_classrooms, sort_courses, validate_inputs


logger = logging.getLogger(__name__)


# -------------------------------------------------
# Solve
# -------------------------------------------------


def _build_engine(
    courses: Sequence[Course],
    classrooms: Sequence[Classroom],
    period: ExamPeriod,
    settings: ExamSchedulingSettings,
) -> PlacementEngine:
    student_ids = sorted({sid for c in courses for sid in c.enrolled_students})
    student_index = {sid: i for i, sid in enumerate(student_ids)}

    config = PlacementConfig(
        days=period.total_days,
        slots_per_day=period.slots_per_day,
        max_per_day=period.max_exams_per_day,
        min_gap=period.min_gap_between_exams,
        backtrack_factor=settings.backtrack_factor,
    )
    return PlacementEngine(
        demands=[c.student_count for c in courses],
        members=[[student_index[sid] for sid in c.enrolled_students] for c in courses],
        room_capacities=[int(r.capacity) for r in classrooms],
        config=config,
    )


def generate_schedule(
    name: str,
    courses: Sequence[Course],
    classrooms: Sequence[Classroom],
    start_date: date,
    end_date: date,
    min_slot: int,
    max_slot: int,
    settings: ExamSchedulingSettings = ExamSchedulingSettings(),
    rng: Optional[random.Random] = None,
) -> ScheduleResult:
    """Generate an exam timetable.

    Args:
        rng: Random source for the shuffles of retry attempts. Defaults to
            `random.Random(settings.seed)`.

    Returns:
        ScheduleResult with exams sorted by (date, slot) and the audit findings.

    Raises:
        InvalidInput, CapacityInfeasible: before any placement work.
        PlacementFailed: when every attempt left a course unplaced.
    """

    period = ExamPeriod(
        start_date=start_date,
        end_date=end_date,
        min_slot=slot_bound(min_slot, "min_slot"),
        max_slot=slot_bound(max_slot, "max_slot"),
        max_exams_per_day=int(settings.max_exams_per_day),
        min_gap_between_exams=int(settings.min_gap_between_exams),
    )
    validate_inputs(courses, classrooms, period)

    ordered_courses = sort_courses(courses)
    ordered_rooms = sort_classrooms(classrooms)
    engine = _build_engine(ordered_courses, ordered_rooms, period, settings)

    logger.info(
        "Scheduling %r: %d courses, %d classrooms, %d days x %d slots",
        name,
        len(ordered_courses),
        len(ordered_rooms),
        period.total_days,
        period.slots_per_day,
    )

    if rng is None:
        rng = random.Random(settings.seed)

    max_attempts = max(1, int(settings.max_attempts))
    outcome = None
    last_error: Optional[UnplaceableError] = None
    attempts = 0

    for attempt in range(max_attempts):
        attempts = attempt + 1
        order = list(range(len(ordered_courses)))
        if attempt > 0:
            rng.shuffle(order)
        logger.debug("Attempt %d order: %s", attempt, [ordered_courses[i].course_code for i in order])

        try:
            outcome = engine.run(order)
        except UnplaceableError as exc:
            last_error = exc
            logger.warning(
                "Attempt %d/%d failed: course %s could not be placed",
                attempts,
                max_attempts,
                ordered_courses[exc.item].course_code,
            )
            continue
        break

    if outcome is None:
        course = ordered_courses[last_error.item]
        raise PlacementFailed(
            f"Failed to generate schedule after {max_attempts} attempts. Last error: "
            f"Cannot place course {course.course_code} (students: {course.student_count}). "
            "Consider increasing exam period or slots per day.",
            course_code=course.course_code,
            attempts=max_attempts,
        )

    days = period.days
    exams = [
        Exam(
            course_code=ordered_courses[p.item].course_code,
            classroom_id=ordered_rooms[p.room].classroom_id,
            exam_date=days[p.day],
            slot=period.min_slot + p.slot,
            duration=int(settings.exam_duration_hours),
            capacity=int(ordered_rooms[p.room].capacity),
        )
        for p in outcome.placements
    ]
    exams.sort(key=lambda e: (e.exam_date, e.slot))

    draft = ScheduleResult(
        name=name,
        period=period,
        exams=tuple(exams),
        attempts=attempts,
        backtracks=outcome.backtracks,
    )
    conflicts = audit_conflicts(draft, courses, classrooms)
    if conflicts:
        logger.warning("Schedule %r has %d conflicts after generation", name, len(conflicts))

    logger.info(
        "Scheduled %d exams for %r (attempts: %d, backtracks: %d)",
        len(exams),
        name,
        attempts,
        outcome.backtracks,
    )
    return ScheduleResult(
        name=name,
        period=period,
        exams=tuple(exams),
        conflicts=tuple(conflicts),
        attempts=attempts,
        backtracks=outcome.backtracks,
    )


# -------------------------------------------------
# Reporting
# -------------------------------------------------


def format_schedule_as_rows(result: ScheduleResult) -> List[Dict[str, object]]:
    """Return a list of rows suitable for tables/CSV."""

    return [
        {
            "course": e.course_code,
            "date": e.exam_date.isoformat(),
            "slot": e.slot,
            "classroom": e.classroom_id,
            "capacity": e.capacity,
            "duration": e.duration,
        }
        for e in result.exams
    ]


def compute_metrics(result: ScheduleResult, courses: Sequence[Course]) -> Dict[str, float]:
    """Return metrics used for reports."""

    course_map = {c.course_code: c for c in courses}

    exams_per_student: Counter = Counter()
    for exam in result.exams:
        course = course_map.get(exam.course_code)
        if course is None:
            continue
        for sid in course.enrolled_students:
            exams_per_student[sid] += 1

    avg = sum(exams_per_student.values()) / len(exams_per_student) if exams_per_student else 0.0

    return {
        "total_exams": float(len(result.exams)),
        "classrooms_used": float(len({e.classroom_id for e in result.exams})),
        "average_exams_per_student": float(avg),
        "conflicts": float(len(result.conflicts)),
        "attempts": float(result.attempts),
        "backtracks": float(result.backtracks),
    }


def improvement_suggestions(result: ScheduleResult) -> List[str]:
    """Advisory notes on room usage and day balance. Never changes the schedule."""

    suggestions: List[str] = []

    room_usage = Counter(e.classroom_id for e in result.exams)
    if room_usage:
        busiest = max(room_usage.values())
        for room_id in sorted(room_usage):
            usage = room_usage[room_id]
            if usage < busiest // 3:
                suggestions.append(f"Classroom {room_id} is underutilized ({usage} exams vs max {busiest})")

    per_day = Counter(e.exam_date for e in result.exams)
    if per_day and max(per_day.values()) - min(per_day.values()) > 5:
        suggestions.append("Exam distribution across days is uneven")

    return suggestions

"""Input validation and ordering heuristics for the exam scheduler."""

from __future__ import annotations

from typing import List, Sequence

from .errors import CapacityInfeasible, InvalidInput
from .models import Classroom, Course, ExamPeriod


def slot_bound(value, name: str) -> int:
    """Coerce a slot bound to int, rejecting None and non-numeric values."""

    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be an integer, got {value!r}") from None


def validate_inputs(courses: Sequence[Course], classrooms: Sequence[Classroom], period: ExamPeriod) -> None:
    """Reject input that cannot be scheduled, before any placement work.

    Checks run in a fixed order and the first violation is raised.

    Raises:
        InvalidInput: empty lists, bad room data, bad date/slot range, bad
            rules, duplicate course codes, student count mismatch.
        CapacityInfeasible: a course larger than every room, or fewer
            (day, slot, room) cells than courses.
    """

    if not courses:
        raise InvalidInput("No courses provided for scheduling")
    if not classrooms:
        raise InvalidInput("No classrooms available for exams")

    room_ids = set()
    for room in classrooms:
        if int(room.capacity) <= 0:
            raise InvalidInput(f"Classroom {room.classroom_id} must have a positive capacity")
        if room.classroom_id in room_ids:
            raise InvalidInput(f"Duplicate classroom id: {room.classroom_id}")
        room_ids.add(room.classroom_id)

    if period.start_date is None or period.end_date is None:
        raise InvalidInput("Exam period dates must be specified")
    if period.start_date > period.end_date:
        raise InvalidInput("Start date must not be after end date")
    if period.min_slot < 0 or period.max_slot < period.min_slot:
        raise InvalidInput(f"Invalid slot range: {period.min_slot}..{period.max_slot}")

    if period.max_exams_per_day < 1:
        raise InvalidInput("Max exams per day must be at least 1")
    if period.min_gap_between_exams < 0:
        raise InvalidInput("Min gap between exams must not be negative")

    codes = set()
    for course in courses:
        if course.course_code in codes:
            raise InvalidInput(f"Duplicate course code: {course.course_code}")
        codes.add(course.course_code)

    max_capacity = max(int(r.capacity) for r in classrooms)
    oversized = [c.course_code for c in courses if c.student_count > max_capacity]
    if oversized:
        raise CapacityInfeasible(
            f"Courses exceed maximum classroom capacity ({max_capacity}): {', '.join(oversized)}"
        )

    for course in courses:
        if course.student_count != len(course.enrolled_students):
            raise InvalidInput(
                f"Student count mismatch for course {course.course_code}: "
                f"reported {course.student_count}, enrolled {len(course.enrolled_students)}"
            )

    total_days = period.total_days
    slots_per_day = period.slots_per_day
    available = total_days * slots_per_day * len(classrooms)
    if len(courses) > available:
        raise CapacityInfeasible(
            f"Insufficient resources: {len(courses)} courses need {len(courses)} exam slots, "
            f"but only {available} slots available "
            f"(Days: {total_days}, Slots/Day: {slots_per_day}, Rooms: {len(classrooms)})"
        )


def sort_courses(courses: Sequence[Course]) -> List[Course]:
    """Largest courses first; ties by course code, descending."""

    return sorted(courses, key=lambda c: (c.student_count, c.course_code), reverse=True)


def sort_classrooms(classrooms: Sequence[Classroom]) -> List[Classroom]:
    """Smallest rooms first; ties by room id, ascending."""

    return sorted(classrooms, key=lambda r: (int(r.capacity), r.classroom_id))

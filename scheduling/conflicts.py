"""Post-generation conflict audit.

Re-derives student and room usage from a finished exam list and reports rule
violations as `Conflict` records. The audit is advisory: it never raises and
never moves exams. On a schedule produced by `generate_schedule` the student
rules are enforced during placement, so a non-empty audit there points to a
regression rather than an expected outcome. It is also usable on schedules
loaded from elsewhere.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from .models import Classroom, Conflict, ConflictType, Course, Exam, ScheduleResult


def _room_conflicts(
    exams: Sequence[Exam],
    course_map: Dict[str, Course],
    classrooms: Optional[Sequence[Classroom]],
) -> List[Conflict]:
    conflicts: List[Conflict] = []

    by_cell: Dict[Tuple[date, int, str], List[Exam]] = {}
    for exam in exams:
        by_cell.setdefault((exam.exam_date, exam.slot, exam.classroom_id), []).append(exam)

    for (day, slot, room_id), cell_exams in sorted(by_cell.items(), key=lambda kv: kv[0]):
        if len(cell_exams) > 1:
            codes = ", ".join(e.course_code for e in cell_exams)
            conflicts.append(
                Conflict(
                    kind=ConflictType.DOUBLE_BOOKING,
                    message=f"Classroom {room_id} holds {len(cell_exams)} exams at slot {slot} on {day}: {codes}",
                    date=day,
                    exams=tuple(cell_exams),
                )
            )

    known_rooms = {r.classroom_id for r in classrooms} if classrooms is not None else None
    for exam in exams:
        if known_rooms is not None and exam.classroom_id not in known_rooms:
            conflicts.append(
                Conflict(
                    kind=ConflictType.ROOM_UNAVAILABLE,
                    message=f"Exam {exam.course_code} uses unknown classroom {exam.classroom_id}",
                    date=exam.exam_date,
                    exams=(exam,),
                )
            )

        course = course_map.get(exam.course_code)
        if course is not None and exam.capacity < course.student_count:
            conflicts.append(
                Conflict(
                    kind=ConflictType.CAPACITY_EXCEEDED,
                    message=(
                        f"Exam {exam.course_code} has {course.student_count} students "
                        f"but classroom {exam.classroom_id} seats {exam.capacity}"
                    ),
                    date=exam.exam_date,
                    exams=(exam,),
                )
            )

    return conflicts


def _student_conflicts(
    exams: Sequence[Exam],
    course_map: Dict[str, Course],
    max_exams_per_day: int,
    min_gap: int,
) -> List[Conflict]:
    by_student: Dict[str, Dict[date, List[Exam]]] = {}
    for exam in exams:
        course = course_map.get(exam.course_code)
        if course is None:
            continue
        for sid in course.enrolled_students:
            by_student.setdefault(sid, {}).setdefault(exam.exam_date, []).append(exam)

    conflicts: List[Conflict] = []
    for sid in sorted(by_student):
        for day in sorted(by_student[sid]):
            day_exams = by_student[sid][day]

            if len(day_exams) > max_exams_per_day:
                conflicts.append(
                    Conflict(
                        kind=ConflictType.MAX_EXAMS_EXCEEDED,
                        message=f"Student {sid} has {len(day_exams)} exams on {day} (max: {max_exams_per_day})",
                        date=day,
                        exams=tuple(day_exams),
                        student_id=sid,
                    )
                )

            slots = sorted(e.slot for e in day_exams)
            for current, following in zip(slots, slots[1:]):
                if following - current <= min_gap:
                    pair = tuple(e for e in day_exams if e.slot in (current, following))
                    conflicts.append(
                        Conflict(
                            kind=ConflictType.CONSECUTIVE_EXAMS,
                            message=f"Student {sid} has consecutive exams at slots {current} and {following} on {day}",
                            date=day,
                            exams=pair,
                            student_id=sid,
                        )
                    )
    return conflicts


def audit_conflicts(
    result: ScheduleResult,
    courses: Sequence[Course],
    classrooms: Optional[Sequence[Classroom]] = None,
) -> List[Conflict]:
    """Return every rule violation found in `result`.

    Room-level conflicts (double booking, unknown room, capacity) come first,
    then per-student conflicts ordered by student id and date.

    Args:
        classrooms: When given, exams in rooms outside this list are reported
            as ROOM_UNAVAILABLE.
    """

    course_map = {c.course_code: c for c in courses}
    period = result.period

    conflicts = _room_conflicts(result.exams, course_map, classrooms)
    conflicts.extend(
        _student_conflicts(
            result.exams,
            course_map,
            max_exams_per_day=period.max_exams_per_day,
            min_gap=period.min_gap_between_exams,
        )
    )
    return conflicts

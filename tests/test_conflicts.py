import sys
from datetime import date
from pathlib import Path

# Ensure project root is on PYTHONPATH
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scheduling import (
    Classroom,
    ConflictType,
    Course,
    Exam,
    ExamPeriod,
    ScheduleResult,
    audit_conflicts,
)


DAY1 = date(2026, 1, 12)
DAY2 = date(2026, 1, 13)
PERIOD = ExamPeriod(start_date=DAY1, end_date=DAY2, min_slot=1, max_slot=4)


def _exam(code, slot, room="R1", day=DAY1, capacity=30):
    return Exam(course_code=code, classroom_id=room, exam_date=day, slot=slot, capacity=capacity)


def _result(*exams):
    return ScheduleResult(name="Audit", period=PERIOD, exams=tuple(exams))


def test_clean_schedule_has_no_conflicts():
    courses = [Course("A", frozenset({"s1"})), Course("B", frozenset({"s1"}))]
    result = _result(_exam("A", 1), _exam("B", 3))

    assert audit_conflicts(result, courses) == []


def test_daily_cap_and_consecutive_slots_for_one_student():
    courses = [
        Course("A", frozenset({"s1"})),
        Course("B", frozenset({"s1"})),
        Course("C", frozenset({"s1"})),
    ]
    a, b, c = _exam("A", 1, "R1"), _exam("B", 2, "R2"), _exam("C", 4, "R1")

    conflicts = audit_conflicts(_result(a, b, c), courses)

    assert [x.kind for x in conflicts] == [ConflictType.MAX_EXAMS_EXCEEDED, ConflictType.CONSECUTIVE_EXAMS]
    cap, consecutive = conflicts
    assert cap.student_id == "s1"
    assert cap.date == DAY1
    assert set(cap.exams) == {a, b, c}
    assert "3 exams" in cap.message
    assert set(consecutive.exams) == {a, b}
    assert "slots 1 and 2" in consecutive.message


def test_same_slot_for_one_student_counts_as_consecutive():
    courses = [Course("A", frozenset({"s1"})), Course("B", frozenset({"s1", "s2"}))]

    conflicts = audit_conflicts(_result(_exam("A", 2, "R1"), _exam("B", 2, "R2")), courses)

    assert [(x.kind, x.student_id) for x in conflicts] == [(ConflictType.CONSECUTIVE_EXAMS, "s1")]


def test_exams_on_different_days_do_not_interact():
    courses = [Course("A", frozenset({"s1"})), Course("B", frozenset({"s1"})), Course("C", frozenset({"s1"}))]
    result = _result(_exam("A", 1), _exam("B", 3), _exam("C", 2, day=DAY2))

    assert audit_conflicts(result, courses) == []


def test_room_double_booking():
    courses = [Course("A", frozenset({"s1"})), Course("B", frozenset({"s2"}))]
    a, b = _exam("A", 1, "R1"), _exam("B", 1, "R1")

    conflicts = audit_conflicts(_result(a, b), courses)

    assert len(conflicts) == 1
    assert conflicts[0].kind is ConflictType.DOUBLE_BOOKING
    assert conflicts[0].exams == (a, b)
    assert conflicts[0].student_id is None


def test_capacity_exceeded_uses_snapshot():
    courses = [Course("A", frozenset({"s1", "s2", "s3"}))]

    conflicts = audit_conflicts(_result(_exam("A", 1, capacity=2)), courses)

    assert [x.kind for x in conflicts] == [ConflictType.CAPACITY_EXCEEDED]
    assert "3 students" in conflicts[0].message


def test_unknown_room_only_checked_when_rooms_given():
    courses = [Course("A", frozenset({"s1"}))]
    result = _result(_exam("A", 1, "GONE"))

    assert audit_conflicts(result, courses) == []

    conflicts = audit_conflicts(result, courses, [Classroom(classroom_id="R1", capacity=30)])
    assert [x.kind for x in conflicts] == [ConflictType.ROOM_UNAVAILABLE]


def test_unknown_course_is_skipped():
    courses = [Course("A", frozenset({"s1"}))]
    result = _result(_exam("A", 1), _exam("GHOST", 2))

    assert audit_conflicts(result, courses) == []


def test_min_gap_from_period_is_used():
    period = ExamPeriod(start_date=DAY1, end_date=DAY1, min_slot=1, max_slot=6, min_gap_between_exams=2)
    courses = [Course("A", frozenset({"s1"})), Course("B", frozenset({"s1"}))]
    result = ScheduleResult(name="Gap", period=period, exams=(_exam("A", 1), _exam("B", 3, "R2")))

    conflicts = audit_conflicts(result, courses)

    assert [x.kind for x in conflicts] == [ConflictType.CONSECUTIVE_EXAMS]
    assert str(conflicts[0]).startswith("Conflict[CONSECUTIVE_EXAMS]")

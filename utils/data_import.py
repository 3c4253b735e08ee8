"""Load scheduling input from JSON problem files and CSV tables."""

from __future__ import annotations

import json
from datetime import date
from typing import Dict, List, Set

import pandas as pd

from scheduling.errors import InvalidInput
from scheduling.models import Classroom, Course, ExamProblem


def _parse_date(value, field: str) -> date:
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidInput(f"{field} must be an ISO date (YYYY-MM-DD), got {value!r}") from None


def load_exam_problem_from_json(path: str) -> ExamProblem:
    """Load an `ExamProblem` from a JSON file.

    Expected shape::

        {
          "name": "Fall finals",
          "start_date": "2026-01-12", "end_date": "2026-01-16",
          "min_slot": 1, "max_slot": 4,
          "classrooms": [{"classroom_id": "R101", "capacity": 40}],
          "courses": [{"course_code": "CSE101", "students": ["S001", "S002"]}]
        }

    A course may carry `student_count`; it is kept as the reported count so the
    validator can compare it with the enrolled list.
    """

    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidInput(f"Malformed problem file: {path}: {exc}") from None

    try:
        classrooms = tuple(
            Classroom(classroom_id=str(r["classroom_id"]), capacity=int(r["capacity"]))
            for r in raw["classrooms"]
        )
        courses = tuple(
            Course(
                course_code=str(c["course_code"]),
                enrolled_students=frozenset(str(s) for s in c.get("students", [])),
                reported_count=int(c["student_count"]) if c.get("student_count") is not None else None,
            )
            for c in raw["courses"]
        )
        problem = ExamProblem(
            name=str(raw.get("name", "Exam Schedule")),
            courses=courses,
            classrooms=classrooms,
            start_date=_parse_date(raw["start_date"], "start_date"),
            end_date=_parse_date(raw["end_date"], "end_date"),
            min_slot=int(raw.get("min_slot", 1)),
            max_slot=int(raw["max_slot"]),
        )
    except KeyError as exc:
        raise InvalidInput(f"Missing field in problem file: {exc.args[0]}") from None
    except (TypeError, ValueError) as exc:
        if isinstance(exc, InvalidInput):
            raise
        raise InvalidInput(f"Malformed problem file: {exc}") from None

    return problem


def _read_table(path: str, required: List[str], sep: str) -> pd.DataFrame:
    try:
        df = pd.read_csv(path, sep=sep, dtype=str, skip_blank_lines=True)
    except pd.errors.EmptyDataError:
        raise InvalidInput(f"{path}: file is empty") from None
    except pd.errors.ParserError as exc:
        raise InvalidInput(f"{path}: cannot parse CSV: {exc}") from None
    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise InvalidInput(f"{path}: missing column(s): {', '.join(missing)}")
    df = df[required].dropna(how="all")
    return df.apply(lambda col: col.map(lambda v: v.strip() if isinstance(v, str) else v))


def load_classrooms_from_csv(path: str, sep: str = ",") -> List[Classroom]:
    """Read `classroom_id,capacity` rows."""

    df = _read_table(path, ["classroom_id", "capacity"], sep)
    rooms: List[Classroom] = []
    for line_no, row in enumerate(df.itertuples(index=False), start=2):
        if pd.isna(row.classroom_id) or not row.classroom_id:
            raise InvalidInput(f"{path}:{line_no}: classroom_id is empty")
        try:
            capacity = int(row.capacity)
        except (TypeError, ValueError):
            raise InvalidInput(f"{path}:{line_no}: capacity must be an integer, got {row.capacity!r}") from None
        rooms.append(Classroom(classroom_id=row.classroom_id, capacity=capacity))
    return rooms


def load_courses_from_enrollment_csv(path: str, sep: str = ",") -> List[Course]:
    """Read `student_id,course_code` rows (one enrollment per row) into courses.

    Courses are returned sorted by code. Repeated enrollments collapse.
    """

    df = _read_table(path, ["student_id", "course_code"], sep)
    df = df.dropna()
    df = df[(df["student_id"] != "") & (df["course_code"] != "")]

    enrolled: Dict[str, Set[str]] = {}
    for row in df.itertuples(index=False):
        enrolled.setdefault(row.course_code, set()).add(row.student_id)

    return [Course(course_code=code, enrolled_students=frozenset(students)) for code, students in sorted(enrolled.items())]

from __future__ import annotations

import io
import json
import sys
import zipfile
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pandas as pd

from scheduling import Conflict, ConflictType, Course, Exam, ExamPeriod, ScheduleResult
from utils.schedule_export import (
    conflicts_df,
    _safe_sheet_name,
    df_to_markdown,
    schedule_csv_bytes,
    schedule_df,
    schedule_grid_df,
    schedule_json,
    schedule_reports_zip_bytes,
    schedule_workbook_bytes,
)


DAY1 = date(2026, 1, 12)
DAY2 = date(2026, 1, 13)


def _result() -> ScheduleResult:
    period = ExamPeriod(start_date=DAY1, end_date=DAY2, min_slot=1, max_slot=2)
    a = Exam(course_code="CSE101", classroom_id="R1", exam_date=DAY1, slot=1, capacity=30)
    b = Exam(course_code="MAT201", classroom_id="R2", exam_date=DAY1, slot=1, capacity=20)
    c = Exam(course_code="PHY110", classroom_id="R1", exam_date=DAY2, slot=2, capacity=30)
    conflict = Conflict(
        kind=ConflictType.CONSECUTIVE_EXAMS,
        message="Student s1 has consecutive exams at slots 1 and 1 on 2026-01-12",
        date=DAY1,
        exams=(a, b),
        student_id="s1",
    )
    return ScheduleResult(name="Finals", period=period, exams=(a, b, c), conflicts=(conflict,))


def test_schedule_df_columns_and_order() -> None:
    df = schedule_df(_result())

    assert list(df.columns) == ["Course", "Date", "Slot", "Classroom", "Capacity", "Duration"]
    assert df["Course"].tolist() == ["CSE101", "MAT201", "PHY110"]
    assert df.iloc[2]["Date"] == "2026-01-13"


def test_schedule_df_empty() -> None:
    period = ExamPeriod(start_date=DAY1, end_date=DAY1, min_slot=1, max_slot=1)
    df = schedule_df(ScheduleResult(name="Empty", period=period, exams=()))

    assert df.empty
    assert "Course" in df.columns


def test_schedule_grid_df() -> None:
    grid = schedule_grid_df(_result())

    assert list(grid.columns) == ["Date", "Slot 1", "Slot 2"]
    assert grid.iloc[0]["Slot 1"] == "CSE101 (R1), MAT201 (R2)"
    assert grid.iloc[0]["Slot 2"] == "-"
    assert grid.iloc[1]["Slot 2"] == "PHY110 (R1)"


def test_conflicts_df() -> None:
    df = conflicts_df(_result())

    assert df.iloc[0]["Type"] == "CONSECUTIVE_EXAMS"
    assert df.iloc[0]["Student"] == "s1"
    assert df.iloc[0]["Courses"] == "CSE101, MAT201"


def test_schedule_csv_uses_semicolons() -> None:
    text = schedule_csv_bytes(_result()).decode("utf-8")
    lines = text.strip().splitlines()

    assert lines[0] == "Course;Date;Slot;Classroom;Capacity;Duration"
    assert lines[1] == "CSE101;2026-01-12;1;R1;30;2"


def test_schedule_json() -> None:
    payload = json.loads(schedule_json(_result()))

    assert payload["name"] == "Finals"
    assert payload["startDate"] == "2026-01-12"
    assert payload["exams"][0] == {
        "course": "CSE101",
        "date": "2026-01-12",
        "slot": 1,
        "classroom": "R1",
        "capacity": 30,
        "duration": 2,
    }


def test_workbook_has_expected_sheets() -> None:
    courses = [Course("CSE101", frozenset({"s1"})), Course("MAT201", frozenset({"s1"})), Course("PHY110", frozenset())]
    data = schedule_workbook_bytes(_result(), courses)

    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None)

    assert list(sheets) == ["Schedule", "Timetable", "Conflicts", "Metrics", "Room R1", "Room R2"]
    assert sheets["Schedule"]["Course"].tolist() == ["CSE101", "MAT201", "PHY110"]
    metrics = dict(zip(sheets["Metrics"]["Metric"], sheets["Metrics"]["Value"]))
    assert metrics["total_exams"] == 3


def test_reports_zip_contains_room_and_date_files() -> None:
    data = schedule_reports_zip_bytes(_result())

    with zipfile.ZipFile(io.BytesIO(data)) as z:
        names = set(z.namelist())

    assert names == {
        "schedule.csv",
        "timetables/rooms/R1.csv",
        "timetables/rooms/R2.csv",
        "timetables/dates/2026-01-12.csv",
        "timetables/dates/2026-01-13.csv",
    }


def test_df_to_markdown_basic() -> None:
    df = pd.DataFrame([["A", "B|C"]], columns=["Col1", "Col2"])
    md = df_to_markdown(df)
    assert "| Col1 | Col2 |" in md
    assert "| A | B\\|C |" in md


def test_room_sheets_use_safe_unique_titles() -> None:
    period = ExamPeriod(start_date=DAY1, end_date=DAY1, min_slot=1, max_slot=2)
    exams = (
        Exam(course_code="CSE101", classroom_id="LAB/1", exam_date=DAY1, slot=1, capacity=30),
        Exam(course_code="MAT201", classroom_id="LAB:1", exam_date=DAY1, slot=2, capacity=30),
    )
    data = schedule_workbook_bytes(ScheduleResult(name="Labs", period=period, exams=exams))

    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None)

    assert list(sheets) == ["Schedule", "Timetable", "Conflicts", "Room LAB-1", "Room LAB-1 (2)"]
    assert sheets["Room LAB-1"]["Course"].tolist() == ["CSE101"]
    assert sheets["Room LAB-1 (2)"]["Course"].tolist() == ["MAT201"]


def test_safe_sheet_name_truncates_and_defaults() -> None:
    assert _safe_sheet_name("x" * 40) == "x" * 31
    assert _safe_sheet_name("  ") == "Sheet"

    used = {"x" * 31}
    assert _safe_sheet_name("x" * 40, used) == "x" * 27 + " (2)"

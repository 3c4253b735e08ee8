from __future__ import annotations

import io
import json
import zipfile
from typing import Dict, List, Optional, Sequence

import pandas as pd

from scheduling.exam_scheduler import compute_metrics, format_schedule_as_rows
from scheduling.models import Course, ScheduleResult


SCHEDULE_COLUMNS = ["Course", "Date", "Slot", "Classroom", "Capacity", "Duration"]


def schedule_df(result: ScheduleResult) -> pd.DataFrame:
    """One row per exam, in schedule order."""

    rows = format_schedule_as_rows(result)
    if not rows:
        return pd.DataFrame(columns=SCHEDULE_COLUMNS)
    df = pd.DataFrame(rows)
    df = df[["course", "date", "slot", "classroom", "capacity", "duration"]]
    df.columns = SCHEDULE_COLUMNS
    return df


def schedule_grid_df(result: ScheduleResult) -> pd.DataFrame:
    """Date x slot grid; each cell lists `COURSE (ROOM)` entries sitting then."""

    period = result.period
    cells: Dict[tuple, List[str]] = {}
    for e in result.exams:
        cells.setdefault((e.exam_date, e.slot), []).append(f"{e.course_code} ({e.classroom_id})")

    rows = []
    for day in period.days:
        row = {"Date": day.isoformat()}
        for slot in period.slots:
            row[f"Slot {slot}"] = ", ".join(cells.get((day, slot), [])) or "-"
        rows.append(row)
    return pd.DataFrame(rows, columns=["Date"] + [f"Slot {s}" for s in period.slots])


def conflicts_df(result: ScheduleResult) -> pd.DataFrame:
    cols = ["Type", "Student", "Date", "Courses", "Message"]
    rows = [
        [
            c.kind.value,
            c.student_id or "",
            c.date.isoformat(),
            ", ".join(e.course_code for e in c.exams),
            c.message,
        ]
        for c in result.conflicts
    ]
    return pd.DataFrame(rows, columns=cols)


def schedule_csv_bytes(result: ScheduleResult, *, sep: str = ";") -> bytes:
    return schedule_df(result).to_csv(index=False, sep=sep).encode("utf-8")


def schedule_json(result: ScheduleResult) -> str:
    payload = {
        "name": result.name,
        "startDate": result.period.start_date.isoformat(),
        "endDate": result.period.end_date.isoformat(),
        "minSlot": result.period.min_slot,
        "maxSlot": result.period.max_slot,
        "exams": [
            {
                "course": e.course_code,
                "date": e.exam_date.isoformat(),
                "slot": e.slot,
                "classroom": e.classroom_id,
                "capacity": e.capacity,
                "duration": e.duration,
            }
            for e in result.exams
        ],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


_BAD_SHEET_CHARS = ":\\/?*[]"


def _safe_sheet_name(name: str, used: Optional[set] = None) -> str:
    """Excel sheet title from free text: at most 31 chars, none of `: \\ / ? * [ ]`.

    With `used`, a numeric suffix keeps the title unique and the result is recorded.
    """

    out = "".join("-" if ch in _BAD_SHEET_CHARS else ch for ch in str(name or "")).strip() or "Sheet"
    out = out[:31]
    if used is None:
        return out
    base, n = out, 2
    while out.lower() in used:
        suffix = f" ({n})"
        out = base[: 31 - len(suffix)] + suffix
        n += 1
    used.add(out.lower())
    return out


def schedule_workbook_bytes(result: ScheduleResult, courses: Optional[Sequence[Course]] = None) -> bytes:
    """Build an Excel workbook with the exam list, the date grid and the audit.

    A Metrics sheet is added when `courses` is given, followed by one sheet per
    classroom titled after its id.
    """

    used: set = set()
    out = io.BytesIO()
    df = schedule_df(result)
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=_safe_sheet_name("Schedule", used), index=False)
        schedule_grid_df(result).to_excel(writer, sheet_name=_safe_sheet_name("Timetable", used), index=False)
        conflicts_df(result).to_excel(writer, sheet_name=_safe_sheet_name("Conflicts", used), index=False)
        if courses is not None:
            metrics = compute_metrics(result, courses)
            pd.DataFrame(sorted(metrics.items()), columns=["Metric", "Value"]).to_excel(
                writer, sheet_name=_safe_sheet_name("Metrics", used), index=False
            )
        for room_id, part in df.groupby("Classroom", sort=True):
            part.to_excel(writer, sheet_name=_safe_sheet_name(f"Room {room_id}", used), index=False)
    return out.getvalue()


def schedule_reports_zip_bytes(result: ScheduleResult) -> bytes:
    """Zip with the full schedule plus one CSV per classroom and per date."""

    buf = io.BytesIO()
    df = schedule_df(result)
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        z.writestr("schedule.csv", df.to_csv(index=False).encode("utf-8"))
        for room_id, part in df.groupby("Classroom", sort=True):
            z.writestr(f"timetables/rooms/{room_id}.csv", part.to_csv(index=False).encode("utf-8"))
        for day, part in df.groupby("Date", sort=True):
            z.writestr(f"timetables/dates/{day}.csv", part.to_csv(index=False).encode("utf-8"))
    return buf.getvalue()


def df_to_markdown(df: pd.DataFrame) -> str:
    """Render a DataFrame as a GitHub-flavored Markdown table (no tabulate needed)."""

    def cell(value) -> str:
        return str(value).replace("\n", " ").replace("|", "\\|")

    lines = [
        "| " + " | ".join(cell(c) for c in df.columns) + " |",
        "|" + "|".join(" --- " for _ in df.columns) + "|",
    ]
    for row in df.itertuples(index=False):
        lines.append("| " + " | ".join(cell(v) for v in row) + " |")
    return "\n".join(lines) + "\n"

"""Demo runner: generate an exam timetable from sample JSON.

Usage:
    python scripts/run_exam_demo.py [--markdown] [path/to/problem.json]

With --markdown the schedule and timetable are printed as Markdown tables.

"""

from __future__ import annotations

from pathlib import Path
import logging
import sys

import pandas as pd

# Ensure project root is on PYTHONPATH when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scheduling import (
    SchedulingError,
    compute_metrics,
    generate_schedule,
    improvement_suggestions,
    settings_from_env,
)
from utils.data_import import load_exam_problem_from_json
from utils.schedule_export import conflicts_df, df_to_markdown, schedule_df, schedule_grid_df


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    args = sys.argv[1:]
    markdown = "--markdown" in args
    paths = [a for a in args if not a.startswith("--")]
    problem_path = Path(paths[0]) if paths else ROOT / "data" / "sample_exam_problem.json"
    problem = load_exam_problem_from_json(str(problem_path))

    # EXAM_* environment variables override the defaults (2 exams/day, gap 1, 3 attempts)
    settings = settings_from_env()

    try:
        result = generate_schedule(
            problem.name,
            problem.courses,
            problem.classrooms,
            problem.start_date,
            problem.end_date,
            problem.min_slot,
            problem.max_slot,
            settings=settings,
        )
    except SchedulingError as exc:
        print(f"Scheduling failed: {exc}")
        return 1

    def show(df: pd.DataFrame) -> str:
        return df_to_markdown(df) if markdown else df.to_string(index=False)

    with pd.option_context("display.width", 200, "display.max_columns", None):
        print(f"\n=== {result.name} ===")
        print(show(schedule_df(result)))

        print("\n=== Timetable ===")
        print(show(schedule_grid_df(result)))

        print("\n=== Conflicts ===")
        conflicts = conflicts_df(result)
        print("none" if conflicts.empty else conflicts.to_string(index=False))

    print("\n=== Metrics ===")
    for k, v in compute_metrics(result, problem.courses).items():
        print(f"{k}: {v}")

    suggestions = improvement_suggestions(result)
    if suggestions:
        print("\n=== Suggestions ===")
        for s in suggestions:
            print(f"- {s}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""User-tunable scheduling settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .errors import InvalidInput


DEFAULT_MAX_EXAMS_PER_DAY = 2
DEFAULT_MIN_GAP_BETWEEN_EXAMS = 1
DEFAULT_EXAM_DURATION_HOURS = 2
DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class ExamSchedulingSettings:
    """Rules and retry policy for one scheduling run.

    Notes:
    - `min_gap_between_exams` is a slot distance: two exams of the same student
      on the same day must differ by more than this. Adjacent slots are always
      refused regardless of the value.
    - `seed` seeds the shuffle used by retry attempts; None means unseeded.
    """

    max_exams_per_day: int = DEFAULT_MAX_EXAMS_PER_DAY
    min_gap_between_exams: int = DEFAULT_MIN_GAP_BETWEEN_EXAMS
    exam_duration_hours: int = DEFAULT_EXAM_DURATION_HOURS

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backtrack_factor: int = 2  # backtrack budget = factor x course count
    seed: Optional[int] = None


_ENV_FIELDS = {
    "EXAM_MAX_EXAMS_PER_DAY": "max_exams_per_day",
    "EXAM_MIN_GAP": "min_gap_between_exams",
    "EXAM_DURATION_HOURS": "exam_duration_hours",
    "EXAM_MAX_ATTEMPTS": "max_attempts",
    "EXAM_SCHEDULER_SEED": "seed",
}


def settings_from_env(
    base: ExamSchedulingSettings = ExamSchedulingSettings(),
    environ: Optional[Mapping[str, str]] = None,
) -> ExamSchedulingSettings:
    """Override `base` with any `EXAM_*` environment variables that are set."""

    env = os.environ if environ is None else environ
    overrides = {}
    for var, field_name in _ENV_FIELDS.items():
        raw = env.get(var)
        if raw is None or not raw.strip():
            continue
        try:
            overrides[field_name] = int(raw.strip())
        except ValueError:
            raise InvalidInput(f"{var} must be an integer, got {raw!r}") from None
    return replace(base, **overrides) if overrides else base

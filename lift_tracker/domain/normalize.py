from __future__ import annotations

from datetime import date

OTHER_WORKOUT_TYPE = "Other"


def normalize_workout_type(workout_type: str | None) -> str | None:
    if workout_type is None or not workout_type.strip():
        return None
    return workout_type


def workout_category(workout_type: str | None) -> str:
    """Category used for grouping; missing or blank types fall into "Other"."""
    return normalize_workout_type(workout_type) or OTHER_WORKOUT_TYPE


def parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"{value!r} is not a valid calendar date") from exc

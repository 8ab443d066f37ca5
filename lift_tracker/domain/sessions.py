from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from .normalize import workout_category
from .payloads import LiftRecord


@dataclass
class WorkoutSession:
    """Lifts sharing one workout category on one date."""

    workout_type: str
    date: str
    lifts: list[LiftRecord] = field(default_factory=list)


@dataclass(frozen=True)
class SessionSummary:
    exercise_count: int
    total_sets: int


def group_by_workout_and_date(lifts: Iterable[LiftRecord]) -> list[WorkoutSession]:
    """Partition lifts by (workout category, date), most recent date first.

    Lifts keep their input order within a session. Sessions on the same date
    keep the order in which their first lift appeared.
    """
    sessions: dict[tuple[str, str], WorkoutSession] = {}
    for lift in lifts:
        key = (workout_category(lift.workout_type), lift.date)
        session = sessions.get(key)
        if session is None:
            session = sessions[key] = WorkoutSession(workout_type=key[0], date=key[1])
        session.lifts.append(lift)
    return sorted(sessions.values(), key=lambda s: s.date, reverse=True)


def summarize(session: WorkoutSession) -> SessionSummary:
    return SessionSummary(
        exercise_count=len({lift.exercise for lift in session.lifts}),
        total_sets=sum(lift.sets for lift in session.lifts),
    )


def session_as_dict(session: WorkoutSession) -> dict[str, Any]:
    summary = summarize(session)
    return {
        "workout_type": session.workout_type,
        "date": session.date,
        "exercise_count": summary.exercise_count,
        "total_sets": summary.total_sets,
        "lifts": [lift.as_dict() for lift in session.lifts],
    }

from __future__ import annotations

from typing import TypedDict


class WorkoutType(TypedDict):
    name: str
    description: str
    exercises: list[str]


CHEST_AND_SHOULDERS = "Chest & Shoulders"
BACK_AND_ARMS = "Back & Arms"
LEGS = "Legs"

WORKOUT_TYPES: list[WorkoutType] = [
    {
        "name": CHEST_AND_SHOULDERS,
        "description": "Upper body power workout focusing on chest and shoulders",
        "exercises": [
            "Bench Press",
            "Incline Bench Press",
            "Overhead Press",
            "Lateral Raise",
            "Chest Fly",
        ],
    },
    {
        "name": BACK_AND_ARMS,
        "description": "Pull-focused workout for back and arm development",
        "exercises": [
            "Bent Over Rows",
            "Lat Pulldown",
            "T-bar Row",
            "Bicep Curls",
            "Hammer Curls",
            "Barbell Curls",
            "Forearm Curls",
        ],
    },
    {
        "name": LEGS,
        "description": "Lower body strength and power training",
        "exercises": [
            "Squats",
            "Deadlifts",
            "Leg Press",
            "Leg Extension",
            "Leg Curl",
            "Calf Raises",
            "Glute Bridges",
        ],
    },
]

DEFAULT_WORKOUT_TYPE = CHEST_AND_SHOULDERS


def workout_type_names() -> list[str]:
    return [workout["name"] for workout in WORKOUT_TYPES]


def suggested_exercises(workout_type: str | None) -> list[str]:
    """Exercises offered for a category; unknown categories get the default list."""
    by_name = {workout["name"]: workout["exercises"] for workout in WORKOUT_TYPES}
    exercises = by_name.get(workout_type or "", by_name[DEFAULT_WORKOUT_TYPE])
    return list(exercises)

from __future__ import annotations

import math
import uuid
from typing import Annotated, Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .normalize import parse_iso_date
from .strength import estimate_one_rep_max

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
MAX_EXERCISE_LENGTH = 200

IsoDate = Annotated[str, Field(pattern=ISO_DATE_PATTERN)]
# Strict so JSON booleans are not coerced into counts or loads.
StrictCount = Annotated[int, Field(strict=True)]
StrictLoad = Annotated[float, Field(strict=True)]


def _reject_bool(v: Any) -> Any:
    if isinstance(v, bool):
        raise ValueError("expected a number, not a boolean")
    return v


def _check_weight(v: float) -> float:
    if not math.isfinite(v):
        raise ValueError("weight must be a finite number")
    if v < 0:
        raise ValueError("weight must be non-negative")
    return v


def _check_calendar_date(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    parse_iso_date(v)
    return v


class LiftInput(BaseModel):
    exercise: str
    weight: StrictLoad
    reps: StrictCount
    sets: StrictCount
    date: IsoDate
    workout_type: Optional[str] = None

    model_config = {"extra": "forbid"}

    @field_validator("exercise")
    @classmethod
    def exercise_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("exercise must not be empty")
        if len(v) > MAX_EXERCISE_LENGTH:
            raise ValueError(f"exercise must be at most {MAX_EXERCISE_LENGTH} characters")
        return v

    @field_validator("weight", mode="before")
    @classmethod
    def weight_not_bool(cls, v: Any) -> Any:
        return _reject_bool(v)

    @field_validator("weight")
    @classmethod
    def weight_finite_nonnegative(cls, v: float) -> float:
        return _check_weight(v)

    @field_validator("reps")
    @classmethod
    def reps_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("reps must be greater than 0")
        return v

    @field_validator("sets")
    @classmethod
    def sets_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("sets must be greater than 0")
        return v

    @field_validator("date")
    @classmethod
    def date_is_calendar_date(cls, v: str) -> str:
        return _check_calendar_date(v)


class LiftFilters(BaseModel):
    exercise: Optional[str] = None
    workout_type: Optional[str] = None
    start_date: Optional[IsoDate] = None
    end_date: Optional[IsoDate] = None

    model_config = {"extra": "forbid"}

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_are_calendar_dates(cls, v: Optional[str]) -> Optional[str]:
        return _check_calendar_date(v)

    @model_validator(mode="after")
    def validate_range(self) -> "LiftFilters":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date")
        return self


class DeleteLiftRequest(BaseModel):
    lift_id: str

    model_config = {"extra": "forbid"}


class OneRepMaxRequest(BaseModel):
    weight: StrictLoad
    reps: StrictCount

    model_config = {"extra": "forbid"}

    @field_validator("weight", mode="before")
    @classmethod
    def weight_not_bool(cls, v: Any) -> Any:
        return _reject_bool(v)

    @field_validator("weight")
    @classmethod
    def weight_finite_nonnegative(cls, v: float) -> float:
        return _check_weight(v)

    @field_validator("reps")
    @classmethod
    def reps_nonnegative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("reps must be non-negative")
        return v


class LiftRecord(BaseModel):
    """A stored lift as returned to its owner."""

    id: str
    user_id: str
    exercise: str
    weight: float
    reps: int
    sets: int
    date: str
    workout_type: Optional[str] = None

    model_config = {"frozen": True}

    def estimated_one_rep_max(self) -> int:
        return estimate_one_rep_max(self.weight, self.reps)

    def as_dict(self) -> dict[str, Any]:
        data = self.model_dump()
        data["estimated_one_rep_max"] = self.estimated_one_rep_max()
        return data


def _validate(model: type[BaseModel], payload: Any) -> Any:
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(str(exc)) from exc


def validate_lift_input(payload: dict | LiftInput) -> LiftInput:
    return _validate(LiftInput, payload)


def validate_filters(payload: dict | LiftFilters | None) -> LiftFilters:
    if payload is None:
        return LiftFilters()
    return _validate(LiftFilters, payload)


def validate_delete_request(payload: dict | DeleteLiftRequest) -> DeleteLiftRequest:
    return _validate(DeleteLiftRequest, payload)


def validate_one_rep_max_request(payload: dict | OneRepMaxRequest) -> OneRepMaxRequest:
    return _validate(OneRepMaxRequest, payload)


def parse_lift_id(lift_id: str) -> uuid.UUID | None:
    """Parse an opaque lift id; ids that are not UUIDs cannot name a stored lift."""
    try:
        return uuid.UUID(str(lift_id))
    except ValueError:
        return None

from __future__ import annotations

from typing import Dict, List

import structlog
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from lift_tracker.auth.identity import Principal
from lift_tracker.db.models import AppUser, Lift
from lift_tracker.domain.errors import AuthenticationError, AuthorizationError, NotFoundError
from lift_tracker.domain.normalize import parse_iso_date
from lift_tracker.domain.payloads import (
    LiftFilters,
    LiftInput,
    LiftRecord,
    parse_lift_id,
    validate_filters,
    validate_lift_input,
)
from lift_tracker.domain.sessions import WorkoutSession, group_by_workout_and_date

logger = structlog.get_logger(__name__)


def _require_principal(principal: Principal | None) -> str:
    if principal is None or not principal.subject:
        raise AuthenticationError("a verified identity is required")
    return principal.subject


def _ensure_user(session: Session, user_id: str) -> AppUser:
    user = session.get(AppUser, user_id)
    if user:
        return user
    user = AppUser(id=user_id)
    session.add(user)
    session.flush()
    return user


def to_record(lift: Lift) -> LiftRecord:
    return LiftRecord(
        id=str(lift.id),
        user_id=lift.user_id,
        exercise=lift.exercise,
        weight=lift.weight_kg,
        reps=lift.reps,
        sets=lift.sets,
        date=lift.lift_date.isoformat(),
        workout_type=lift.workout_type,
    )


def create_lift(
    session: Session, principal: Principal | None, payload: Dict | LiftInput
) -> str:
    user_id = _require_principal(principal)
    data = validate_lift_input(payload)

    with session.begin():
        _ensure_user(session, user_id)
        lift = Lift(
            user_id=user_id,
            exercise=data.exercise,
            weight_kg=data.weight,
            reps=data.reps,
            sets=data.sets,
            lift_date=parse_iso_date(data.date),
            workout_type=data.workout_type,
        )
        session.add(lift)
        session.flush()
        lift_id = str(lift.id)

    logger.info("lift_created", lift_id=lift_id, user_id=user_id, exercise=data.exercise)
    return lift_id


def list_lifts(
    session: Session,
    principal: Principal | None,
    filters: Dict | LiftFilters | None = None,
) -> List[LiftRecord]:
    """Lifts owned by the principal, most recent date first.

    Lifts sharing a date come back in insertion order.
    """
    user_id = _require_principal(principal)
    criteria = validate_filters(filters)

    stmt = select(Lift).where(Lift.user_id == user_id)
    if criteria.exercise is not None:
        stmt = stmt.where(Lift.exercise == criteria.exercise)
    if criteria.workout_type is not None:
        stmt = stmt.where(Lift.workout_type == criteria.workout_type)
    if criteria.start_date is not None:
        stmt = stmt.where(Lift.lift_date >= parse_iso_date(criteria.start_date))
    if criteria.end_date is not None:
        stmt = stmt.where(Lift.lift_date <= parse_iso_date(criteria.end_date))
    stmt = stmt.order_by(Lift.lift_date.desc(), Lift.created_at, Lift.id)

    with session.begin():
        return [to_record(lift) for lift in session.execute(stmt).scalars()]


def delete_lift(session: Session, principal: Principal | None, lift_id: str) -> None:
    """Delete one of the principal's lifts.

    Existence is checked before ownership: a missing id is NotFoundError for
    every caller, an id owned by someone else is AuthorizationError.
    """
    user_id = _require_principal(principal)
    parsed_id = parse_lift_id(lift_id)
    if parsed_id is None:
        raise NotFoundError(f"lift {lift_id} does not exist")

    with session.begin():
        lift = session.get(Lift, parsed_id)
        if lift is None:
            raise NotFoundError(f"lift {lift_id} does not exist")
        if lift.user_id != user_id:
            logger.warning("lift_delete_denied", lift_id=lift_id, user_id=user_id)
            raise AuthorizationError(f"lift {lift_id} belongs to another user")
        result = session.execute(
            delete(Lift).where(Lift.id == parsed_id, Lift.user_id == user_id)
        )
        # A concurrent delete may have removed the row after it was read.
        if result.rowcount == 0:
            raise NotFoundError(f"lift {lift_id} does not exist")

    logger.info("lift_deleted", lift_id=lift_id, user_id=user_id)


def list_sessions(
    session: Session,
    principal: Principal | None,
    filters: Dict | LiftFilters | None = None,
) -> List[WorkoutSession]:
    return group_by_workout_and_date(list_lifts(session, principal, filters))

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    Uuid,
    desc,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class AppUser(Base):
    __tablename__ = "app_user"

    # Subject claim of the identity provider, not a generated key.
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    lifts: Mapped[list["Lift"]] = relationship(
        "Lift", back_populates="user", cascade="all, delete-orphan"
    )


class Lift(Base):
    __tablename__ = "lift"
    __table_args__ = (
        Index("ix_lift_user_date", "user_id", desc("lift_date")),
        Index("ix_lift_user_workout_type", "user_id", "workout_type"),
        CheckConstraint("reps > 0", name="ck_lift_reps_positive"),
        CheckConstraint("sets > 0", name="ck_lift_sets_positive"),
        CheckConstraint("weight_kg >= 0", name="ck_lift_weight_nonnegative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(
        Text, ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False
    )
    exercise: Mapped[str] = mapped_column(Text, nullable=False)
    weight_kg: Mapped[float] = mapped_column(Float, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    sets: Mapped[int] = mapped_column(Integer, nullable=False)
    lift_date: Mapped[date] = mapped_column(Date, nullable=False)
    workout_type: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    user: Mapped[AppUser] = relationship("AppUser", back_populates="lifts")

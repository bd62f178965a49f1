from __future__ import annotations

import uuid
from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base


class WorkoutExercise(Base):
    __tablename__ = "workout_exercises"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    workout_id: Mapped[str] = mapped_column(
        ForeignKey("workout_logs.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    # Catalog reference, e.g. Bench Press
    exercise_id: Mapped[str] = mapped_column(ForeignKey("exercises.id"), index=True, nullable=False)
    exercise_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    grouping_id: Mapped[str | None] = mapped_column(
        ForeignKey("exercise_groupings.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )

    exercise: Mapped["Exercise"] = relationship("Exercise", viewonly=True)
    sets: Mapped[list["SetRecord"]] = relationship(
        "SetRecord",
        order_by="SetRecord.set_index",
        viewonly=True,
    )

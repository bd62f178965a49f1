from __future__ import annotations

import uuid
from sqlalchemy import Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base
from app.models.enums import SetType, enum_values


class SetRecord(Base):
    __tablename__ = "set_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    workout_exercise_id: Mapped[str] = mapped_column(
        ForeignKey("workout_exercises.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    set_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    set_type: Mapped[SetType] = mapped_column(
        Enum(SetType, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
        default=SetType.NORMAL,
    )

    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rpe: Mapped[float | None] = mapped_column(Float, nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rest_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

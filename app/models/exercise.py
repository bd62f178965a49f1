from __future__ import annotations

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base
from app.models.enums import ExerciseType, enum_values


class Exercise(Base):
    # Catalog entries are owned by the exercise catalog; this service only reads them.
    __tablename__ = "exercises"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    exercise_type: Mapped[ExerciseType] = mapped_column(
        Enum(ExerciseType, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
    )
    thumbnail_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

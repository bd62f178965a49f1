from __future__ import annotations

import uuid
from sqlalchemy import Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base
from app.models.enums import GroupingKind, enum_values


class ExerciseGrouping(Base):
    __tablename__ = "exercise_groupings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    workout_id: Mapped[str] = mapped_column(
        ForeignKey("workout_logs.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    kind: Mapped[GroupingKind] = mapped_column(
        Enum(GroupingKind, native_enum=False, length=20, values_callable=enum_values),
        nullable=False,
    )
    # Contiguous from 0 within a workout, renumbered by the ingestion engine
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rest_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

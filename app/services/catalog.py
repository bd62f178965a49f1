from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import ExerciseType
from app.models.exercise import Exercise


class ExerciseCatalog(Protocol):
    async def resolve_type(self, exercise_id: str) -> ExerciseType | None:
        ...


class SqlExerciseCatalog:
    """Reads exercise types from the catalog table.

    Shares the caller's session so lookups run inside the ingestion transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve_type(self, exercise_id: str) -> ExerciseType | None:
        res = await self.db.execute(
            select(Exercise.exercise_type).where(Exercise.id == exercise_id)
        )
        return res.scalar_one_or_none()

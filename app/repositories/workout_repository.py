from collections.abc import AsyncIterator, Sequence
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime
from typing import Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import IdempotencyConflictError, StorageError
from app.models.enums import GroupingKind
from app.models.exercise import Exercise  # noqa: F401  (registers the catalog mapper)
from app.models.exercise_grouping import ExerciseGrouping
from app.models.set_record import SetRecord
from app.models.workout_exercise import WorkoutExercise
from app.models.workout_log import WorkoutLog
from app.schemas.workouts import SetIn


class WorkoutRepository(Protocol):
    """Write surface of the ingestion engine.

    Every mutating call is expected to run inside ``transaction()``; leaving the
    block with an exception rolls back everything written in it.
    """

    def transaction(self) -> AbstractAsyncContextManager[None]: ...

    async def find_by_idempotency_key(self, user_id: str, idempotency_key: str) -> WorkoutLog | None: ...

    async def get_workout(self, workout_id: str) -> WorkoutLog | None: ...

    async def insert_workout(
        self,
        *,
        user_id: str,
        idempotency_key: str | None,
        title: str | None,
        start_time: datetime,
        end_time: datetime,
    ) -> WorkoutLog: ...

    async def overwrite_workout(
        self,
        workout: WorkoutLog,
        *,
        title: str | None,
        start_time: datetime,
        end_time: datetime,
        edited_at: datetime,
    ) -> None: ...

    async def clear_children(self, workout_id: str) -> None: ...

    async def insert_grouping(
        self, *, workout_id: str, kind: GroupingKind, ordinal: int, rest_seconds: int | None
    ) -> str: ...

    async def insert_exercise(
        self, *, workout_id: str, exercise_id: str, exercise_index: int, grouping_id: str | None
    ) -> str: ...

    async def insert_sets(self, workout_exercise_id: str, sets: Sequence[SetIn]) -> None: ...

    async def delete_grouping(self, grouping_id: str) -> None: ...

    async def list_groupings(self, workout_id: str) -> list[ExerciseGrouping]: ...

    async def set_grouping_ordinal(self, grouping_id: str, ordinal: int) -> None: ...

    async def soft_delete(self, workout: WorkoutLog, deleted_at: datetime) -> None: ...

    async def refresh_workout(self, workout: WorkoutLog) -> None: ...

    async def list_workouts(self, user_id: str) -> list[WorkoutLog]: ...


class SqlAlchemyWorkoutRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        try:
            yield
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageError() from exc
        except BaseException:
            await self.db.rollback()
            raise

    async def find_by_idempotency_key(self, user_id: str, idempotency_key: str) -> WorkoutLog | None:
        res = await self.db.execute(
            select(WorkoutLog).where(
                WorkoutLog.user_id == user_id,
                WorkoutLog.idempotency_key == idempotency_key,
            )
        )
        return res.scalar_one_or_none()

    async def get_workout(self, workout_id: str) -> WorkoutLog | None:
        res = await self.db.execute(select(WorkoutLog).where(WorkoutLog.id == workout_id))
        return res.scalar_one_or_none()

    async def insert_workout(
        self,
        *,
        user_id: str,
        idempotency_key: str | None,
        title: str | None,
        start_time: datetime,
        end_time: datetime,
    ) -> WorkoutLog:
        workout = WorkoutLog(
            user_id=user_id,
            idempotency_key=idempotency_key,
            title=title,
            start_time=start_time,
            end_time=end_time,
            is_edited=False,
        )
        self.db.add(workout)
        # Flush now so a concurrent insert with the same key fails here, not at commit
        try:
            await self.db.flush()
        except IntegrityError as exc:
            if idempotency_key is None:
                raise
            raise IdempotencyConflictError() from exc
        return workout

    async def overwrite_workout(
        self,
        workout: WorkoutLog,
        *,
        title: str | None,
        start_time: datetime,
        end_time: datetime,
        edited_at: datetime,
    ) -> None:
        workout.title = title
        workout.start_time = start_time
        workout.end_time = end_time
        workout.is_edited = True
        workout.edited_at = edited_at
        await self.db.flush()

    async def clear_children(self, workout_id: str) -> None:
        exercise_ids = select(WorkoutExercise.id).where(WorkoutExercise.workout_id == workout_id)
        await self.db.execute(
            delete(SetRecord)
            .where(SetRecord.workout_exercise_id.in_(exercise_ids))
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(WorkoutExercise)
            .where(WorkoutExercise.workout_id == workout_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.execute(
            delete(ExerciseGrouping)
            .where(ExerciseGrouping.workout_id == workout_id)
            .execution_options(synchronize_session=False)
        )

    async def insert_grouping(
        self, *, workout_id: str, kind: GroupingKind, ordinal: int, rest_seconds: int | None
    ) -> str:
        grouping = ExerciseGrouping(
            workout_id=workout_id,
            kind=kind,
            ordinal=ordinal,
            rest_seconds=rest_seconds,
        )
        self.db.add(grouping)
        await self.db.flush()
        return grouping.id

    async def insert_exercise(
        self, *, workout_id: str, exercise_id: str, exercise_index: int, grouping_id: str | None
    ) -> str:
        ex = WorkoutExercise(
            workout_id=workout_id,
            exercise_id=exercise_id,
            exercise_index=exercise_index,
            grouping_id=grouping_id,
        )
        self.db.add(ex)
        await self.db.flush()
        return ex.id

    async def insert_sets(self, workout_exercise_id: str, sets: Sequence[SetIn]) -> None:
        self.db.add_all(
            [
                SetRecord(
                    workout_exercise_id=workout_exercise_id,
                    set_index=s.set_index,
                    set_type=s.set_type,
                    weight=s.weight,
                    reps=s.reps,
                    rpe=s.rpe,
                    duration_seconds=s.duration_seconds,
                    rest_seconds=s.rest_seconds,
                    note=s.note,
                )
                for s in sets
            ]
        )
        await self.db.flush()

    async def delete_grouping(self, grouping_id: str) -> None:
        await self.db.execute(
            update(WorkoutExercise)
            .where(WorkoutExercise.grouping_id == grouping_id)
            .values(grouping_id=None)
        )
        await self.db.execute(delete(ExerciseGrouping).where(ExerciseGrouping.id == grouping_id))

    async def list_groupings(self, workout_id: str) -> list[ExerciseGrouping]:
        res = await self.db.execute(
            select(ExerciseGrouping)
            .where(ExerciseGrouping.workout_id == workout_id)
            .order_by(ExerciseGrouping.ordinal.asc())
        )
        return list(res.scalars().all())

    async def set_grouping_ordinal(self, grouping_id: str, ordinal: int) -> None:
        await self.db.execute(
            update(ExerciseGrouping)
            .where(ExerciseGrouping.id == grouping_id)
            .values(ordinal=ordinal)
        )

    async def soft_delete(self, workout: WorkoutLog, deleted_at: datetime) -> None:
        workout.deleted_at = deleted_at
        await self.db.flush()

    async def refresh_workout(self, workout: WorkoutLog) -> None:
        await self.db.refresh(workout)

    async def list_workouts(self, user_id: str) -> list[WorkoutLog]:
        try:
            res = await self.db.execute(self._list_query(user_id))
        except SQLAlchemyError as exc:
            raise StorageError() from exc
        return list(res.scalars().all())

    @staticmethod
    def _list_query(user_id: str):
        return (
            select(WorkoutLog)
            .where(
                WorkoutLog.user_id == user_id,
                WorkoutLog.deleted_at.is_(None),
            )
            .order_by(WorkoutLog.created_at.desc(), WorkoutLog.id.asc())
            .options(
                selectinload(WorkoutLog.groupings),
                selectinload(WorkoutLog.exercises).selectinload(WorkoutExercise.sets),
                selectinload(WorkoutLog.exercises).selectinload(WorkoutExercise.exercise),
            )
        )

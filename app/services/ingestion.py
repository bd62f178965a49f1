"""Atomic ingestion of a nested workout submission.

A submission is materialized as workout → groupings → exercises → sets inside a
single repository transaction. Invalid fragments are dropped rather than
rejected, and what was dropped comes back as a prune report.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Union

import structlog

from app.core.errors import (
    IdempotencyConflictError,
    NoValidExercisesError,
    StorageError,
    WorkoutNotFoundError,
)
from app.models.enums import ExerciseType
from app.models.workout_log import WorkoutLog
from app.repositories.workout_repository import WorkoutRepository
from app.schemas.workouts import ExerciseEntryIn, SetIn, WorkoutIn
from app.services.catalog import ExerciseCatalog
from app.services.grouping import GroupingMap, persist_groupings
from app.services.set_validator import is_valid_completed_set

logger = structlog.get_logger(__name__)

MIN_GROUP_MEMBERS = 2


@dataclass
class PruneReport:
    dropped_sets: int = 0
    dropped_exercises: int = 0
    dropped_groups: int = 0


@dataclass
class IngestionResult:
    workout: WorkoutLog
    report: PruneReport = field(default_factory=PruneReport)
    replayed: bool = False


# --- Per-entry outcomes ---

@dataclass(frozen=True)
class Kept:
    entry: ExerciseEntryIn
    valid_sets: list[SetIn]
    dropped_sets: int = 0


@dataclass(frozen=True)
class DroppedNoCatalogMatch:
    entry: ExerciseEntryIn


@dataclass(frozen=True)
class DroppedNoValidSets:
    entry: ExerciseEntryIn
    dropped_sets: int


EntryOutcome = Union[Kept, DroppedNoCatalogMatch, DroppedNoValidSets]


def classify_entry(entry: ExerciseEntryIn, exercise_type: ExerciseType | None) -> EntryOutcome:
    if exercise_type is None:
        return DroppedNoCatalogMatch(entry)

    valid_sets = [s for s in entry.sets if is_valid_completed_set(s, exercise_type)]
    dropped = len(entry.sets) - len(valid_sets)
    if not valid_sets:
        return DroppedNoValidSets(entry, dropped_sets=dropped)
    return Kept(entry, valid_sets=valid_sets, dropped_sets=dropped)


def tally_outcomes(outcomes: Sequence[EntryOutcome]) -> PruneReport:
    """Set and exercise counters; sets of an uncatalogued entry are not counted."""
    report = PruneReport()
    for outcome in outcomes:
        if isinstance(outcome, DroppedNoCatalogMatch):
            report.dropped_exercises += 1
        elif isinstance(outcome, DroppedNoValidSets):
            report.dropped_exercises += 1
            report.dropped_sets += outcome.dropped_sets
        else:
            report.dropped_sets += outcome.dropped_sets
    return report


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkoutIngestionEngine:
    def __init__(
        self,
        repository: WorkoutRepository,
        catalog: ExerciseCatalog,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.catalog = catalog
        self.now = now

    async def create(self, user_id: str, payload: WorkoutIn) -> IngestionResult:
        key = payload.idempotency_key
        log = logger.bind(action="create_workout", user_id=user_id, idempotency_key=key)

        try:
            async with self.repository.transaction():
                if key:
                    existing = await self.repository.find_by_idempotency_key(user_id, key)
                    if existing is not None:
                        log.info("workout.idempotent_hit", workout_id=existing.id)
                        return IngestionResult(workout=existing, replayed=True)

                workout = await self.repository.insert_workout(
                    user_id=user_id,
                    idempotency_key=key,
                    title=payload.title,
                    start_time=payload.start_time,
                    end_time=payload.end_time,
                )
                report = await self._ingest_children(workout.id, payload, log)
        except IdempotencyConflictError:
            log.info("workout.idempotency_race")
            return await self._replay_after_conflict(user_id, key)
        except NoValidExercisesError:
            log.warning("workout.no_valid_exercises")
            raise
        except StorageError as exc:
            log.exception("workout.ingestion_failed")
            raise StorageError("Failed to create workout") from exc

        await self.repository.refresh_workout(workout)
        log.info("workout.created", workout_id=workout.id, prune_report=asdict(report))
        return IngestionResult(workout=workout, report=report)

    async def update(self, user_id: str, workout_id: str, payload: WorkoutIn) -> IngestionResult:
        log = logger.bind(action="update_workout", user_id=user_id, workout_id=workout_id)

        try:
            async with self.repository.transaction():
                workout = await self.repository.get_workout(workout_id)
                self._ensure_mutable(workout, user_id, log)

                # sets go with their exercises
                await self.repository.clear_children(workout_id)
                await self.repository.overwrite_workout(
                    workout,
                    title=payload.title,
                    start_time=payload.start_time,
                    end_time=payload.end_time,
                    edited_at=self.now(),
                )
                report = await self._ingest_children(workout_id, payload, log)
        except NoValidExercisesError:
            log.warning("workout.no_valid_exercises")
            raise
        except StorageError as exc:
            log.exception("workout.ingestion_failed")
            raise StorageError("Failed to update workout") from exc

        await self.repository.refresh_workout(workout)
        log.info("workout.updated", prune_report=asdict(report))
        return IngestionResult(workout=workout, report=report)

    async def delete(self, user_id: str, workout_id: str) -> None:
        log = logger.bind(action="delete_workout", user_id=user_id, workout_id=workout_id)

        try:
            async with self.repository.transaction():
                workout = await self.repository.get_workout(workout_id)
                self._ensure_mutable(workout, user_id, log)
                await self.repository.soft_delete(workout, self.now())
        except StorageError as exc:
            log.exception("workout.delete_failed")
            raise StorageError("Failed to delete workout") from exc

        log.info("workout.deleted")

    async def list_workouts(self, user_id: str) -> list[WorkoutLog]:
        try:
            workouts = await self.repository.list_workouts(user_id)
        except StorageError as exc:
            logger.exception("workout.list_failed", user_id=user_id)
            raise StorageError("Failed to fetch workouts") from exc

        logger.info("workout.listed", user_id=user_id, workout_count=len(workouts))
        return workouts

    # --- internals ---

    def _ensure_mutable(self, workout: WorkoutLog | None, user_id: str, log) -> None:
        if workout is None or workout.user_id != user_id:
            log.warning("workout.not_found_or_foreign")
            raise WorkoutNotFoundError()
        if workout.deleted_at is not None:
            log.warning("workout.already_deleted")
            raise WorkoutNotFoundError("Workout not found (deleted)")

    async def _replay_after_conflict(self, user_id: str, key: str | None) -> IngestionResult:
        existing = None
        if key:
            async with self.repository.transaction():
                existing = await self.repository.find_by_idempotency_key(user_id, key)
        if existing is None:
            raise StorageError("Failed to create workout")
        return IngestionResult(workout=existing, replayed=True)

    async def _ingest_children(self, workout_id: str, payload: WorkoutIn, log) -> PruneReport:
        groupings = await persist_groupings(self.repository, workout_id, payload.groupings)

        outcomes: list[EntryOutcome] = []
        for entry in payload.exercises:
            exercise_type = await self.catalog.resolve_type(entry.exercise_id)
            outcomes.append(classify_entry(entry, exercise_type))

        report = tally_outcomes(outcomes)
        persisted_group_refs: list[str | None] = []

        for outcome in outcomes:
            if isinstance(outcome, DroppedNoCatalogMatch):
                log.warning("workout.exercise_not_in_catalog", exercise_id=outcome.entry.exercise_id)
                continue
            if isinstance(outcome, DroppedNoValidSets):
                log.warning("workout.exercise_no_valid_sets", exercise_id=outcome.entry.exercise_id)
                continue

            grouping_id = groupings.resolve(outcome.entry.group_ref)
            workout_exercise_id = await self.repository.insert_exercise(
                workout_id=workout_id,
                exercise_id=outcome.entry.exercise_id,
                exercise_index=outcome.entry.exercise_index,
                grouping_id=grouping_id,
            )
            await self.repository.insert_sets(workout_exercise_id, outcome.valid_sets)
            persisted_group_refs.append(grouping_id)

        if not persisted_group_refs:
            raise NoValidExercisesError()

        report.dropped_groups = await self._prune_groupings(groupings, persisted_group_refs, log)
        await self._reindex_groupings(workout_id)
        return report

    async def _prune_groupings(
        self,
        groupings: GroupingMap,
        persisted_group_refs: Sequence[str | None],
        log,
    ) -> int:
        # Tally from rows actually written, never from the raw submission
        usage = Counter(ref for ref in persisted_group_refs if ref is not None)
        dropped = 0
        for grouping_id in groupings.persisted_ids:
            members = usage.get(grouping_id, 0)
            if members < MIN_GROUP_MEMBERS:
                await self.repository.delete_grouping(grouping_id)
                dropped += 1
                log.info("workout.group_pruned", grouping_id=grouping_id, members=members)
        return dropped

    async def _reindex_groupings(self, workout_id: str) -> None:
        remaining = await self.repository.list_groupings(workout_id)
        for position, grouping in enumerate(remaining):
            if grouping.ordinal != position:
                await self.repository.set_grouping_ordinal(grouping.id, position)

from datetime import datetime
from typing import Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.models.enums import ExerciseType, GroupingKind, SetType


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Request bodies ---

class SetIn(CamelModel):
    set_index: int = Field(ge=0)
    set_type: SetType
    weight: float | None = None
    reps: int | None = None
    rpe: float | None = None
    duration_seconds: int | None = None
    rest_seconds: int | None = None
    note: str | None = None

class ExerciseEntryIn(CamelModel):
    exercise_id: str = Field(min_length=1)
    exercise_index: int = Field(ge=0)
    group_ref: str | None = None
    sets: list[SetIn] = []

class GroupingIn(CamelModel):
    local_ref: str = Field(min_length=1)
    kind: GroupingKind
    ordinal: int
    rest_seconds: int | None = Field(default=None, ge=0)

class WorkoutIn(CamelModel):
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=64)
    title: Optional[str] = Field(default=None, max_length=100)
    start_time: AwareDatetime
    end_time: AwareDatetime
    exercises: list[ExerciseEntryIn] = Field(min_length=1)
    groupings: list[GroupingIn] | None = None

    @model_validator(mode="after")
    def check_time_range(self):
        if self.start_time > self.end_time:
            raise ValueError("startTime must not be after endTime")
        return self


# --- Responses ---

class PruneReportOut(CamelModel):
    dropped_sets: int = 0
    dropped_exercises: int = 0
    dropped_groups: int = 0

class WorkoutLogOut(CamelModel):
    id: str
    idempotency_key: str | None
    title: str | None
    start_time: datetime
    end_time: datetime
    is_edited: bool
    edited_at: datetime | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

class CreateWorkoutOut(CamelModel):
    workout: WorkoutLogOut
    meta: PruneReportOut

class UpdateWorkoutOut(CamelModel):
    workout_id: str
    meta: PruneReportOut

class CatalogExerciseOut(CamelModel):
    id: str
    title: str
    exercise_type: ExerciseType
    thumbnail_url: str | None = None

class SetRecordOut(CamelModel):
    id: str
    set_index: int
    set_type: SetType
    weight: float | None
    reps: int | None
    rpe: float | None
    duration_seconds: int | None
    rest_seconds: int | None
    note: str | None

class WorkoutExerciseOut(CamelModel):
    id: str
    exercise_id: str
    exercise_index: int
    grouping_id: str | None
    exercise: CatalogExerciseOut | None = None
    sets: list[SetRecordOut]

class GroupingOut(CamelModel):
    id: str
    kind: GroupingKind
    ordinal: int
    rest_seconds: int | None

class WorkoutDetailOut(WorkoutLogOut):
    groupings: list[GroupingOut]
    exercises: list[WorkoutExerciseOut]

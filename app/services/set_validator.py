from typing import Protocol

from app.models.enums import ExerciseType


class SetLike(Protocol):
    reps: int | None
    weight: float | None
    duration_seconds: int | None


def is_valid_completed_set(workout_set: SetLike, exercise_type: ExerciseType | str | None) -> bool:
    """Decide whether a logged set counts as completed for the given exercise type.

    Missing numbers count as zero. Unknown exercise types never validate.
    Any client-side "completed set" check has to follow the same table.
    """
    reps = workout_set.reps or 0
    weight = workout_set.weight or 0
    duration = workout_set.duration_seconds or 0

    try:
        kind = ExerciseType(exercise_type)
    except ValueError:
        return False

    if kind is ExerciseType.REPS_ONLY:
        return reps > 0
    if kind is ExerciseType.DURATION_ONLY:
        return duration > 0
    if kind in (ExerciseType.WEIGHTED, ExerciseType.ASSISTED):
        return reps > 0 and weight > 0
    return False

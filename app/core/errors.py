class WorkoutServiceError(Exception):
    status_code: int = 500
    detail: str = "Something went wrong"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class WorkoutNotFoundError(WorkoutServiceError):
    status_code = 404
    detail = "Workout not found"


class NoValidExercisesError(WorkoutServiceError):
    status_code = 400
    detail = "No valid exercises to save"


class IdempotencyConflictError(WorkoutServiceError):
    """Another transaction already committed a workout with this idempotency key."""

    status_code = 409
    detail = "Workout already created"


class StorageError(WorkoutServiceError):
    status_code = 500
    detail = "Storage operation failed"

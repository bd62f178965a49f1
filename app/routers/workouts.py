from fastapi import APIRouter, Depends, Response, status

from app.core.deps import get_current_user_id, get_workout_engine
from app.schemas.workouts import (
    CreateWorkoutOut,
    PruneReportOut,
    UpdateWorkoutOut,
    WorkoutDetailOut,
    WorkoutIn,
    WorkoutLogOut,
)
from app.services.ingestion import PruneReport, WorkoutIngestionEngine


router = APIRouter(prefix="/workouts", tags=["workouts"])


def _meta(report: PruneReport) -> PruneReportOut:
    return PruneReportOut(
        dropped_sets=report.dropped_sets,
        dropped_exercises=report.dropped_exercises,
        dropped_groups=report.dropped_groups,
    )


@router.post("", response_model=CreateWorkoutOut, status_code=201)
async def create_workout(
    payload: WorkoutIn,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    engine: WorkoutIngestionEngine = Depends(get_workout_engine),
):
    result = await engine.create(user_id, payload)

    # Replaying a known idempotency key is not a new resource
    if result.replayed:
        response.status_code = status.HTTP_200_OK

    return CreateWorkoutOut(
        workout=WorkoutLogOut.model_validate(result.workout),
        meta=_meta(result.report),
    )


@router.get("", response_model=list[WorkoutDetailOut])
async def list_workouts(
    user_id: str = Depends(get_current_user_id),
    engine: WorkoutIngestionEngine = Depends(get_workout_engine),
):
    workouts = await engine.list_workouts(user_id)
    return [WorkoutDetailOut.model_validate(w) for w in workouts]


@router.put("/{workout_id}", response_model=UpdateWorkoutOut)
async def update_workout(
    workout_id: str,
    payload: WorkoutIn,
    user_id: str = Depends(get_current_user_id),
    engine: WorkoutIngestionEngine = Depends(get_workout_engine),
):
    result = await engine.update(user_id, workout_id, payload)
    return UpdateWorkoutOut(workout_id=result.workout.id, meta=_meta(result.report))


@router.delete("/{workout_id}", status_code=200)
async def delete_workout(
    workout_id: str,
    user_id: str = Depends(get_current_user_id),
    engine: WorkoutIngestionEngine = Depends(get_workout_engine),
):
    await engine.delete(user_id, workout_id)
    return Response(status_code=status.HTTP_200_OK)

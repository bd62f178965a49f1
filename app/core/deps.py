from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.core.security import decode_token
from app.repositories.workout_repository import SqlAlchemyWorkoutRepository
from app.services.catalog import SqlExerciseCatalog
from app.services.ingestion import WorkoutIngestionEngine

bearer = HTTPBearer(auto_error=False)

async def get_current_user_id(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
) -> str:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        data = decode_token(creds.credentials)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if data.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

    user_id = data.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")

    return str(user_id)


def get_workout_engine(db: AsyncSession = Depends(get_db)) -> WorkoutIngestionEngine:
    return WorkoutIngestionEngine(
        repository=SqlAlchemyWorkoutRepository(db),
        catalog=SqlExerciseCatalog(db),
    )

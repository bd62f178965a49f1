from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import WorkoutServiceError
from app.core.logging import configure_logging
from app.routers.workouts import router as workouts_router

configure_logging()

app = FastAPI(title="Workout Log API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_origin_regex=r"^https://.*\.vercel\.app$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WorkoutServiceError)
async def workout_service_error_handler(request: Request, exc: WorkoutServiceError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


app.include_router(workouts_router)


@app.get("/health")
def health():
    return {"ok": True}

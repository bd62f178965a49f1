import pytest
from httpx import ASGITransport, AsyncClient

from app.core.db import Base, create_engine_and_session, get_db
from app.core.security import create_access_token
from app.main import app
from app.models.enums import ExerciseType
from app.models.exercise import Exercise
from app.services.ingestion import WorkoutIngestionEngine
from tests.fakes import FakeExerciseCatalog, FakeWorkoutRepository
from tests.payloads import ASSISTED_PULL_UP, BENCH_PRESS, OTHER_USER_ID, PLANK, PUSH_UP, USER_ID

CATALOG = {
    BENCH_PRESS: ("Bench Press", ExerciseType.WEIGHTED),
    PUSH_UP: ("Push Up", ExerciseType.REPS_ONLY),
    PLANK: ("Plank", ExerciseType.DURATION_ONLY),
    ASSISTED_PULL_UP: ("Assisted Pull Up", ExerciseType.ASSISTED),
}


# --- engine against in-memory fakes ---

@pytest.fixture
def fake_repo() -> FakeWorkoutRepository:
    return FakeWorkoutRepository()


@pytest.fixture
def fake_catalog() -> FakeExerciseCatalog:
    return FakeExerciseCatalog({exercise_id: kind for exercise_id, (_, kind) in CATALOG.items()})


@pytest.fixture
def engine(fake_repo, fake_catalog) -> WorkoutIngestionEngine:
    return WorkoutIngestionEngine(repository=fake_repo, catalog=fake_catalog)


# --- API against a throwaway SQLite database ---

@pytest.fixture
async def session_factory(tmp_path):
    db_engine, factory = create_engine_and_session(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with factory() as session:
        session.add_all(
            [
                Exercise(id=exercise_id, title=title, exercise_type=kind)
                for exercise_id, (title, kind) in CATALOG.items()
            ]
        )
        await session.commit()

    yield factory

    await db_engine.dispose()


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {create_access_token(USER_ID)}"},
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def other_user_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(OTHER_USER_ID)}"}

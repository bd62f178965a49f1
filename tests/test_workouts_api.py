from sqlalchemy import func, select

from app.models.exercise_grouping import ExerciseGrouping
from app.models.set_record import SetRecord
from app.models.workout_exercise import WorkoutExercise
from app.models.workout_log import WorkoutLog
from tests.payloads import (
    ASSISTED_PULL_UP,
    BENCH_PRESS,
    PLANK,
    PUSH_UP,
    UNKNOWN_EXERCISE,
    make_exercise,
    make_grouping,
    make_set,
    make_workout,
)


async def _count(session_factory, model) -> int:
    async with session_factory() as session:
        res = await session.execute(select(func.count()).select_from(model))
        return res.scalar_one()


def _superset_body(**kwargs):
    return make_workout(
        exercises=[
            make_exercise(
                BENCH_PRESS,
                0,
                [make_set(0, reps=10, weight=50), make_set(1, reps=0, weight=0)],
                group_ref="G",
            ),
            make_exercise(PUSH_UP, 1, [make_set(0, reps=8)], group_ref="G"),
        ],
        groupings=[make_grouping("G", 0, rest_seconds=90)],
        **kwargs,
    )


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


async def test_requires_bearer_token(client):
    r = await client.get("/workouts", headers={"Authorization": ""})
    assert r.status_code == 401

    r = await client.get("/workouts", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


async def test_create_returns_workout_and_prune_report(client, session_factory):
    r = await client.post("/workouts", json=_superset_body())

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["meta"] == {"droppedSets": 1, "droppedExercises": 0, "droppedGroups": 0}
    assert body["workout"]["title"] == "Push day"
    assert body["workout"]["isEdited"] is False

    assert await _count(session_factory, WorkoutExercise) == 2
    assert await _count(session_factory, SetRecord) == 2

    r_list = await client.get("/workouts")
    assert r_list.status_code == 200
    [workout] = r_list.json()
    assert workout["id"] == body["workout"]["id"]

    [grouping] = workout["groupings"]
    assert grouping["ordinal"] == 0
    assert grouping["kind"] == "superset"
    assert grouping["restSeconds"] == 90
    assert {ex["groupingId"] for ex in workout["exercises"]} == {grouping["id"]}


async def test_singleton_grouping_is_dropped(client):
    body = make_workout(
        exercises=[
            make_exercise(
                BENCH_PRESS,
                0,
                [make_set(0, reps=10, weight=50), make_set(1, reps=0, weight=0)],
                group_ref="G",
            ),
        ],
        groupings=[make_grouping("G", 0)],
    )

    r = await client.post("/workouts", json=body)

    assert r.status_code == 201, r.text
    assert r.json()["meta"] == {"droppedSets": 1, "droppedExercises": 0, "droppedGroups": 1}

    [workout] = (await client.get("/workouts")).json()
    assert workout["groupings"] == []
    assert workout["exercises"][0]["groupingId"] is None


async def test_reindexed_groupings_are_contiguous(client, session_factory):
    body = make_workout(
        exercises=[
            make_exercise(PUSH_UP, 0, [make_set(reps=10)], group_ref="a"),
            make_exercise(PLANK, 1, [make_set(duration_seconds=45)], group_ref="a"),
            make_exercise(BENCH_PRESS, 2, [make_set(reps=5, weight=100)], group_ref="b"),
            make_exercise(ASSISTED_PULL_UP, 3, [make_set(reps=6, weight=20)], group_ref="c"),
            make_exercise(PUSH_UP, 4, [make_set(reps=12)], group_ref="c"),
        ],
        groupings=[
            make_grouping("c", 9, kind="giant_set"),
            make_grouping("a", 1),
            make_grouping("b", 4, kind="circuit"),
        ],
    )

    r = await client.post("/workouts", json=body)
    assert r.status_code == 201, r.text
    assert r.json()["meta"]["droppedGroups"] == 1

    async with session_factory() as session:
        res = await session.execute(select(ExerciseGrouping).order_by(ExerciseGrouping.ordinal))
        groupings = res.scalars().all()
        assert [g.ordinal for g in groupings] == [0, 1]
        assert [g.kind.value for g in groupings] == ["superset", "giant_set"]

        for g in groupings:
            members = await session.execute(
                select(func.count()).select_from(WorkoutExercise).where(WorkoutExercise.grouping_id == g.id)
            )
            assert members.scalar_one() == 2


async def test_idempotent_replay_returns_same_workout(client, session_factory):
    body = _superset_body(idempotency_key="0d8f4c1a-retry")

    first = await client.post("/workouts", json=body)
    second = await client.post("/workouts", json=body)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["workout"]["id"] == first.json()["workout"]["id"]
    assert second.json()["meta"] == {"droppedSets": 0, "droppedExercises": 0, "droppedGroups": 0}

    assert await _count(session_factory, WorkoutLog) == 1
    assert await _count(session_factory, ExerciseGrouping) == 1
    assert await _count(session_factory, WorkoutExercise) == 2
    assert await _count(session_factory, SetRecord) == 2


async def test_nothing_valid_is_rejected_without_trace(client, session_factory):
    body = make_workout(
        exercises=[
            make_exercise(UNKNOWN_EXERCISE, 0, [make_set(reps=10)], group_ref="G"),
            make_exercise(PLANK, 1, [make_set(reps=10)], group_ref="G"),
        ],
        groupings=[make_grouping("G", 0)],
    )

    r = await client.post("/workouts", json=body)

    assert r.status_code == 400
    assert r.json() == {"detail": "No valid exercises to save"}
    assert await _count(session_factory, WorkoutLog) == 0
    assert await _count(session_factory, ExerciseGrouping) == 0
    assert await _count(session_factory, WorkoutExercise) == 0


async def test_malformed_requests_are_rejected(client, session_factory):
    empty = make_workout(exercises=[])
    assert (await client.post("/workouts", json=empty)).status_code == 422

    backwards = make_workout(exercises=[make_exercise(PUSH_UP, 0, [make_set(reps=1)])])
    backwards["startTime"], backwards["endTime"] = backwards["endTime"], backwards["startTime"]
    assert (await client.post("/workouts", json=backwards)).status_code == 422

    bad_groupings = make_workout(exercises=[make_exercise(PUSH_UP, 0, [make_set(reps=1)])])
    bad_groupings["groupings"] = "superset"
    assert (await client.post("/workouts", json=bad_groupings)).status_code == 422

    negative_rest = make_workout(
        exercises=[make_exercise(PUSH_UP, 0, [make_set(reps=1)])],
        groupings=[make_grouping("G", 0, rest_seconds=-5)],
    )
    assert (await client.post("/workouts", json=negative_rest)).status_code == 422

    no_start = make_workout(exercises=[make_exercise(PUSH_UP, 0, [make_set(reps=1)])])
    del no_start["startTime"]
    assert (await client.post("/workouts", json=no_start)).status_code == 422

    naive = make_workout(exercises=[make_exercise(PUSH_UP, 0, [make_set(reps=1)])])
    naive["startTime"] = "2026-10-18T07:00:00"
    assert (await client.post("/workouts", json=naive)).status_code == 422

    assert await _count(session_factory, WorkoutLog) == 0


async def test_list_orders_children_and_includes_catalog_entry(client):
    body = make_workout(
        exercises=[
            make_exercise(PUSH_UP, 2, [make_set(1, reps=10), make_set(0, reps=12)]),
            make_exercise(BENCH_PRESS, 0, [make_set(0, set_type="warmup", reps=10, weight=40, note="easy")]),
        ],
    )
    r = await client.post("/workouts", json=body)
    assert r.status_code == 201, r.text

    [workout] = (await client.get("/workouts")).json()

    assert [ex["exerciseIndex"] for ex in workout["exercises"]] == [0, 2]
    bench, push_up = workout["exercises"]
    assert bench["exercise"] == {
        "id": BENCH_PRESS,
        "title": "Bench Press",
        "exerciseType": "weighted",
        "thumbnailUrl": None,
    }
    assert bench["sets"][0]["setType"] == "warmup"
    assert bench["sets"][0]["note"] == "easy"
    assert [s["setIndex"] for s in push_up["sets"]] == [0, 1]
    assert [s["reps"] for s in push_up["sets"]] == [12, 10]


async def test_update_replaces_workout_in_place(client, session_factory):
    created = (await client.post("/workouts", json=_superset_body())).json()
    workout_id = created["workout"]["id"]

    body = make_workout(
        exercises=[
            make_exercise(PLANK, 0, [make_set(0, duration_seconds=60), make_set(1, duration_seconds=0)]),
            make_exercise(UNKNOWN_EXERCISE, 1, [make_set(0, reps=3)]),
        ],
        title="Core day",
    )
    r = await client.put(f"/workouts/{workout_id}", json=body)

    assert r.status_code == 200, r.text
    assert r.json() == {
        "workoutId": workout_id,
        "meta": {"droppedSets": 1, "droppedExercises": 1, "droppedGroups": 0},
    }

    [workout] = (await client.get("/workouts")).json()
    assert workout["id"] == workout_id
    assert workout["title"] == "Core day"
    assert workout["isEdited"] is True
    assert workout["editedAt"] is not None
    assert workout["groupings"] == []
    assert [ex["exerciseId"] for ex in workout["exercises"]] == [PLANK]

    assert await _count(session_factory, ExerciseGrouping) == 0
    assert await _count(session_factory, WorkoutExercise) == 1
    assert await _count(session_factory, SetRecord) == 1


async def test_update_with_nothing_valid_keeps_previous_version(client, session_factory):
    created = (await client.post("/workouts", json=_superset_body())).json()
    workout_id = created["workout"]["id"]

    body = make_workout(exercises=[make_exercise(UNKNOWN_EXERCISE, 0, [make_set(reps=3)])], title="Oops")
    r = await client.put(f"/workouts/{workout_id}", json=body)

    assert r.status_code == 400
    [workout] = (await client.get("/workouts")).json()
    assert workout["title"] == "Push day"
    assert workout["isEdited"] is False
    assert len(workout["groupings"]) == 1
    assert await _count(session_factory, SetRecord) == 2


async def test_update_of_another_users_workout_is_not_found(client, other_user_headers):
    created = (await client.post("/workouts", json=_superset_body())).json()
    workout_id = created["workout"]["id"]

    r = await client.put(f"/workouts/{workout_id}", json=_superset_body(), headers=other_user_headers)
    assert r.status_code == 404

    r = await client.delete(f"/workouts/{workout_id}", headers=other_user_headers)
    assert r.status_code == 404

    assert (await client.get("/workouts", headers=other_user_headers)).json() == []


async def test_delete_is_soft_and_final(client, session_factory):
    created = (await client.post("/workouts", json=_superset_body())).json()
    workout_id = created["workout"]["id"]

    r = await client.delete(f"/workouts/{workout_id}")
    assert r.status_code == 200
    assert r.content == b""

    assert (await client.get("/workouts")).json() == []

    assert (await client.put(f"/workouts/{workout_id}", json=_superset_body())).status_code == 404
    assert (await client.delete(f"/workouts/{workout_id}")).status_code == 404

    # children stay in place behind the deleted root
    assert await _count(session_factory, WorkoutLog) == 1
    assert await _count(session_factory, WorkoutExercise) == 2


async def test_unknown_workout_id_is_not_found(client):
    r = await client.delete("/workouts/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"detail": "Workout not found"}

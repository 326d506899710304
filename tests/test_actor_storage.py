from __future__ import annotations

from pathlib import Path

import allure
import pytest
from agent_doubles import GatedAgentClient, subtask_list
from sqlalchemy import text

from task_decomposer.actor.models import SubtaskStatus, TaskStatus
from task_decomposer.actor.processor import TaskProcessingActor
from task_decomposer.actor.storage import InMemoryActorStorage, SQLiteActorStorage
from task_decomposer.storage.alembic_runner import current_revision, upgrade_head
from task_decomposer.storage.common import build_sqlite_engine

pytestmark = [
    allure.epic("Task Actor"),
    allure.feature("Durable Storage"),
]


@pytest.fixture()
def engine(tmp_path: Path):
    db_path = tmp_path / "actor.db"
    upgrade_head(db_path)
    engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=2_000)
    yield engine
    engine.dispose()


def test_alembic_schema_is_initialized_to_head(engine) -> None:
    with engine.connect() as connection:
        tables = connection.execute(
            text(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name IN ('actor_state', 'tasks') ORDER BY name",
            ),
        ).all()

    assert current_revision(engine) == "20261019_0001"
    assert [row[0] for row in tables] == ["actor_state", "tasks"]


def test_sqlite_storage_round_trips_json_values(engine) -> None:
    storage = SQLiteActorStorage(engine=engine, task_id="task-a")

    storage.put("prompt", "Plan a trip")
    storage.put("subtasks", [{"id": "1", "description": "Book flights", "result": None}])

    assert storage.get("prompt") == "Plan a trip"
    assert storage.get("subtasks") == [{"id": "1", "description": "Book flights", "result": None}]
    assert storage.get("missing") is None


def test_sqlite_storage_overwrites_existing_key(engine) -> None:
    storage = SQLiteActorStorage(engine=engine, task_id="task-a")

    storage.put("status", "pending")
    storage.put("status", "processing")

    assert storage.get("status") == "processing"
    assert storage.keys() == ["status"]


def test_sqlite_storage_put_many_writes_all_keys(engine) -> None:
    storage = SQLiteActorStorage(engine=engine, task_id="task-a")
    storage.put("status", "processing")

    storage.put_many({"status": "failed", "error": "Subtask 1 failed"})

    assert storage.get("status") == "failed"
    assert storage.get("error") == "Subtask 1 failed"
    assert storage.keys() == ["error", "status"]


def test_sqlite_storage_is_scoped_to_one_task(engine) -> None:
    first = SQLiteActorStorage(engine=engine, task_id="task-a")
    second = SQLiteActorStorage(engine=engine, task_id="task-b")

    first.put("prompt", "first")
    second.put("prompt", "second")

    assert first.get("prompt") == "first"
    assert second.get("prompt") == "second"
    assert first.keys() == ["prompt"]


def test_sqlite_storage_survives_new_engine(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "restart.db"
    upgrade_head(db_path)
    engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=2_000)
    SQLiteActorStorage(engine=engine, task_id="task-a").put("status", "completed")
    engine.dispose()

    reopened = build_sqlite_engine(db_path=db_path, busy_timeout_ms=2_000)
    try:
        assert SQLiteActorStorage(engine=reopened, task_id="task-a").get("status") == "completed"
    finally:
        reopened.dispose()


def test_in_memory_storage_copies_values() -> None:
    storage = InMemoryActorStorage()
    subtasks = [{"id": "1", "status": "pending"}]

    storage.put("subtasks", subtasks)
    subtasks[0]["status"] = "completed"
    read_back = storage.get("subtasks")
    read_back[0]["status"] = "processing"

    assert storage.get("subtasks") == [{"id": "1", "status": "pending"}]


def test_in_memory_storage_put_many() -> None:
    storage = InMemoryActorStorage()

    storage.put_many({"status": "completed", "completed_at": "2026-01-01T00:00:00+00:00"})

    assert storage.keys() == ["completed_at", "status"]
    assert storage.get("status") == "completed"


def test_in_flight_progress_is_durable_for_a_fresh_reader(tmp_path: Path) -> None:
    db_path = tmp_path / "in_flight.db"
    upgrade_head(db_path)
    engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=2_000)
    agent = GatedAgentClient(subtask_list("one", "two", "three", "four"))
    actor = TaskProcessingActor(
        task_id="task-a",
        storage=SQLiteActorStorage(engine=engine, task_id="task-a"),
        agent_client=agent,
    )
    actor.initialize("Four steps")
    actor.begin_processing()

    for _ in range(2):
        assert agent.entered.acquire(timeout=5)
        agent.release.release()
    assert agent.entered.acquire(timeout=5)

    reader_engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=2_000)
    try:
        reader = TaskProcessingActor(
            task_id="task-a",
            storage=SQLiteActorStorage(engine=reader_engine, task_id="task-a"),
            agent_client=GatedAgentClient("unused"),
        )
        snapshot = reader.get_status()
    finally:
        reader_engine.dispose()
        agent.release.release()
        for _ in range(2):
            if agent.entered.acquire(timeout=5):
                agent.release.release()
        assert actor.wait(timeout=5)
        engine.dispose()

    assert snapshot.status == TaskStatus.PROCESSING
    assert snapshot.prompt == "Four steps"
    assert snapshot.subtasks is not None
    assert [subtask.status for subtask in snapshot.subtasks] == [
        SubtaskStatus.COMPLETED,
        SubtaskStatus.PROCESSING,
        SubtaskStatus.PENDING,
        SubtaskStatus.PENDING,
    ]
    assert snapshot.subtasks[0].result == "Result for one"
    assert snapshot.subtasks[0].completed_at is not None
    assert snapshot.subtasks[1].result is None

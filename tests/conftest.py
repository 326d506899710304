"""Shared test fixtures."""

from __future__ import annotations

import pytest

from task_decomposer.actor.processor import TaskProcessingActor
from task_decomposer.actor.storage import InMemoryActorStorage


@pytest.fixture()
def make_actor():
    """Build an in-memory actor around an agent double."""

    def _make(agent_client, *, task_id: str = "task-1", storage=None) -> TaskProcessingActor:
        return TaskProcessingActor(
            task_id=task_id,
            storage=storage if storage is not None else InMemoryActorStorage(),
            agent_client=agent_client,
        )

    return _make


@pytest.fixture()
def echo_env(monkeypatch, tmp_path):
    """Point settings at a temp DB and the offline echo agent."""

    db_path = tmp_path / "tasks.db"
    monkeypatch.setenv("TASK_DECOMPOSER_DB_PATH", str(db_path))
    monkeypatch.setenv("TASK_DECOMPOSER_AGENT_BACKEND", "echo")
    return db_path

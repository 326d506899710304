from __future__ import annotations

import threading

import allure
import pytest
from agent_doubles import GatedAgentClient, ScriptedAgentClient, subtask_list

from task_decomposer.actor.directory import ActorDirectory
from task_decomposer.actor.models import TaskNotInitializedError, TaskStatus
from task_decomposer.actor.status import StatusFacade
from task_decomposer.actor.storage import InMemoryActorStorage

pytestmark = [
    allure.epic("Task Actor"),
    allure.feature("Directory & Status"),
]


def _directory(agent=None) -> tuple[ActorDirectory, dict[str, InMemoryActorStorage]]:
    storages: dict[str, InMemoryActorStorage] = {}

    def factory(task_id: str) -> InMemoryActorStorage:
        storages[task_id] = InMemoryActorStorage()
        return storages[task_id]

    directory = ActorDirectory(
        storage_factory=factory,
        agent_client=agent or ScriptedAgentClient(subtask_list("one", "two")),
    )
    return directory, storages


def test_resolve_returns_same_actor_for_same_id() -> None:
    directory, storages = _directory()

    first = directory.resolve("task-1")
    second = directory.resolve("task-1")
    other = directory.resolve("task-2")

    assert first is second
    assert other is not first
    assert sorted(storages) == ["task-1", "task-2"]
    assert "task-1" in directory
    assert "task-3" not in directory


def test_resolve_rejects_empty_id() -> None:
    directory, _ = _directory()

    with pytest.raises(ValueError, match="non-empty"):
        directory.resolve("")


def test_concurrent_resolve_creates_one_actor() -> None:
    directory, storages = _directory()
    barrier = threading.Barrier(8)
    resolved = []
    lock = threading.Lock()

    def worker() -> None:
        barrier.wait(timeout=5)
        actor = directory.resolve("shared")
        with lock:
            resolved.append(actor)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert len(resolved) == 8
    assert all(actor is resolved[0] for actor in resolved)
    assert list(storages) == ["shared"]


def test_status_facade_reads_through_directory() -> None:
    directory, _ = _directory()
    facade = StatusFacade(directory)
    actor = directory.resolve("task-1")
    actor.initialize("Two steps")
    actor.begin_processing()

    assert directory.wait_all(timeout=5)
    snapshot = facade.get_status("task-1")
    assert snapshot.status == TaskStatus.COMPLETED
    assert snapshot.subtasks is not None
    assert len(snapshot.subtasks) == 2


def test_status_facade_unknown_task_is_not_initialized() -> None:
    directory, _ = _directory()

    with pytest.raises(TaskNotInitializedError):
        StatusFacade(directory).get_status("never-created")


def test_tasks_progress_independently() -> None:
    agent = ScriptedAgentClient(subtask_list("shared step"))
    directory, _ = _directory(agent)
    facade = StatusFacade(directory)

    for task_id in ("a", "b", "c"):
        actor = directory.resolve(task_id)
        actor.initialize(f"Task {task_id}")
        actor.begin_processing()

    assert directory.wait_all(timeout=5)
    for task_id in ("a", "b", "c"):
        snapshot = facade.get_status(task_id)
        assert snapshot.status == TaskStatus.COMPLETED
        assert snapshot.prompt == f"Task {task_id}"


def test_running_task_ids_and_bounded_wait_all() -> None:
    agent = GatedAgentClient(subtask_list("only"))
    directory, _ = _directory(agent)
    actor = directory.resolve("task-1")
    actor.initialize("One step")
    actor.begin_processing()
    assert agent.entered.acquire(timeout=5)

    assert directory.running_task_ids() == ["task-1"]
    assert not directory.wait_all(timeout=0.05)

    agent.release.release()
    assert agent.entered.acquire(timeout=5)
    agent.release.release()
    assert directory.wait_all(timeout=5)
    assert directory.running_task_ids() == []

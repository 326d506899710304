"""Stable task-id to actor addressing."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from task_decomposer.actor.processor import TaskProcessingActor
from task_decomposer.actor.storage import ActorStorage
from task_decomposer.agent.base import AgentClient

StorageFactory = Callable[[str], ActorStorage]


class ActorDirectory:
    """Resolves a task id to the single actor that owns it.

    Resolution is deterministic: the same id returns the same instance for
    the lifetime of the directory. Actors are created on first resolution.
    """

    def __init__(
        self,
        *,
        storage_factory: StorageFactory,
        agent_client: AgentClient,
        completion_client: AgentClient | None = None,
    ) -> None:
        self._storage_factory = storage_factory
        self._agent_client = agent_client
        self._completion_client = completion_client
        self._actors: dict[str, TaskProcessingActor] = {}
        self._lock = threading.Lock()

    def resolve(self, task_id: str) -> TaskProcessingActor:
        if not task_id:
            raise ValueError("task_id must be a non-empty string.")
        with self._lock:
            actor = self._actors.get(task_id)
            if actor is None:
                actor = TaskProcessingActor(
                    task_id=task_id,
                    storage=self._storage_factory(task_id),
                    agent_client=self._agent_client,
                    completion_client=self._completion_client,
                )
                self._actors[task_id] = actor
            return actor

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._actors

    def wait_all(self, timeout: float | None = None) -> bool:
        """Wait for every known actor's background work; True when all ended.

        `timeout` bounds the whole wait, not each actor.
        """

        with self._lock:
            actors = list(self._actors.values())
        deadline = None if timeout is None else time.monotonic() + timeout
        for actor in actors:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            if not actor.wait(timeout=remaining):
                return False
        return True

    def running_task_ids(self) -> list[str]:
        """Ids of tasks whose background worker is still alive."""

        with self._lock:
            return sorted(task_id for task_id, actor in self._actors.items() if actor.is_running)

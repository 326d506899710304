"""Use-case services for task creation, polling and listing."""

from __future__ import annotations

import logging
from uuid import uuid4

from task_decomposer.actor.directory import ActorDirectory
from task_decomposer.actor.models import (
    TaskActorError,
    TaskNotInitializedError,
    TaskSnapshot,
    TaskView,
)
from task_decomposer.actor.status import StatusFacade
from task_decomposer.registry.models import TaskNotFoundError, TaskRecordView
from task_decomposer.registry.repository import TaskRegistryRepository

logger = logging.getLogger(__name__)


class TaskService:
    """Coordinates the registry with the per-task actors."""

    def __init__(
        self,
        *,
        registry: TaskRegistryRepository,
        directory: ActorDirectory,
        status: StatusFacade | None = None,
    ) -> None:
        self.registry = registry
        self.directory = directory
        self.status = status or StatusFacade(directory)

    def create_task(self, prompt: str) -> TaskRecordView:
        """Register a task, initialize its actor and start processing."""

        if not isinstance(prompt, str) or not prompt.strip():
            raise ValueError("Prompt is required and must be a non-empty string.")

        task_id = str(uuid4())
        record = self.registry.register_task(task_id=task_id, prompt=prompt)
        actor = self.directory.resolve(task_id)
        actor.initialize(prompt)
        actor.begin_processing(prompt)
        logger.info("Task %s created", task_id)
        return record

    def get_task(self, task_id: str) -> TaskView:
        record = self.registry.get_task(task_id=task_id)
        if record is None:
            raise TaskNotFoundError(f"Task not found: {task_id}")
        try:
            snapshot = self.status.get_status(task_id)
        except TaskNotInitializedError as error:
            raise TaskNotFoundError(f"Task has no recorded state: {task_id}") from error
        self._mirror_status(record, snapshot)
        return TaskView(task_id=record.task_id, owner_id=record.owner_id, snapshot=snapshot)

    def list_tasks(self, *, limit: int = 50) -> list[TaskView]:
        """Newest first; registry metadata stands in for unreadable snapshots."""

        views: list[TaskView] = []
        for record in self.registry.list_tasks(limit=limit):
            try:
                snapshot = self.status.get_status(record.task_id)
            except TaskActorError as error:
                logger.warning("Snapshot unavailable for task %s: %s", record.task_id, error)
                snapshot = TaskSnapshot(
                    status=record.status,
                    prompt=record.prompt,
                    created_at=record.created_at,
                )
            else:
                self._mirror_status(record, snapshot)
            views.append(
                TaskView(task_id=record.task_id, owner_id=record.owner_id, snapshot=snapshot),
            )
        return views

    def _mirror_status(self, record: TaskRecordView, snapshot: TaskSnapshot) -> None:
        if record.status != snapshot.status:
            self.registry.update_status(task_id=record.task_id, status=snapshot.status)

"""Read-only status façade over the actor directory."""

from __future__ import annotations

from task_decomposer.actor.directory import ActorDirectory
from task_decomposer.actor.models import TaskSnapshot


class StatusFacade:
    """Lets callers poll task state without knowing actor addressing."""

    def __init__(self, directory: ActorDirectory) -> None:
        self._directory = directory

    def get_status(self, task_id: str) -> TaskSnapshot:
        return self._directory.resolve(task_id).get_status()

"""Per-task processing actor, its durable state model and addressing."""

from task_decomposer.actor.directory import ActorDirectory
from task_decomposer.actor.models import (
    Subtask,
    SubtaskStatus,
    TaskActorError,
    TaskNotInitializedError,
    TaskSnapshot,
    TaskStateError,
    TaskStatus,
)
from task_decomposer.actor.processor import TaskProcessingActor
from task_decomposer.actor.status import StatusFacade
from task_decomposer.actor.storage import ActorStorage, InMemoryActorStorage, SQLiteActorStorage

__all__ = [
    "ActorDirectory",
    "ActorStorage",
    "InMemoryActorStorage",
    "SQLiteActorStorage",
    "StatusFacade",
    "Subtask",
    "SubtaskStatus",
    "TaskActorError",
    "TaskNotInitializedError",
    "TaskProcessingActor",
    "TaskSnapshot",
    "TaskStateError",
    "TaskStatus",
]

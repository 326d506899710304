"""Domain models for the per-task processing actor."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from task_decomposer.storage.common import from_iso, to_iso


class TaskStatus(str, Enum):
    """Durable task lifecycle states."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class SubtaskStatus(str, Enum):
    """Per-subtask lifecycle states."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"


class TaskActorError(Exception):
    """Base error raised by task actors."""


class TaskNotInitializedError(TaskActorError):
    """Operation requested on an actor that holds no task."""


class TaskStateError(TaskActorError):
    """Requested transition is not allowed from the current status."""


@dataclass(slots=True)
class Subtask:
    """One unit of decomposed work, addressed by its 1-based position."""

    id: str
    description: str
    status: SubtaskStatus = SubtaskStatus.PENDING
    result: str | None = None
    completed_at: datetime | None = None

    def to_state(self) -> dict[str, Any]:
        """Serialize into the JSON-compatible form kept in actor storage."""

        return {
            "id": self.id,
            "description": self.description,
            "status": self.status.value,
            "result": self.result,
            "completed_at": to_iso(self.completed_at) if self.completed_at else None,
        }

    @classmethod
    def from_state(cls, data: dict[str, Any]) -> Subtask:
        completed_at = data.get("completed_at")
        return cls(
            id=str(data["id"]),
            description=str(data["description"]),
            status=SubtaskStatus(data.get("status", SubtaskStatus.PENDING.value)),
            result=data.get("result"),
            completed_at=from_iso(completed_at) if completed_at else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "status": self.status.value,
            "result": self.result,
            "completedAt": to_iso(self.completed_at) if self.completed_at else None,
        }


@dataclass(slots=True, frozen=True)
class TaskSnapshot:
    """Read-only, point-in-time copy of one actor's durable state."""

    status: TaskStatus
    prompt: str
    subtasks: tuple[Subtask, ...] | None = None
    error: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def processing_subtask(self) -> Subtask | None:
        for subtask in self.subtasks or ():
            if subtask.status == SubtaskStatus.PROCESSING:
                return subtask
        return None

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase shape returned to polling clients."""

        return {
            "status": self.status.value,
            "prompt": self.prompt,
            "subtasks": (
                [subtask.to_dict() for subtask in self.subtasks]
                if self.subtasks is not None
                else None
            ),
            "error": self.error,
            "createdAt": to_iso(self.created_at) if self.created_at else None,
            "completedAt": to_iso(self.completed_at) if self.completed_at else None,
        }


@dataclass(slots=True)
class TaskView:
    """Registry metadata merged with the actor snapshot, for listings."""

    task_id: str
    owner_id: str
    snapshot: TaskSnapshot

    def to_dict(self) -> dict[str, Any]:
        return {"taskId": self.task_id, "ownerId": self.owner_id, **self.snapshot.to_dict()}

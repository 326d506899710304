"""Registry views returned to services and controllers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from task_decomposer.actor.models import TaskStatus


class TaskNotFoundError(LookupError):
    """No task is registered under the requested id."""


@dataclass(slots=True)
class TaskRecordView:
    """Readable registry row."""

    task_id: str
    owner_id: str
    prompt: str
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

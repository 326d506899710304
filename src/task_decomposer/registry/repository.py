"""Persistent task registry backed by SQLModel + SQLite."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from sqlmodel import Session, col, select

from task_decomposer.actor.models import TaskStatus
from task_decomposer.registry.models import TaskNotFoundError, TaskRecordView
from task_decomposer.storage.alembic_runner import upgrade_head
from task_decomposer.storage.common import build_sqlite_engine, utc_now
from task_decomposer.storage.sqlmodel_models import DEFAULT_OWNER_ID, TaskRecord


class TaskRegistryRepository:
    """Owner-scoped task bookkeeping; actor state lives elsewhere."""

    def __init__(
        self,
        db_path: Path,
        *,
        owner_id: str = DEFAULT_OWNER_ID,
        sqlite_busy_timeout_ms: int = 5_000,
    ) -> None:
        self.db_path = db_path
        self.owner_id = owner_id
        self.engine = build_sqlite_engine(
            db_path=db_path,
            busy_timeout_ms=sqlite_busy_timeout_ms,
        )

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def register_task(self, *, task_id: str, prompt: str) -> TaskRecordView:
        """Record a freshly created task in `pending` status."""

        now = utc_now()
        with Session(self.engine) as session:
            row = TaskRecord(
                task_id=task_id,
                owner_id=self.owner_id,
                prompt=prompt,
                status=TaskStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_record_view(row)

    def get_task(self, *, task_id: str) -> TaskRecordView | None:
        with Session(self.engine) as session:
            row = session.exec(
                select(TaskRecord).where(
                    TaskRecord.task_id == task_id,
                    TaskRecord.owner_id == self.owner_id,
                ),
            ).one_or_none()
            if row is None:
                return None
            return _to_record_view(row)

    def list_tasks(self, *, limit: int = 50) -> list[TaskRecordView]:
        """List recent tasks, newest first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(TaskRecord)
                .where(TaskRecord.owner_id == self.owner_id)
                .order_by(col(TaskRecord.created_at).desc())
                .limit(limit),
            ).all()
            return [_to_record_view(row) for row in rows]

    def update_status(self, *, task_id: str, status: TaskStatus) -> None:
        """Mirror the actor's status into the registry row."""

        with Session(self.engine) as session:
            row = session.exec(
                select(TaskRecord).where(
                    TaskRecord.task_id == task_id,
                    TaskRecord.owner_id == self.owner_id,
                ),
            ).one_or_none()
            if row is None:
                raise TaskNotFoundError(f"Task not found: {task_id}")
            if row.status == status.value:
                return
            row.status = status.value
            row.updated_at = utc_now()
            session.add(row)
            session.commit()


def _to_utc_aware_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_record_view(row: TaskRecord) -> TaskRecordView:
    return TaskRecordView(
        task_id=row.task_id,
        owner_id=row.owner_id,
        prompt=row.prompt,
        status=TaskStatus(row.status),
        created_at=_to_utc_aware_datetime(row.created_at),
        updated_at=_to_utc_aware_datetime(row.updated_at),
    )

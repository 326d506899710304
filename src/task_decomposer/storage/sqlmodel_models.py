"""SQLModel ORM tables for actor state and task registry."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, PrimaryKeyConstraint, Text
from sqlmodel import Field, SQLModel

DEFAULT_OWNER_ID = "default_user"


class ActorStateEntry(SQLModel, table=True):
    __tablename__ = "actor_state"  # type: ignore[bad-override]
    __table_args__ = (PrimaryKeyConstraint("task_id", "state_key", name="pk_actor_state"),)

    task_id: str = Field(index=True)
    state_key: str
    value_json: str = Field(sa_column=Column(Text, nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class TaskRecord(SQLModel, table=True):
    __tablename__ = "tasks"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_tasks_owner_created", "owner_id", "created_at"),)

    task_id: str = Field(primary_key=True)
    owner_id: str = Field(default=DEFAULT_OWNER_ID, index=True)
    prompt: str = Field(sa_column=Column(Text, nullable=False))
    status: str = Field(index=True)
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))

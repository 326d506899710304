"""Durable key-value storage scoped to a single task actor."""

from __future__ import annotations

import copy
import json
import threading
from typing import Any, Protocol

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from task_decomposer.storage.common import utc_now
from task_decomposer.storage.sqlmodel_models import ActorStateEntry


class ActorStorage(Protocol):
    """Storage interface owned by exactly one actor instance."""

    def put(self, key: str, value: Any) -> None:
        """Durably store a JSON-compatible value under `key`."""

    def get(self, key: str) -> Any | None:
        """Return the last value stored under `key`, or None."""

    def put_many(self, values: dict[str, Any]) -> None:
        """Store several values so that readers never observe only part of them."""


class InMemoryActorStorage:
    """Process-local storage for tests and ephemeral runs."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = copy.deepcopy(value)

    def put_many(self, values: dict[str, Any]) -> None:
        with self._lock:
            for key, value in values.items():
                self._values[key] = copy.deepcopy(value)

    def get(self, key: str) -> Any | None:
        with self._lock:
            return copy.deepcopy(self._values.get(key))

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._values)


class SQLiteActorStorage:
    """Actor storage persisted as JSON rows in the `actor_state` table.

    Each `put` commits before returning, so the owning actor always reads its
    own writes. Rows of other tasks are never visible through this object.
    """

    def __init__(self, *, engine: Engine, task_id: str) -> None:
        self.engine = engine
        self.task_id = task_id

    def put(self, key: str, value: Any) -> None:
        self.put_many({key: value})

    def put_many(self, values: dict[str, Any]) -> None:
        now = utc_now()
        with Session(self.engine) as session:
            for key, value in values.items():
                payload = json.dumps(value, ensure_ascii=False)
                row = session.get(ActorStateEntry, (self.task_id, key))
                if row is None:
                    row = ActorStateEntry(
                        task_id=self.task_id,
                        state_key=key,
                        value_json=payload,
                        updated_at=now,
                    )
                else:
                    row.value_json = payload
                    row.updated_at = now
                session.add(row)
            session.commit()

    def get(self, key: str) -> Any | None:
        with Session(self.engine) as session:
            row = session.get(ActorStateEntry, (self.task_id, key))
            if row is None:
                return None
            return json.loads(row.value_json)

    def keys(self) -> list[str]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(ActorStateEntry.state_key).where(ActorStateEntry.task_id == self.task_id),
            ).all()
        return sorted(rows)

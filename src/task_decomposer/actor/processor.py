"""Per-task processing actor: durable state machine over an agent client.

One actor owns one task. It is the only writer of its storage, and every
state mutation and snapshot read goes through the actor lock, so polling
clients never see a half-applied transition. The lock is never held across
an agent call.

Lifecycle::

    pending -> processing -> completed
                          -> failed

State is persisted after every step (status, subtask list, result), so an
interrupted process leaves behind exactly the last completed step.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from task_decomposer.actor.decomposition import (
    build_subtasks,
    descriptions_or_fallback,
    parse_subtasks,
)
from task_decomposer.actor.models import (
    Subtask,
    SubtaskStatus,
    TaskNotInitializedError,
    TaskSnapshot,
    TaskStateError,
    TaskStatus,
)
from task_decomposer.actor.prompts import (
    build_decomposition_instruction,
    build_subtask_instruction,
)
from task_decomposer.actor.storage import ActorStorage
from task_decomposer.agent.base import AgentClient, AgentClientError
from task_decomposer.agent.sanitization import sanitize_preview
from task_decomposer.storage.common import from_iso, to_iso, utc_now

logger = logging.getLogger(__name__)

PROMPT_KEY = "prompt"
STATUS_KEY = "status"
CREATED_AT_KEY = "created_at"
SUBTASKS_KEY = "subtasks"
ERROR_KEY = "error"
COMPLETED_AT_KEY = "completed_at"

ERROR_MAX_CHARS = 240

_ALLOWED_TRANSITIONS: dict[TaskStatus, tuple[TaskStatus, ...]] = {
    TaskStatus.PENDING: (TaskStatus.PROCESSING,),
    TaskStatus.PROCESSING: (TaskStatus.COMPLETED, TaskStatus.FAILED),
    TaskStatus.COMPLETED: (),
    TaskStatus.FAILED: (),
}


class TaskProcessingActor:
    """Owns the durable state of one task and drives it to a terminal status."""

    def __init__(
        self,
        *,
        task_id: str,
        storage: ActorStorage,
        agent_client: AgentClient,
        completion_client: AgentClient | None = None,
    ) -> None:
        self.task_id = task_id
        self._storage = storage
        self._decomposition_client = agent_client
        self._completion_client = completion_client or agent_client
        self._lock = threading.RLock()
        self._worker: threading.Thread | None = None

    # -- external protocol -----------------------------------------------------

    def initialize(self, prompt: str) -> None:
        """Durably record a fresh task in `pending` status."""

        with self._lock:
            current = self._read_status()
            if current is not None and current != TaskStatus.PENDING:
                raise TaskStateError(
                    f"Task {self.task_id} is {current.value}; it cannot be initialized again.",
                )
            self._storage.put_many(
                {
                    PROMPT_KEY: prompt,
                    STATUS_KEY: TaskStatus.PENDING.value,
                    CREATED_AT_KEY: to_iso(utc_now()),
                },
            )
        logger.info("Task %s initialized", self.task_id)

    def begin_processing(self, prompt: str | None = None) -> None:
        """Record `processing` and continue the work on a background thread.

        Returns as soon as the status change is durable. Only a `pending`
        task can begin processing, so duplicate triggers are rejected. The
        stored prompt is always the one decomposed; a different `prompt`
        argument is rejected.
        """

        with self._lock:
            stored_prompt = self._storage.get(PROMPT_KEY)
            if prompt is not None and stored_prompt is not None and prompt != stored_prompt:
                raise TaskStateError(
                    f"Task {self.task_id} was initialized with a different prompt.",
                )
            self._transition(TaskStatus.PROCESSING)
            self._worker = threading.Thread(
                target=self._run,
                args=(str(stored_prompt),),
                daemon=True,
                name=f"task-actor-{self.task_id[:8]}",
            )
            self._worker.start()
        logger.info("Task %s processing started", self.task_id)

    def get_status(self) -> TaskSnapshot:
        """Return the current durable snapshot."""

        with self._lock:
            status = self._read_status()
            if status is None:
                raise TaskNotInitializedError(f"Task {self.task_id} is not initialized.")
            prompt = self._storage.get(PROMPT_KEY)
            raw_subtasks = self._storage.get(SUBTASKS_KEY)
            error = self._storage.get(ERROR_KEY)
            created_at = self._storage.get(CREATED_AT_KEY)
            completed_at = self._storage.get(COMPLETED_AT_KEY)

        return TaskSnapshot(
            status=status,
            prompt=str(prompt),
            subtasks=(
                tuple(Subtask.from_state(item) for item in raw_subtasks)
                if raw_subtasks is not None
                else None
            ),
            error=error,
            created_at=from_iso(created_at) if created_at else None,
            completed_at=from_iso(completed_at) if completed_at else None,
        )

    def wait(self, timeout: float | None = None) -> bool:
        """Block until background processing ends; True when it has ended."""

        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout=timeout)
        return not worker.is_alive()

    @property
    def is_running(self) -> bool:
        worker = self._worker
        return worker is not None and worker.is_alive()

    # -- processing ------------------------------------------------------------

    def _run(self, prompt: str) -> None:
        try:
            self._process(prompt)
        except Exception as error:
            logger.exception("Task %s processing crashed", self.task_id)
            self._fail(f"Internal error while processing task ({type(error).__name__}).")

    def _process(self, prompt: str) -> None:
        try:
            output = self._decomposition_client.complete(build_decomposition_instruction(prompt))
        except AgentClientError as error:
            self._fail(_describe_agent_failure("Decomposition", error))
            return

        parsed = parse_subtasks(output)
        if not parsed.ok:
            logger.warning(
                "Task %s decomposition output not understood (%s); using fallback subtask",
                self.task_id,
                parsed.error,
            )
        subtasks = build_subtasks(descriptions_or_fallback(parsed))
        self._save_subtasks(subtasks)
        logger.info("Task %s decomposed into %d subtask(s)", self.task_id, len(subtasks))

        for subtask in subtasks:
            subtask.status = SubtaskStatus.PROCESSING
            self._save_subtasks(subtasks)
            try:
                result = self._completion_client.complete(
                    build_subtask_instruction(subtask.description),
                )
            except AgentClientError as error:
                self._fail(_describe_agent_failure(f"Subtask {subtask.id}", error))
                return
            subtask.status = SubtaskStatus.COMPLETED
            subtask.result = result
            subtask.completed_at = utc_now()
            self._save_subtasks(subtasks)
            logger.info(
                "Task %s subtask %s/%d completed",
                self.task_id,
                subtask.id,
                len(subtasks),
            )

        self._transition(
            TaskStatus.COMPLETED,
            extra={COMPLETED_AT_KEY: to_iso(utc_now())},
        )
        logger.info("Task %s completed", self.task_id)

    def _fail(self, message: str) -> None:
        error = sanitize_preview(message, max_chars=ERROR_MAX_CHARS)
        self._transition(TaskStatus.FAILED, extra={ERROR_KEY: error})
        logger.warning("Task %s failed: %s", self.task_id, error)

    # -- state helpers ---------------------------------------------------------

    def _save_subtasks(self, subtasks: list[Subtask]) -> None:
        with self._lock:
            self._storage.put(SUBTASKS_KEY, [subtask.to_state() for subtask in subtasks])

    def _transition(self, target: TaskStatus, extra: dict[str, Any] | None = None) -> None:
        with self._lock:
            current = self._read_status()
            if current is None:
                raise TaskNotInitializedError(f"Task {self.task_id} is not initialized.")
            if target not in _ALLOWED_TRANSITIONS[current]:
                raise TaskStateError(
                    f"Task {self.task_id} cannot move from {current.value} to {target.value}.",
                )
            self._storage.put_many({**(extra or {}), STATUS_KEY: target.value})

    def _read_status(self) -> TaskStatus | None:
        raw = self._storage.get(STATUS_KEY)
        if raw is None:
            return None
        return TaskStatus(raw)


def _describe_agent_failure(stage: str, error: AgentClientError) -> str:
    return f"{stage} failed ({error.failure_class.value}): {error}"

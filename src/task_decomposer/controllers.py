"""Controllers for task-decomposer CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from task_decomposer.actor.models import SubtaskStatus, TaskStatus, TaskView
from task_decomposer.agent.sanitization import sanitize_preview
from task_decomposer.config import Settings
from task_decomposer.registry.models import TaskNotFoundError
from task_decomposer.runtime import TaskRuntime, build_runtime

_RESULT_PREVIEW_CHARS = 160


@dataclass(slots=True)
class RunTaskCommand:
    """CLI input for a synchronous task run."""

    db_path: Path | None
    prompt: str
    timeout_seconds: float
    show_results: bool = True


@dataclass(slots=True)
class TaskStatusCommand:
    """CLI input for task inspection."""

    db_path: Path | None
    task_id: str


@dataclass(slots=True)
class ListTasksCommand:
    """CLI input for task listing."""

    db_path: Path | None
    limit: int


@dataclass(slots=True)
class CommandResult:
    """Rendered lines plus overall outcome."""

    lines: list[str]
    success: bool


class TaskCliController:
    """Coordinates task creation, polling and listing for the CLI."""

    def run_task(self, command: RunTaskCommand) -> CommandResult:
        settings = Settings.from_env(db_path=command.db_path)
        settings.validate_for_agent()
        with _runtime(settings) as runtime:
            record = runtime.service.create_task(command.prompt)
            actor = runtime.directory.resolve(record.task_id)
            finished = actor.wait(timeout=command.timeout_seconds)
            view = runtime.service.get_task(record.task_id)

        lines = render_task_lines(view, show_results=command.show_results)
        if not finished:
            lines.append(
                f"Timed out after {command.timeout_seconds:g}s; task is still "
                f"{view.snapshot.status.value}.",
            )
        return CommandResult(
            lines=lines,
            success=finished and view.snapshot.status == TaskStatus.COMPLETED,
        )

    def task_status(self, command: TaskStatusCommand) -> CommandResult:
        settings = Settings.from_env(db_path=command.db_path)
        with _runtime(settings) as runtime:
            try:
                view = runtime.service.get_task(command.task_id)
            except TaskNotFoundError:
                return CommandResult(lines=[f"Task not found: {command.task_id}"], success=False)
        return CommandResult(lines=render_task_lines(view), success=True)

    def list_tasks(self, command: ListTasksCommand) -> CommandResult:
        settings = Settings.from_env(db_path=command.db_path)
        with _runtime(settings) as runtime:
            views = runtime.service.list_tasks(limit=command.limit)

        if not views:
            return CommandResult(lines=["No tasks found."], success=True)
        lines = [f"Tasks: {len(views)}"]
        for view in views:
            snapshot = view.snapshot
            created = snapshot.created_at.isoformat() if snapshot.created_at else "-"
            subtasks = snapshot.subtasks or ()
            done = sum(1 for subtask in subtasks if subtask.status == SubtaskStatus.COMPLETED)
            total = len(subtasks)
            lines.append(
                f"- {view.task_id} status={snapshot.status.value} "
                f"subtasks={done}/{total} created_at={created} "
                f"prompt={sanitize_preview(snapshot.prompt, max_chars=60)!r}",
            )
        return CommandResult(lines=lines, success=True)


def render_task_lines(view: TaskView, *, show_results: bool = True) -> list[str]:
    """Render one task snapshot as human-readable lines."""

    snapshot = view.snapshot
    lines = [
        f"Task {view.task_id}: status={snapshot.status.value}",
        f"Prompt: {snapshot.prompt}",
    ]
    if snapshot.created_at is not None:
        lines.append(f"Created at: {snapshot.created_at.isoformat()}")
    if snapshot.completed_at is not None:
        lines.append(f"Completed at: {snapshot.completed_at.isoformat()}")
    if snapshot.subtasks is None:
        lines.append("Subtasks: (not decomposed yet)")
    else:
        lines.append(f"Subtasks: {len(snapshot.subtasks)}")
        for subtask in snapshot.subtasks:
            lines.append(f"  [{subtask.id}] {subtask.status.value:<10} {subtask.description}")
            if show_results and subtask.result:
                preview = sanitize_preview(subtask.result, max_chars=_RESULT_PREVIEW_CHARS)
                lines.append(f"      result: {preview}")
    if snapshot.error:
        lines.append(f"Error: {snapshot.error}")
    return lines


@contextmanager
def _runtime(settings: Settings) -> Iterator[TaskRuntime]:
    runtime = build_runtime(settings)
    try:
        yield runtime
    finally:
        runtime.close()

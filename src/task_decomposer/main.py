"""CLI entrypoint for task-decomposer."""

import logging
from pathlib import Path

import rich_click as click

from task_decomposer import __version__
from task_decomposer.config import Settings
from task_decomposer.controllers import (
    ListTasksCommand,
    RunTaskCommand,
    TaskCliController,
    TaskStatusCommand,
)

click.rich_click.USE_MARKDOWN = True
TASK_CONTROLLER = TaskCliController()


@click.group()
@click.version_option(version=__version__, prog_name="task-decomposer")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging.")
def task_decomposer(verbose: bool) -> None:
    """Decompose tasks into subtasks and execute them with an LLM agent."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@task_decomposer.command("serve")
@click.option("--host", default=None, help="Bind address. Defaults to TASK_DECOMPOSER_API_HOST.")
@click.option(
    "--port",
    type=click.IntRange(min=1, max=65_535),
    default=None,
    help="Bind port. Defaults to TASK_DECOMPOSER_API_PORT.",
)
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def serve(host: str | None, port: int | None, db_path: Path | None) -> None:
    """Run the HTTP API."""

    import uvicorn

    from task_decomposer.api import create_app

    settings = Settings.from_env(db_path=db_path)
    try:
        settings.validate_for_agent()
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    uvicorn.run(
        create_app(settings),
        host=host or settings.api.host,
        port=port or settings.api.port,
        log_level="info",
    )


@task_decomposer.command("run")
@click.argument("prompt")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--timeout-seconds",
    type=click.FloatRange(min=0.1),
    default=600.0,
    show_default=True,
    help="How long to wait for the task to reach a terminal status.",
)
@click.option(
    "--results/--no-results",
    default=True,
    show_default=True,
    help="Print subtask result previews.",
)
def run(prompt: str, db_path: Path | None, timeout_seconds: float, results: bool) -> None:
    """Create a task from PROMPT and wait until it completes or fails."""

    try:
        result = TASK_CONTROLLER.run_task(
            RunTaskCommand(
                db_path=db_path,
                prompt=prompt,
                timeout_seconds=timeout_seconds,
                show_results=results,
            ),
        )
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Task did not complete.")


@task_decomposer.command("status")
@click.argument("task_id")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def status(task_id: str, db_path: Path | None) -> None:
    """Show the current snapshot of one task."""

    try:
        result = TASK_CONTROLLER.task_status(TaskStatusCommand(db_path=db_path, task_id=task_id))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Task lookup failed.")


@task_decomposer.command("list")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=500),
    default=20,
    show_default=True,
    help="Maximum number of tasks to show.",
)
def list_tasks(db_path: Path | None, limit: int) -> None:
    """List recent tasks, newest first."""

    try:
        result = TASK_CONTROLLER.list_tasks(ListTasksCommand(db_path=db_path, limit=limit))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(result.lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    task_decomposer()

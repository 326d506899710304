"""Wiring of settings into storage, agent clients, actors and services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.engine import Engine

from task_decomposer.actor.directory import ActorDirectory
from task_decomposer.actor.status import StatusFacade
from task_decomposer.actor.storage import SQLiteActorStorage
from task_decomposer.agent.base import AgentClient
from task_decomposer.agent.echo_agent import EchoAgentClient
from task_decomposer.agent.http_client import HttpAgentClient
from task_decomposer.config import Settings
from task_decomposer.registry.repository import TaskRegistryRepository
from task_decomposer.services import TaskService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TaskRuntime:
    """Everything a request handler or CLI command needs, plus cleanup."""

    settings: Settings
    registry: TaskRegistryRepository
    directory: ActorDirectory
    status: StatusFacade
    service: TaskService
    agent_clients: list[HttpAgentClient] = field(default_factory=list)

    def close(self, *, wait_seconds: float = 0.0) -> None:
        """Release resources after giving running tasks up to `wait_seconds` to finish.

        Agent clients stay open while any task is still processing, so its
        worker keeps the last durable state instead of failing on a closed client.
        """

        if wait_seconds > 0:
            self.directory.wait_all(timeout=wait_seconds)
        running = self.directory.running_task_ids()
        if running:
            logger.warning(
                "Leaving agent clients open for %d task(s) still processing: %s",
                len(running),
                ", ".join(running),
            )
        else:
            for client in self.agent_clients:
                client.close()
        self.registry.close()


def build_agent_clients(settings: Settings) -> tuple[AgentClient, AgentClient]:
    """Return (decomposition client, completion client) for the configured backend."""

    agent = settings.agent
    if agent.backend == "echo":
        echo = EchoAgentClient()
        return echo, echo
    decomposition = HttpAgentClient(
        api_key=agent.langbase_api_key,
        llm_api_key=agent.llm_api_key,
        model=agent.decomposition_model,
        base_url=agent.base_url,
        timeout_seconds=agent.timeout_seconds,
    )
    completion = HttpAgentClient(
        api_key=agent.langbase_api_key,
        llm_api_key=agent.llm_api_key,
        model=agent.completion_model,
        base_url=agent.base_url,
        timeout_seconds=agent.timeout_seconds,
    )
    return decomposition, completion


def build_runtime(
    settings: Settings,
    *,
    agent_client: AgentClient | None = None,
    completion_client: AgentClient | None = None,
) -> TaskRuntime:
    """Build a runtime; explicit agent clients override the configured backend."""

    closeables: list[HttpAgentClient] = []
    if agent_client is None:
        settings.validate()
        agent_client, completion_client = build_agent_clients(settings)
        closeables.extend(
            client
            for client in (agent_client, completion_client)
            if isinstance(client, HttpAgentClient)
        )

    registry = TaskRegistryRepository(
        settings.db_path,
        owner_id=settings.user_context.user_id,
        sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
    )
    registry.init_schema()
    directory = ActorDirectory(
        storage_factory=_sqlite_storage_factory(registry.engine),
        agent_client=agent_client,
        completion_client=completion_client,
    )
    status = StatusFacade(directory)
    service = TaskService(registry=registry, directory=directory, status=status)
    logger.info(
        "Task runtime ready (db=%s, agent_backend=%s)",
        settings.db_path,
        settings.agent.backend,
    )
    return TaskRuntime(
        settings=settings,
        registry=registry,
        directory=directory,
        status=status,
        service=service,
        agent_clients=closeables,
    )


def _sqlite_storage_factory(engine: Engine):
    def factory(task_id: str) -> SQLiteActorStorage:
        return SQLiteActorStorage(engine=engine, task_id=task_id)

    return factory

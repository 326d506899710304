"""FastAPI application: create tasks, poll their status, list them."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from task_decomposer import __version__
from task_decomposer.config import Settings
from task_decomposer.registry.models import TaskNotFoundError
from task_decomposer.runtime import TaskRuntime, build_runtime
from task_decomposer.storage.common import to_iso, utc_now


class TaskCreate(BaseModel):
    prompt: Any = None


def create_app(
    settings: Settings | None = None,
    *,
    runtime_factory: Callable[[Settings], TaskRuntime] | None = None,
) -> FastAPI:
    """Build the API; the runtime is created on startup and closed on shutdown."""

    settings = settings or Settings.from_env()
    factory = runtime_factory or build_runtime

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.runtime = factory(settings)
        try:
            yield
        finally:
            app.state.runtime.close(wait_seconds=settings.api.shutdown_wait_seconds)

    app = FastAPI(
        title="task-decomposer",
        description="Decompose a task into subtasks and execute them with an LLM agent",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.api.cors_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "healthy", "timestamp": to_iso(utc_now())}

    @app.post("/api/tasks")
    def create_task(data: TaskCreate, request: Request) -> dict[str, Any]:
        if not isinstance(data.prompt, str) or not data.prompt.strip():
            raise HTTPException(
                status_code=400,
                detail="Prompt is required and must be a string",
            )
        record = _runtime(request).service.create_task(data.prompt)
        return {
            "success": True,
            "taskId": record.task_id,
            "message": "Task created and processing started",
        }

    @app.get("/api/tasks/{task_id}")
    def get_task(task_id: str, request: Request) -> dict[str, Any]:
        try:
            view = _runtime(request).service.get_task(task_id)
        except TaskNotFoundError as error:
            raise HTTPException(status_code=404, detail="Task not found") from error
        return view.to_dict()

    @app.get("/api/tasks")
    def list_tasks(
        request: Request,
        limit: int = Query(default=50, ge=1, le=500),
    ) -> dict[str, Any]:
        views = _runtime(request).service.list_tasks(limit=limit)
        return {
            "success": True,
            "tasks": [view.to_dict() for view in views],
            "total": len(views),
        }

    return app


def _runtime(request: Request) -> TaskRuntime:
    return request.app.state.runtime

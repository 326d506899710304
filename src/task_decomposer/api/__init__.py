"""HTTP API exposing task creation and polling."""

from task_decomposer.api.app import create_app

__all__ = ["create_app"]

"""Agent client contract shared by every backend."""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class AgentFailureClass(str, Enum):
    """Normalized reasons an agent call can fail."""

    TIMEOUT = "timeout"
    UNREACHABLE = "unreachable"
    BILLING_OR_QUOTA = "billing_or_quota"
    ACCESS_OR_AUTH = "access_or_auth"
    MODEL_NOT_AVAILABLE = "model_not_available"
    RATE_LIMITED = "rate_limited"
    BACKEND_ERROR = "backend_error"
    INVALID_RESPONSE = "invalid_response"


class AgentClientError(Exception):
    """Agent call did not produce a text completion."""

    def __init__(
        self,
        message: str,
        *,
        failure_class: AgentFailureClass = AgentFailureClass.BACKEND_ERROR,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.failure_class = failure_class
        self.status_code = status_code


class AgentClient(Protocol):
    """Protocol implemented by agent backends.

    Implementations do not retry; a raised `AgentClientError` is final for
    the call that produced it.
    """

    def complete(self, instruction: str) -> str:
        """Return the agent's text answer to a natural-language instruction."""

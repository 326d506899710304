"""Runtime configuration for the task actor, agent client, and HTTP API."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

SUPPORTED_AGENT_BACKENDS = ("http", "echo")


@dataclass(slots=True)
class AgentSettings:
    """External agent service settings."""

    backend: str = "http"
    base_url: str = "https://api.langbase.com"
    langbase_api_key: str = ""
    llm_api_key: str = ""
    decomposition_model: str = "openai:gpt-4.1-mini"
    completion_model: str = "openai:gpt-4o-mini"
    timeout_seconds: float = 120.0


@dataclass(slots=True)
class ApiSettings:
    """HTTP API settings."""

    host: str = "127.0.0.1"
    port: int = 8787
    cors_origins: tuple[str, ...] = ("http://localhost:3000", "https://localhost:3000")
    shutdown_wait_seconds: float = 30.0


@dataclass(slots=True)
class UserContextSettings:
    """Owner recorded for tasks created by this process."""

    user_id: str = "default_user"


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".task_decomposer.db")
    sqlite_busy_timeout_ms: int = 5_000
    agent: AgentSettings = field(default_factory=AgentSettings)
    api: ApiSettings = field(default_factory=ApiSettings)
    user_context: UserContextSettings = field(default_factory=UserContextSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        return cls(
            db_path=db_path or Path(os.getenv("TASK_DECOMPOSER_DB_PATH", ".task_decomposer.db")),
            sqlite_busy_timeout_ms=int(
                os.getenv("TASK_DECOMPOSER_SQLITE_BUSY_TIMEOUT_MS", "5000"),
            ),
            agent=AgentSettings(
                backend=os.getenv("TASK_DECOMPOSER_AGENT_BACKEND", "http").strip().lower(),
                base_url=os.getenv(
                    "TASK_DECOMPOSER_AGENT_BASE_URL",
                    "https://api.langbase.com",
                ).rstrip("/"),
                langbase_api_key=os.getenv("LANGBASE_API_KEY", ""),
                llm_api_key=os.getenv("LLM_API_KEY", ""),
                decomposition_model=os.getenv(
                    "TASK_DECOMPOSER_DECOMPOSITION_MODEL",
                    "openai:gpt-4.1-mini",
                ),
                completion_model=os.getenv(
                    "TASK_DECOMPOSER_COMPLETION_MODEL",
                    "openai:gpt-4o-mini",
                ),
                timeout_seconds=float(
                    os.getenv("TASK_DECOMPOSER_AGENT_TIMEOUT_SECONDS", "120"),
                ),
            ),
            api=ApiSettings(
                host=os.getenv("TASK_DECOMPOSER_API_HOST", "127.0.0.1"),
                port=int(os.getenv("TASK_DECOMPOSER_API_PORT", "8787")),
                cors_origins=_collect_cors_origins(),
                shutdown_wait_seconds=float(
                    os.getenv("TASK_DECOMPOSER_SHUTDOWN_WAIT_SECONDS", "30"),
                ),
            ),
            user_context=UserContextSettings(
                user_id=os.getenv("TASK_DECOMPOSER_USER_ID", "default_user"),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the runtime cannot work with."""

        if self.sqlite_busy_timeout_ms <= 0:
            raise ValueError("TASK_DECOMPOSER_SQLITE_BUSY_TIMEOUT_MS must be > 0.")
        if self.agent.backend not in SUPPORTED_AGENT_BACKENDS:
            raise ValueError(
                f"Unsupported TASK_DECOMPOSER_AGENT_BACKEND: {self.agent.backend!r}. "
                f"Expected one of: {', '.join(SUPPORTED_AGENT_BACKENDS)}.",
            )
        if self.agent.timeout_seconds <= 0:
            raise ValueError("TASK_DECOMPOSER_AGENT_TIMEOUT_SECONDS must be > 0.")
        if not 0 < self.api.port < 65_536:
            raise ValueError("TASK_DECOMPOSER_API_PORT must be between 1 and 65535.")
        if self.api.shutdown_wait_seconds < 0:
            raise ValueError("TASK_DECOMPOSER_SHUTDOWN_WAIT_SECONDS must be >= 0.")
        for origin in self.api.cors_origins:
            _validate_base_url(origin)

    def validate_for_agent(self) -> None:
        """Raise configuration error if the agent backend cannot make calls."""

        self.validate()
        if self.agent.backend != "http":
            return
        _validate_base_url(self.agent.base_url)
        if not self.agent.langbase_api_key:
            raise ValueError("LANGBASE_API_KEY is required for the http agent backend.")
        if not self.agent.llm_api_key:
            raise ValueError("LLM_API_KEY is required for the http agent backend.")


def _collect_cors_origins() -> tuple[str, ...]:
    raw = os.getenv("TASK_DECOMPOSER_CORS_ORIGINS", "").strip()
    if not raw:
        return ApiSettings().cors_origins
    values: list[str] = []
    for part in raw.split(","):
        origin = part.strip().rstrip("/")
        if origin and origin not in values:
            values.append(origin)
    return tuple(values)


def _validate_base_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"Invalid URL: {url!r}. Use absolute http(s) URL.")

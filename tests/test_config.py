from __future__ import annotations

from pathlib import Path

import allure
import pytest

from task_decomposer.config import AgentSettings, ApiSettings, Settings

pytestmark = [
    allure.epic("Runtime"),
    allure.feature("Configuration"),
]

_ENV_KEYS = (
    "TASK_DECOMPOSER_DB_PATH",
    "TASK_DECOMPOSER_SQLITE_BUSY_TIMEOUT_MS",
    "TASK_DECOMPOSER_AGENT_BACKEND",
    "TASK_DECOMPOSER_AGENT_BASE_URL",
    "LANGBASE_API_KEY",
    "LLM_API_KEY",
    "TASK_DECOMPOSER_DECOMPOSITION_MODEL",
    "TASK_DECOMPOSER_COMPLETION_MODEL",
    "TASK_DECOMPOSER_AGENT_TIMEOUT_SECONDS",
    "TASK_DECOMPOSER_API_HOST",
    "TASK_DECOMPOSER_API_PORT",
    "TASK_DECOMPOSER_CORS_ORIGINS",
    "TASK_DECOMPOSER_SHUTDOWN_WAIT_SECONDS",
    "TASK_DECOMPOSER_USER_ID",
)


@pytest.fixture()
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_from_env_defaults(clean_env) -> None:
    settings = Settings.from_env()

    assert settings.db_path == Path(".task_decomposer.db")
    assert settings.agent.backend == "http"
    assert settings.agent.base_url == "https://api.langbase.com"
    assert settings.agent.decomposition_model == "openai:gpt-4.1-mini"
    assert settings.agent.completion_model == "openai:gpt-4o-mini"
    assert settings.api.port == 8787
    assert settings.api.cors_origins == ("http://localhost:3000", "https://localhost:3000")
    assert settings.api.shutdown_wait_seconds == 30.0
    assert settings.user_context.user_id == "default_user"
    settings.validate()


def test_from_env_reads_overrides(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("TASK_DECOMPOSER_DB_PATH", str(tmp_path / "env.db"))
    clean_env.setenv("TASK_DECOMPOSER_AGENT_BACKEND", " ECHO ")
    clean_env.setenv("TASK_DECOMPOSER_AGENT_BASE_URL", "https://agents.example.com/")
    clean_env.setenv("TASK_DECOMPOSER_AGENT_TIMEOUT_SECONDS", "30")
    clean_env.setenv("TASK_DECOMPOSER_API_PORT", "9000")
    clean_env.setenv(
        "TASK_DECOMPOSER_CORS_ORIGINS",
        "https://app.example.com/, https://app.example.com,http://localhost:5173",
    )
    clean_env.setenv("TASK_DECOMPOSER_SHUTDOWN_WAIT_SECONDS", "2.5")
    clean_env.setenv("TASK_DECOMPOSER_USER_ID", "alice")

    settings = Settings.from_env()

    assert settings.db_path == tmp_path / "env.db"
    assert settings.agent.backend == "echo"
    assert settings.agent.base_url == "https://agents.example.com"
    assert settings.agent.timeout_seconds == 30.0
    assert settings.api.port == 9000
    assert settings.api.cors_origins == ("https://app.example.com", "http://localhost:5173")
    assert settings.api.shutdown_wait_seconds == 2.5
    assert settings.user_context.user_id == "alice"


def test_explicit_db_path_wins_over_env(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("TASK_DECOMPOSER_DB_PATH", str(tmp_path / "env.db"))

    settings = Settings.from_env(db_path=tmp_path / "cli.db")

    assert settings.db_path == tmp_path / "cli.db"


def test_validate_rejects_unknown_backend() -> None:
    settings = Settings(agent=AgentSettings(backend="grpc"))

    with pytest.raises(ValueError, match="Unsupported TASK_DECOMPOSER_AGENT_BACKEND"):
        settings.validate()


def test_validate_rejects_non_positive_values() -> None:
    with pytest.raises(ValueError, match="BUSY_TIMEOUT_MS"):
        Settings(sqlite_busy_timeout_ms=0).validate()
    with pytest.raises(ValueError, match="AGENT_TIMEOUT_SECONDS"):
        Settings(agent=AgentSettings(timeout_seconds=0)).validate()
    with pytest.raises(ValueError, match="API_PORT"):
        Settings(api=ApiSettings(port=0)).validate()
    with pytest.raises(ValueError, match="SHUTDOWN_WAIT_SECONDS"):
        Settings(api=ApiSettings(shutdown_wait_seconds=-1)).validate()


def test_validate_rejects_invalid_cors_origin() -> None:
    settings = Settings(api=ApiSettings(cors_origins=("localhost:3000",)))

    with pytest.raises(ValueError, match="Invalid URL"):
        settings.validate()


def test_validate_for_agent_requires_keys_for_http_backend() -> None:
    with pytest.raises(ValueError, match="LANGBASE_API_KEY"):
        Settings(agent=AgentSettings(llm_api_key="llm")).validate_for_agent()
    with pytest.raises(ValueError, match="LLM_API_KEY"):
        Settings(agent=AgentSettings(langbase_api_key="lb")).validate_for_agent()

    Settings(agent=AgentSettings(langbase_api_key="lb", llm_api_key="llm")).validate_for_agent()


def test_validate_for_agent_rejects_relative_base_url() -> None:
    settings = Settings(
        agent=AgentSettings(base_url="/v1", langbase_api_key="lb", llm_api_key="llm"),
    )

    with pytest.raises(ValueError, match="Invalid URL"):
        settings.validate_for_agent()


def test_validate_for_agent_echo_backend_needs_no_keys() -> None:
    Settings(agent=AgentSettings(backend="echo")).validate_for_agent()

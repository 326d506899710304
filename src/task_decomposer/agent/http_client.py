"""HTTP agent client for a Langbase-style `agent/run` endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from task_decomposer.agent.base import AgentClientError, AgentFailureClass
from task_decomposer.agent.failure_classifier import classify_agent_failure
from task_decomposer.agent.sanitization import sanitize_preview

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.langbase.com"
DEFAULT_TIMEOUT_SECONDS = 120.0
AGENT_RUN_PATH = "/v1/agent/run"
_ERROR_PREVIEW_CHARS = 200


class HttpAgentClient:
    """Single-model agent client; one request per `complete` call, no retries."""

    def __init__(
        self,
        *,
        api_key: str,
        llm_api_key: str,
        model: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.model = model
        self._llm_api_key = llm_api_key
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    def complete(self, instruction: str) -> str:
        payload = {
            "model": self.model,
            "apiKey": self._llm_api_key,
            "input": [{"role": "user", "content": instruction}],
            "stream": False,
        }
        try:
            response = self._client.post(AGENT_RUN_PATH, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("Agent request timed out (model=%s)", self.model)
            raise AgentClientError(
                "agent request timed out",
                failure_class=AgentFailureClass.TIMEOUT,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Agent request failed (model=%s): %s", self.model, exc)
            raise AgentClientError(
                f"agent service unreachable: {sanitize_preview(str(exc), max_chars=120)}",
                failure_class=AgentFailureClass.UNREACHABLE,
            ) from exc

        if not response.is_success:
            body = response.text
            classification = classify_agent_failure(status_code=response.status_code, body=body)
            logger.warning(
                "Agent returned HTTP %s (model=%s, rule=%s)",
                response.status_code,
                self.model,
                classification.matched_rule,
            )
            detail = sanitize_preview(body, max_chars=_ERROR_PREVIEW_CHARS)
            message = f"agent returned HTTP {response.status_code}"
            raise AgentClientError(
                f"{message}: {detail}" if detail else message,
                failure_class=classification.failure_class,
                status_code=response.status_code,
            )

        return _extract_output(response)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpAgentClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _extract_output(response: httpx.Response) -> str:
    try:
        data: Any = response.json()
    except ValueError as exc:
        raise AgentClientError(
            "agent response is not JSON",
            failure_class=AgentFailureClass.INVALID_RESPONSE,
            status_code=response.status_code,
        ) from exc
    output = data.get("output") if isinstance(data, dict) else None
    if not isinstance(output, str):
        raise AgentClientError(
            "agent response has no text output",
            failure_class=AgentFailureClass.INVALID_RESPONSE,
            status_code=response.status_code,
        )
    return output

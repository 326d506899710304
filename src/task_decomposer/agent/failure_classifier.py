"""Deterministic classification of non-success agent responses."""

from __future__ import annotations

from dataclasses import dataclass

from task_decomposer.agent.base import AgentFailureClass

AGENT_FAILURE_CLASSIFIER_VERSION = 1

_BILLING_OR_QUOTA_PATTERNS: tuple[str, ...] = (
    "quota",
    "resource_exhausted",
    "insufficient",
    "billing",
    "payment",
    "credits",
    "usage limit",
)
_ACCESS_OR_AUTH_PATTERNS: tuple[str, ...] = (
    "unauthorized",
    "forbidden",
    "permission denied",
    "invalid api key",
    "incorrect api key",
    "authentication",
)
_MODEL_NOT_AVAILABLE_PATTERNS: tuple[str, ...] = (
    "model not found",
    "unknown model",
    "unsupported model",
    "invalid model",
    "model is not available",
    "does not exist",
)
_RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "too many requests",
    "rate limit",
    "try again later",
)

_AUTH_STATUS_CODES = (401, 403)
_PAYMENT_STATUS_CODES = (402,)
_RATE_LIMIT_STATUS_CODES = (429,)


@dataclass(slots=True)
class AgentFailureClassification:
    """Normalized failure classification result."""

    failure_class: AgentFailureClass
    matched_rule: str
    matched_pattern: str | None


def classify_agent_failure(*, status_code: int, body: str) -> AgentFailureClassification:
    """Classify a non-success HTTP response from the agent service.

    Body patterns are checked before status codes.
    """

    haystack = body.lower()

    for failure_class, rule, patterns in (
        (AgentFailureClass.BILLING_OR_QUOTA, "billing_or_quota", _BILLING_OR_QUOTA_PATTERNS),
        (AgentFailureClass.ACCESS_OR_AUTH, "access_or_auth", _ACCESS_OR_AUTH_PATTERNS),
        (
            AgentFailureClass.MODEL_NOT_AVAILABLE,
            "model_not_available",
            _MODEL_NOT_AVAILABLE_PATTERNS,
        ),
        (AgentFailureClass.RATE_LIMITED, "rate_limited", _RATE_LIMIT_PATTERNS),
    ):
        pattern = _first_match(haystack, patterns)
        if pattern is not None:
            return AgentFailureClassification(
                failure_class=failure_class,
                matched_rule=rule,
                matched_pattern=pattern,
            )

    if status_code in _AUTH_STATUS_CODES:
        return AgentFailureClassification(
            failure_class=AgentFailureClass.ACCESS_OR_AUTH,
            matched_rule="auth_status_code",
            matched_pattern=None,
        )
    if status_code in _PAYMENT_STATUS_CODES:
        return AgentFailureClassification(
            failure_class=AgentFailureClass.BILLING_OR_QUOTA,
            matched_rule="payment_status_code",
            matched_pattern=None,
        )
    if status_code in _RATE_LIMIT_STATUS_CODES:
        return AgentFailureClassification(
            failure_class=AgentFailureClass.RATE_LIMITED,
            matched_rule="rate_limit_status_code",
            matched_pattern=None,
        )
    return AgentFailureClassification(
        failure_class=AgentFailureClass.BACKEND_ERROR,
        matched_rule="fallback_backend_error",
        matched_pattern=None,
    )


def _first_match(haystack: str, patterns: tuple[str, ...]) -> str | None:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None

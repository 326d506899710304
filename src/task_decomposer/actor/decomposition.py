"""Parsing of decomposition output into subtask descriptions."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

from task_decomposer.actor.models import Subtask, SubtaskStatus

FALLBACK_SUBTASK_DESCRIPTION = "Error in processing subtask"

_FENCED_BLOCK = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


@dataclass(slots=True)
class SubtaskParseResult:
    """Either parsed descriptions or the reason they could not be parsed."""

    descriptions: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_subtasks(text: str) -> SubtaskParseResult:
    """Parse a JSON array of subtask descriptions out of agent output."""

    raw = text.strip()
    fenced = _FENCED_BLOCK.match(raw)
    if fenced is not None:
        raw = fenced.group(1)
    if not raw:
        return SubtaskParseResult(error="empty decomposition output")

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as error:
        return SubtaskParseResult(error=f"invalid JSON: {error.msg}")
    if not isinstance(payload, list):
        return SubtaskParseResult(error=f"expected JSON array, got {type(payload).__name__}")
    if not payload:
        return SubtaskParseResult(error="decomposition returned no subtasks")

    descriptions: list[str] = []
    for index, item in enumerate(payload, start=1):
        if not isinstance(item, str):
            return SubtaskParseResult(
                error=f"item {index} is {type(item).__name__}, expected string",
            )
        description = item.strip()
        if not description:
            return SubtaskParseResult(error=f"item {index} is blank")
        descriptions.append(description)
    return SubtaskParseResult(descriptions=descriptions)


def descriptions_or_fallback(result: SubtaskParseResult) -> list[str]:
    """Return parsed descriptions, or the single sentinel description."""

    if result.ok:
        return list(result.descriptions)
    return [FALLBACK_SUBTASK_DESCRIPTION]


def build_subtasks(descriptions: list[str]) -> list[Subtask]:
    """Create the ordered, all-pending subtask sequence."""

    return [
        Subtask(id=str(position), description=description, status=SubtaskStatus.PENDING)
        for position, description in enumerate(descriptions, start=1)
    ]

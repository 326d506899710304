"""Deterministic offline agent for local runs and integration tests."""

from __future__ import annotations

import json
from collections import deque

_TASK_MARKER = "Task:"
_SUBTASK_MARKER = "Subtask:"
_ECHO_STEPS = ("Research", "Plan", "Summarize")
INSTRUCTION_HISTORY_SIZE = 100


class EchoAgentClient:
    """Answers decomposition and subtask instructions without a network call."""

    def __init__(self, *, history_size: int = INSTRUCTION_HISTORY_SIZE) -> None:
        self.instructions: deque[str] = deque(maxlen=history_size)

    def complete(self, instruction: str) -> str:
        self.instructions.append(instruction)
        task = _value_after(instruction, _TASK_MARKER)
        if task is not None:
            return json.dumps([f"{step}: {task}" for step in _ECHO_STEPS])
        subtask = _value_after(instruction, _SUBTASK_MARKER)
        if subtask is not None:
            return f"Completed: {subtask}"
        return instruction.strip()


def _value_after(instruction: str, marker: str) -> str | None:
    for line in reversed(instruction.splitlines()):
        stripped = line.strip()
        if stripped.startswith(marker):
            return stripped[len(marker) :].strip()
    return None

"""Instruction templates sent to the agent service."""

from __future__ import annotations

DECOMPOSITION_INSTRUCTION = (
    "Based on the following task, generate a list of 3-5 specific, actionable subtasks. "
    "Return ONLY a JSON array of strings, no other text or formatting.\n\n"
    "Task: {prompt}"
)

SUBTASK_INSTRUCTION = (
    "Complete this specific subtask thoroughly and provide detailed results:\n\n"
    "Subtask: {description}"
)


def build_decomposition_instruction(prompt: str) -> str:
    return DECOMPOSITION_INSTRUCTION.format(prompt=prompt)


def build_subtask_instruction(description: str) -> str:
    return SUBTASK_INSTRUCTION.format(description=description)

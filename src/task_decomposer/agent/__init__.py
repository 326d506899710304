"""Agent service clients."""

from task_decomposer.agent.base import AgentClient, AgentClientError, AgentFailureClass
from task_decomposer.agent.echo_agent import EchoAgentClient
from task_decomposer.agent.http_client import HttpAgentClient

__all__ = [
    "AgentClient",
    "AgentClientError",
    "AgentFailureClass",
    "EchoAgentClient",
    "HttpAgentClient",
]

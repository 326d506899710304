"""Task decomposition and sequential subtask execution through an LLM agent."""

__version__ = "0.1.0"

# src/autotask/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The loop depends on Protocols instead of concrete implementations.
This keeps LLM providers and execution strategies swappable and makes testing easier.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..config import AgentSettings
    from ..tasks.task_models import Task

ChatMessage = dict[str, str]
# OpenAI-style chat messages: {"role": "...", "content": "..."}.


class LLMClient(Protocol):
    """Single round-trip chat completion client (OpenAI/OpenRouter-compatible)."""

    async def complete(
            self,
            *,
            provider: str,
            api_key: str,
            model: str,
            messages: list[ChatMessage],
            temperature: float,
            max_tokens: int,
    ) -> str: ...


class TaskExecutor(Protocol):
    """
    Execution strategy for one task.

    Called with the task already marked running. Returns the result text
    or raises an AgentError subclass describing the failure.
    """

    async def execute(self, task: Task, objective: str, settings: AgentSettings) -> str: ...

# tests/fakes.py

from __future__ import annotations

import asyncio
from typing import Any

from autotask.config import AgentSettings
from autotask.core.ports import ChatMessage
from autotask.core.state import AgentState
from autotask.tasks.task_models import Task, TaskStatus


class FakeLLMClient:
    """
    Deterministic LLM client for unit tests.

    - Captures calls for assertions
    - Returns a predefined text, or raises `error` when set
    - Sleeps `delay` seconds first, for deadline tests
    """

    def __init__(self, next_text: str = "ok", error: Exception | None = None, delay: float = 0.0) -> None:
        self.next_text = next_text
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        *,
        provider: str,
        api_key: str,
        model: str,
        messages: list[ChatMessage],
        temperature: float,
        max_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "provider": provider,
                "api_key": api_key,
                "model": model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.next_text


class ScriptedExecutor:
    """
    TaskExecutor with canned outcomes keyed by task description.

    - records the order of executed task ids
    - records how many tasks were running when each execution began
    - can block on `gate` so tests can act while a task is in flight
    """

    def __init__(
        self,
        state: AgentState | None = None,
        *,
        results: dict[str, str] | None = None,
        errors: dict[str, Exception] | None = None,
        default: str = "done",
        gated: bool = False,
    ) -> None:
        self.state = state
        self.results = results or {}
        self.errors = errors or {}
        self.default = default
        self.executed: list[str] = []
        self.running_counts: list[int] = []
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()
        if not gated:
            self.gate.set()

    async def execute(self, task: Task, objective: str, settings: AgentSettings) -> str:
        self.executed.append(task.id)
        if self.state is not None:
            tasks = self.state.task_store.list_tasks()
            self.running_counts.append(sum(1 for t in tasks if t.status == TaskStatus.RUNNING))
        self.entered.set()
        await self.gate.wait()
        if task.description in self.errors:
            raise self.errors[task.description]
        return self.results.get(task.description, self.default)

# src/autotask/tasks/task_executor.py

"""
Task execution strategies.

- SimulatedExecutor: deterministic, network-free templated results.
- DelegatedExecutor: one chat completion round-trip per task.

Both satisfy core.ports.TaskExecutor; select_executor() is a plain
mode -> strategy lookup.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from collections.abc import Mapping
from typing import Any

from ..config import AgentSettings
from ..core.errors import DelegationError, SimulationError
from ..core.persona import get_executor_system_prompt
from ..core.ports import LLMClient, TaskExecutor
from ..core.state import AgentMode
from .task_models import Task

logger = logging.getLogger(__name__)

# (verb keywords, result template). First match wins.
_RESULT_TEMPLATES: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("research", "gather", "investigate", "analyze", "analyse"),
        "Collected and analyzed material for '{description}'. Identified three key themes "
        "relevant to the objective; one area needs further investigation.",
    ),
    (
        ("outline", "design", "define", "list", "break"),
        "Produced a structured outline for '{description}' with clear sections, "
        "ordering and acceptance criteria.",
    ),
    (
        ("write", "draft", "implement", "execute"),
        "Completed the main work for '{description}'. The output covers all planned "
        "sections and is ready for review.",
    ),
    (
        ("review", "test", "edit", "check"),
        "Reviewed the work for '{description}'. Minor issues noted; the draft needs revisions "
        "before it is final.",
    ),
    (
        ("finalize", "publish", "deploy", "prepare", "conclusion", "conclusions", "summarize"),
        "Finalized '{description}'. Deliverable is complete and consistent with the objective.",
    ),
)

_DEFAULT_TEMPLATE = "Handled '{description}' toward the objective. No blockers found."


class SimulatedExecutor:
    """
    Local heuristic executor. Deterministic for a given description.

    `failure_rate` (AUTOTASK_SIMULATED_FAILURE_RATE) makes tasks fail at random
    so the failed-task path can be exercised without a provider; pass a seeded
    `rng` for repeatable runs. The default never fails on valid input.
    """

    def __init__(
        self,
        *,
        delay_seconds: float = 0.0,
        failure_rate: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        self._delay = max(0.0, float(delay_seconds))
        self._failure_rate = min(1.0, max(0.0, float(failure_rate)))
        self._rng = rng or random.Random()

    @staticmethod
    def render_result(description: str) -> str:
        words = set(re.findall(r"[a-z]+", description.lower()))
        for keywords, template in _RESULT_TEMPLATES:
            if words.intersection(keywords):
                return template.format(description=description)
        return _DEFAULT_TEMPLATE.format(description=description)

    async def execute(self, task: Task, objective: str, settings: AgentSettings) -> str:
        if self._delay:
            await asyncio.sleep(self._delay)

        description = (task.description or "").strip()
        if not description:
            raise SimulationError("Cannot simulate a task without a description.")

        if self._failure_rate and self._rng.random() < self._failure_rate:
            raise SimulationError(f"Simulated failure while working on: {description}")

        return self.render_result(description)


def build_request_payload(task: Task, objective: str, settings: AgentSettings) -> dict[str, Any]:
    """The chat completion request for one task."""
    return {
        "model": settings.model,
        "messages": [
            {"role": "system", "content": get_executor_system_prompt(objective)},
            {"role": "user", "content": f"Execute this task: {task.description}"},
        ],
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }


class DelegatedExecutor:
    """
    Executes a task through the language-model provider.

    The whole call is bounded by `timeout_seconds`; expiry and every provider
    error surface as DelegationError.
    """

    def __init__(self, llm: LLMClient, *, timeout_seconds: float | None = None) -> None:
        self._llm = llm
        self._timeout = timeout_seconds

    async def execute(self, task: Task, objective: str, settings: AgentSettings) -> str:
        payload = build_request_payload(task, objective, settings)
        call = self._llm.complete(provider=settings.provider, api_key=settings.api_key, **payload)
        try:
            if self._timeout:
                result = await asyncio.wait_for(call, timeout=self._timeout)
            else:
                result = await call
        except TimeoutError as e:
            raise DelegationError(f"LLM request timed out after {self._timeout:.0f}s.") from e

        result = (result or "").strip()
        if not result:
            raise DelegationError(f"Model returned no content: {settings.model}")
        return result


def select_executor(mode: AgentMode, executors: Mapping[AgentMode, TaskExecutor]) -> TaskExecutor:
    try:
        return executors[mode]
    except KeyError:
        raise RuntimeError(f"No executor configured for mode={mode}") from None

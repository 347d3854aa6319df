# src/autotask/core/errors.py

"""
Error taxonomy for the agent loop.

Executor errors never escape a tick: the scheduler converts them
into the failed-task path. Starvation (all pending tasks blocked) is
not an exception; the scheduler records it on the state instead.
"""

from __future__ import annotations


class AgentError(Exception):
    """Base class for errors raised by the agent core."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class EmptyObjectiveError(AgentError):
    """Start attempted with a blank objective."""

    def __init__(self, message: str = "Please enter an objective first") -> None:
        super().__init__(message)


class DelegationError(AgentError):
    """
    The language-model provider call failed.

    `detail` carries the provider's error text (or a friendly summary of it)
    and becomes the failed task's result.
    """

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        detail = (detail or "").strip() or "LLM request failed."
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class SimulationError(AgentError):
    """The simulated executor could not produce a result for a task."""

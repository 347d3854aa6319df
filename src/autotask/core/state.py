# src/autotask/core/state.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum

from ..config import AgentSettings
from ..tasks.event_log import EventLog
from ..tasks.task_store import TaskStore
from .ports import LLMClient


class AgentMode(StrEnum):
    SIMULATED = "simulated"
    DELEGATED = "delegated"

    @classmethod
    def parse(cls, raw: str) -> AgentMode:
        value = (raw or "").strip().lower()
        if value in ("ai", "llm"):
            return cls.DELEGATED
        return cls(value)


class LoopPhase(StrEnum):
    IDLE = "idle"
    SEEDING = "seeding"
    SELECTING = "selecting"
    EXECUTING = "executing"
    PAUSED = "paused"
    STOPPED_BUDGET = "stopped_budget"
    STOPPED_COMPLETE = "stopped_complete"


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class AgentState:
    """
    Single session aggregate.

    The loop and the operator commands both receive this handle; nothing
    else holds session state. `generation` is the cancellation token for
    in-flight executor calls: pause/reset bump it, and a result that comes
    back under an older generation is discarded.
    """

    # Process settings (Settings or a test stand-in).
    settings: object
    agent_settings: AgentSettings
    task_store: TaskStore
    event_log: EventLog
    llm: LLMClient | None = None

    objective: str = ""
    is_running: bool = False
    is_paused: bool = False
    current_iteration: int = 0
    mode: AgentMode = AgentMode.SIMULATED
    theme: Theme = Theme.DARK
    session_id: str = field(default_factory=new_session_id)

    phase: LoopPhase = LoopPhase.IDLE
    generation: int = 0
    stalled: bool = False
    milestones_reached: set[int] = field(default_factory=set)

    @property
    def max_iterations(self) -> int:
        return self.agent_settings.max_iterations

    @property
    def is_active(self) -> bool:
        return self.is_running and not self.is_paused

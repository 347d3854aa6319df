# src/autotask/tasks/task_api.py

"""
Operator commands over the AgentState handle.

Every UI binding (console, tests, anything else) goes through these
functions; they are the only writers besides the agent loop.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Any

from ..config import AgentSettings
from ..core.errors import DelegationError, EmptyObjectiveError
from ..core.state import AgentMode, AgentState, LoopPhase, Theme, new_session_id
from .task_generator import generate_initial_tasks, plan_initial_tasks, prioritize_tasks
from .task_models import LogEntry, LogType, Task

logger = logging.getLogger(__name__)


def set_objective(state: AgentState, objective: str) -> bool:
    """
    Only effective before the session has tasks.

    Once tasks are seeded the objective belongs to them; /reset starts over.
    """
    if state.is_running:
        state.event_log.append(LogType.WARNING, "Cannot change the objective while the agent is running")
        return False
    if state.task_store.count_tasks():
        state.event_log.append(LogType.WARNING, "Cannot change the objective of a session that has tasks")
        return False
    state.objective = (objective or "").strip()
    logger.info("Objective set: %r", state.objective)
    return True


def finished_reason(state: AgentState) -> str | None:
    """Why start_agent() refuses a session that reached a terminal stop, or None."""
    if state.phase == LoopPhase.STOPPED_COMPLETE:
        return "Objective already achieved. Use /reset to start a new session."
    if state.task_store.count_tasks() and state.current_iteration >= state.max_iterations:
        return (
            f"Iteration budget exhausted ({state.current_iteration}/{state.max_iterations}). "
            "Raise max_iterations (/set max_iterations=N) or use /reset."
        )
    return None


async def _seed_tasks(state: AgentState) -> list[Task]:
    if state.mode == AgentMode.DELEGATED and state.llm is not None:
        try:
            return await plan_initial_tasks(
                state.objective,
                state.llm,
                state.agent_settings,
                timeout_seconds=getattr(state.settings, "llm_request_timeout_seconds", None),
            )
        except DelegationError as e:
            state.event_log.append(
                LogType.WARNING,
                f"AI planning failed ({e.detail}); using heuristic decomposition",
            )
            logger.info("Planner failed, falling back to heuristics: %s", e.detail)
    return generate_initial_tasks(state.objective)


async def start_agent(state: AgentState) -> bool:
    """
    Start (or continue) the loop.

    - blank objective: logs an error entry and raises EmptyObjectiveError
    - empty task list: seeds the initial batch first
    - existing tasks: continues without reseeding
    - stopped session (objective achieved, or budget spent): logs a warning
    Returns False when already running, already stopped, or when a reset
    raced the seeding.
    """
    if state.is_running and not state.is_paused:
        return False

    if not state.objective.strip():
        state.event_log.append(LogType.ERROR, "Please enter an objective first")
        raise EmptyObjectiveError()

    if state.is_paused:
        return resume_agent(state)

    reason = finished_reason(state)
    if reason is not None:
        state.event_log.append(LogType.WARNING, reason)
        logger.info("Start refused: session %s already stopped (%s).", state.session_id, state.phase.value)
        return False

    if state.task_store.count_tasks() == 0:
        generation = state.generation
        state.phase = LoopPhase.SEEDING
        initial = await _seed_tasks(state)
        if state.generation != generation:
            logger.info("Seeding discarded: session was reset meanwhile.")
            return False

        for task in prioritize_tasks(initial):
            state.task_store.add_task(task)
        state.event_log.append(
            LogType.INFO,
            f"Generated {len(initial)} initial tasks",
            metadata={"task_ids": [t.id for t in initial]},
        )

    state.is_running = True
    state.is_paused = False
    state.stalled = False
    state.phase = LoopPhase.SELECTING
    logger.info("Agent started session=%s mode=%s", state.session_id, state.mode.value)
    return True


def toggle_pause(state: AgentState) -> bool:
    """
    Pause a running loop, or resume a paused one. Returns the new paused flag.

    Pausing invalidates any in-flight executor call; its result is discarded.
    """
    if not state.is_running:
        return False

    if state.is_paused:
        state.is_paused = False
        state.phase = LoopPhase.SELECTING
        state.event_log.append(LogType.INFO, "Agent resumed", icon="▶️")
    else:
        state.is_paused = True
        state.generation += 1
        state.phase = LoopPhase.PAUSED
        state.event_log.append(LogType.INFO, "Agent paused", icon="⏸️")
    logger.info("Agent paused=%s", state.is_paused)
    return state.is_paused


def pause_agent(state: AgentState) -> bool:
    if state.is_running and not state.is_paused:
        toggle_pause(state)
    return state.is_paused


def resume_agent(state: AgentState) -> bool:
    if state.is_running and state.is_paused:
        toggle_pause(state)
        return True
    return False


def reset_agent(state: AgentState) -> None:
    """
    Clear the session: tasks, log, counters, objective; new session id.

    Tuning settings and theme are kept.
    """
    old_session = state.session_id
    state.generation += 1
    state.is_running = False
    state.is_paused = False
    state.current_iteration = 0
    state.objective = ""
    state.task_store.clear()
    state.event_log.clear()
    state.milestones_reached.clear()
    state.stalled = False
    state.phase = LoopPhase.IDLE
    state.session_id = new_session_id()
    logger.info("Agent reset: session %s -> %s", old_session, state.session_id)


def set_mode(state: AgentState, mode: AgentMode | str) -> AgentMode:
    new_mode = mode if isinstance(mode, AgentMode) else AgentMode.parse(mode)
    if new_mode != state.mode:
        state.mode = new_mode
        state.event_log.append(LogType.INFO, f"Mode set to {new_mode.value}")
    return state.mode


def update_settings(state: AgentState, partial: dict[str, Any]) -> AgentSettings:
    """Validate and apply; raises ValueError for unknown keys or bad values."""
    state.agent_settings = state.agent_settings.merged(partial)
    logger.info("Settings updated: %s", ", ".join(sorted(k for k in partial if k != "api_key")) or "api_key")
    return state.agent_settings


def toggle_theme(state: AgentState) -> Theme:
    state.theme = Theme.LIGHT if state.theme == Theme.DARK else Theme.DARK
    return state.theme


def _task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority,
        "createdAt": task.created_at,
        "completedAt": task.completed_at,
        "result": task.result,
        "dependencies": list(task.dependencies),
        "parentId": task.parent_id,
        "depth": task.depth,
    }


def _log_to_dict(entry: LogEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "timestamp": entry.timestamp,
        "type": entry.type.value,
        "message": entry.message,
        "icon": entry.icon,
        "metadata": copy.deepcopy(entry.metadata),
    }


def export_session(state: AgentState) -> dict[str, Any]:
    """Point-in-time snapshot of the session; shares no objects with the state."""
    return {
        "sessionId": state.session_id,
        "timestamp": time.time(),
        "objective": state.objective,
        "tasks": [_task_to_dict(t) for t in state.task_store.list_tasks()],
        "executionLog": [_log_to_dict(e) for e in state.event_log.entries()],
    }

# src/autotask/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import cast

from ..core.errors import EmptyObjectiveError
from ..core.state import AgentState
from ..tasks import task_api
from ..tasks.task_models import LogEntry, Task, TaskStatus
from .bootstrap import save_agent_settings, write_session_export

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AgentState, list[str]], CommandResult]
CommandHandler3 = Callable[[AgentState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_STATUS_MARKS: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "[ ]",
    TaskStatus.RUNNING: "[>]",
    TaskStatus.COMPLETED: "[x]",
    TaskStatus.FAILED: "[!]",
}


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /start, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AgentState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be sync or async, with or without the emit parameter.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            result = await result
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _ts_local(ts: float) -> str:
    return datetime.fromtimestamp(ts).astimezone().strftime("%H:%M:%S")


def format_log_entry(entry: LogEntry) -> str:
    return f"[{_ts_local(entry.timestamp)}] {entry.icon} {entry.message}"


def format_task(task: Task) -> str:
    mark = _STATUS_MARKS[task.status]
    line = f"{mark} ({task.priority}) {task.description}"
    if task.dependencies:
        line += f"  [after: {', '.join(task.dependencies)}]"
    return line


def cmd_help(state: AgentState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AgentState, args: list[str]) -> str:
    tasks = state.task_store.list_tasks()
    counts = {s: sum(1 for t in tasks if t.status == s) for s in TaskStatus}
    s = state.agent_settings
    objective = state.objective or "(not set)"
    return (
        "Status:\n"
        f"  Session: {state.session_id}\n"
        f"  Objective: {objective}\n"
        f"  Phase: {state.phase.value}{' (stalled)' if state.stalled else ''}\n"
        f"  Mode: {state.mode.value} (provider={s.provider}, model={s.model})\n"
        f"  Iteration: {state.current_iteration}/{state.max_iterations}\n"
        f"  Tasks: {len(tasks)} total, "
        + ", ".join(f"{n} {status.value}" for status, n in counts.items())
    )


def cmd_tasks(state: AgentState, args: list[str]) -> str:
    tasks = state.task_store.list_tasks()
    if not tasks:
        return "No tasks yet. Set an objective and use /start."
    return "\n".join(["Tasks (creation order):", *(f"  {format_task(t)}" for t in tasks)])


def cmd_log(state: AgentState, args: list[str]) -> str:
    """
    /log      -> last 10 entries
    /log N    -> last N entries
    """
    limit = 10
    if args:
        try:
            limit = max(1, int(args[0]))
        except ValueError:
            return "Usage: /log [N]"
    entries = state.event_log.entries()[-limit:]
    if not entries:
        return "Log is empty."
    return "\n".join(format_log_entry(e) for e in entries)


_OBJECTIVE_LOCKED = "Cannot change the objective of the current session. Use /reset first."


def cmd_objective(state: AgentState, args: list[str]) -> str:
    if not args:
        return f"Objective: {state.objective or '(not set)'}"
    if task_api.set_objective(state, " ".join(args)):
        return f"Objective set: {state.objective}"
    return _OBJECTIVE_LOCKED


async def cmd_start(state: AgentState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if args and not task_api.set_objective(state, " ".join(args)):
        return _OBJECTIVE_LOCKED
    if emit and state.task_store.count_tasks() == 0:
        emit("Planning initial tasks...")
    try:
        started = await task_api.start_agent(state)
    except EmptyObjectiveError as e:
        return e.message
    if started:
        return f"Agent running ({state.mode.value} mode)."
    if state.is_running:
        return "Agent is already running."
    return task_api.finished_reason(state) or "Agent not started."


def cmd_pause(state: AgentState, args: list[str]) -> str:
    if not state.is_running:
        return "Agent is not running."
    if state.is_paused:
        return "Agent is already paused. Use /resume."
    task_api.pause_agent(state)
    return "Agent paused."


def cmd_resume(state: AgentState, args: list[str]) -> str:
    if not state.is_running:
        return "Agent is not running."
    if not task_api.resume_agent(state):
        return "Agent is not paused."
    return "Agent resumed."


def cmd_reset(state: AgentState, args: list[str]) -> str:
    task_api.reset_agent(state)
    return f"Agent reset. New session: {state.session_id}"


def cmd_mode(state: AgentState, args: list[str]) -> str:
    """
    /mode             -> show mode
    /mode simulated   -> local heuristics
    /mode delegated   -> language model provider
    """
    if not args:
        return f"Mode: {state.mode.value}. Use /mode simulated or /mode delegated."
    try:
        mode = task_api.set_mode(state, args[0])
    except ValueError:
        return "Usage: /mode simulated | delegated"
    return f"Mode: {mode.value}"


def cmd_set(state: AgentState, args: list[str]) -> str:
    """/set key=value [key=value ...]"""
    if not args:
        return "Usage: /set key=value ... (see /settings for keys)"
    partial: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep or not key:
            return f"Bad argument: {arg!r}. Usage: /set key=value"
        partial[key.strip()] = value
    try:
        task_api.update_settings(state, partial)
    except ValueError as e:
        return f"Settings not changed: {e}"
    save_agent_settings(state)
    return "Settings updated."


def cmd_settings(state: AgentState, args: list[str]) -> str:
    lines = ["Settings:"]
    for key, value in state.agent_settings.to_dict().items():
        if key == "api_key":
            value = "(set)" if value else "(not set)"
        lines.append(f"  {key} = {value}")
    lines.append(f"  theme = {state.theme.value}")
    return "\n".join(lines)


def cmd_theme(state: AgentState, args: list[str]) -> str:
    theme = task_api.toggle_theme(state)
    save_agent_settings(state)
    return f"Theme: {theme.value}"


def cmd_export(state: AgentState, args: list[str]) -> str:
    try:
        path = write_session_export(state, args[0] if args else None)
    except OSError as e:
        logger.exception("Session export failed.")
        return f"Export failed: {e}"
    return f"Session exported to {path}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show session, phase, iteration and task counts.")
registry.register("tasks", cmd_tasks, help_text="List tasks in creation order.")
registry.register("log", cmd_log, help_text="Show the last N log entries: /log [N].")
registry.register("objective", cmd_objective, help_text="Show or set the objective: /objective <text>.")
registry.register("start", cmd_start, help_text="Start the agent (optionally with an objective).", aliases=["run"])
registry.register("pause", cmd_pause, help_text="Pause the agent; the in-flight result is discarded.")
registry.register("resume", cmd_resume, help_text="Resume a paused agent.")
registry.register("reset", cmd_reset, help_text="Clear tasks, log and counters; new session.")
registry.register("mode", cmd_mode, help_text="Execution mode: /mode simulated | delegated.")
registry.register("set", cmd_set, help_text="Update settings: /set temperature=0.5 max_iterations=30.")
registry.register("settings", cmd_settings, help_text="Show current settings.")
registry.register("theme", cmd_theme, help_text="Toggle light/dark theme.")
registry.register("export", cmd_export, help_text="Export the session as JSON: /export [path].")

# src/autotask/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime

from ..cli.commands import format_log_entry
from ..cli.commands import registry as command_registry
from ..core.state import AgentState
from ..tasks import task_api
from ..tasks.task_models import LogEntry, LogType

logger = logging.getLogger(__name__)

_BELL_TYPES = (LogType.MILESTONE, LogType.ERROR)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _make_log_printer(state: AgentState):
    """Live view of the event log; honours auto_scroll and enable_sounds."""

    def _on_entry(entry: LogEntry) -> None:
        settings = state.agent_settings
        if not settings.auto_scroll:
            return
        print(format_log_entry(entry), flush=True)
        if settings.enable_sounds and entry.type in _BELL_TYPES:
            try:
                sys.stdout.write("\a")
                sys.stdout.flush()
            except Exception:
                logger.debug("Terminal bell failed.", exc_info=True)

    return _on_entry


async def _read_line(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


async def run_console_loop(state: AgentState) -> None:
    logger.info("Console connector started (mode=%s).", state.mode.value)
    _print_ts("[CONSOLE] Type an objective, then /start. Use /help for commands. Use /exit to quit.\n")

    unsubscribe = state.event_log.subscribe(_make_log_printer(state))

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations (e.g., AI planning)
        _print_ts(text)

    try:
        while True:
            try:
                user_input = (await _read_line("> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                cmd_response = await command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                cmd_response = "Internal error while handling a command."

            if cmd_response is not None:
                _print_ts(cmd_response)
                continue

            # Plain text: treat as the objective.
            if task_api.set_objective(state, user_input):
                _print_ts(f"Objective set: {state.objective}. Use /start to begin.")
            else:
                _print_ts("Cannot change the objective of the current session. Use /reset first.")
    finally:
        unsubscribe()

    logger.info("Console connector finished.")

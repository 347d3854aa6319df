# src/autotask/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AgentState, starts the agent loop timer,
then runs the console REPL until /exit or EOF.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state, save_agent_settings
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AgentState
from ..logging_setup import setup_logging
from ..tasks.task_scheduler import AgentLoop

logger = logging.getLogger(__name__)


async def _shutdown(state: AgentState, loop: AgentLoop) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await loop.aclose()
    except Exception:
        logger.exception("Failed to stop the agent loop.")

    save_agent_settings(state)

    llm = state.llm
    aclose = getattr(llm, "aclose", None)
    if callable(aclose):
        try:
            await aclose()
        except Exception:
            logger.debug("LLM client close failed.", exc_info=True)


async def run_app(state: AgentState) -> None:
    loop = AgentLoop(state)
    loop.start()
    try:
        await run_console_loop(state)
    finally:
        await _shutdown(state, loop)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (log file: %s)...", settings.app_name, log_file)

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(run_app(state))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()

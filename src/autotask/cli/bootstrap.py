# src/autotask/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AgentState (LLM client, store, log),
- persists tuning settings + theme as JSON between sessions,
- writes session exports.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..config import AgentSettings, get_settings
from ..core.state import AgentState, Theme
from ..llm.client import OpenAICompatibleClient
from ..tasks.event_log import EventLog
from ..tasks.task_api import export_session
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.agent_settings_path.parent.mkdir(parents=True, exist_ok=True)
    settings.export_dir.mkdir(parents=True, exist_ok=True)


def _write_json_atomic(path: Path, data: Any, *, private: bool = False) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
    os.replace(tmp, path)
    if private:
        with contextlib.suppress(Exception):
            # Best-effort: the file may hold an API key.
            os.chmod(path, 0o600)


def create_initial_state(*, settings=None, llm=None) -> AgentState:
    """
    Create AgentState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    # An empty api_key here falls back to AUTOTASK_API_KEY inside the LLM client.
    agent_settings, theme = load_agent_settings(settings.agent_settings_path)

    return AgentState(
        settings=settings,
        agent_settings=agent_settings,
        task_store=TaskStore(),
        event_log=EventLog(),
        llm=llm if llm is not None else OpenAICompatibleClient(settings),
        theme=theme,
    )


def load_agent_settings(path: str | Path) -> tuple[AgentSettings, Theme]:
    """Persisted tuning settings + theme; defaults when missing or unreadable."""
    path = Path(path)
    if not path.exists():
        return AgentSettings(), Theme.DARK
    try:
        data = json.loads(path.read_text("utf-8"))
        if not isinstance(data, dict):
            raise ValueError("settings file is not a JSON object")
        raw_settings = data.get("settings", {})
        agent_settings = AgentSettings.from_dict(raw_settings if isinstance(raw_settings, dict) else {})
        try:
            theme = Theme(str(data.get("theme", Theme.DARK.value)))
        except ValueError:
            theme = Theme.DARK
        logger.info("Loaded agent settings from %s", path)
        return agent_settings, theme
    except Exception:
        logger.warning("Failed to load agent settings from %s; using defaults.", path, exc_info=True)
        return AgentSettings(), Theme.DARK


def save_agent_settings(state: AgentState) -> None:
    raw_path = getattr(state.settings, "agent_settings_path", None)
    if not raw_path:
        return
    path = Path(raw_path)
    try:
        _write_json_atomic(
            path,
            {"settings": state.agent_settings.to_dict(), "theme": state.theme.value},
            private=True,
        )
        logger.debug("Saved agent settings to %s", path)
    except Exception:
        logger.exception("Failed to save agent settings to %s", path)


def write_session_export(state: AgentState, path: str | Path | None = None) -> Path:
    """Write export_session() as JSON; returns the written path."""
    if path is None:
        export_dir = Path(getattr(state.settings, "export_dir", "."))
        path = export_dir / f"session-{state.session_id}.json"
    path = Path(path)
    _write_json_atomic(path, export_session(state))
    logger.info("Session exported to %s", path)
    return path

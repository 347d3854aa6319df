# tests/test_bootstrap.py

from __future__ import annotations

import json
from pathlib import Path

from autotask.cli.bootstrap import (
    create_initial_state,
    load_agent_settings,
    save_agent_settings,
    write_session_export,
)
from autotask.core.state import AgentState, Theme
from autotask.tasks import task_api


def test_settings_survive_save_and_load(state: AgentState) -> None:
    task_api.update_settings(state, {"model": "openai/gpt-4o-mini", "max_iterations": 7})
    task_api.toggle_theme(state)

    save_agent_settings(state)
    loaded, theme = load_agent_settings(state.settings.agent_settings_path)

    assert loaded == state.agent_settings
    assert theme == Theme.LIGHT


def test_missing_or_corrupt_settings_fall_back_to_defaults(tmp_path: Path) -> None:
    loaded, theme = load_agent_settings(tmp_path / "absent.json")
    assert loaded.max_iterations == 20
    assert theme == Theme.DARK

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", "utf-8")
    loaded, theme = load_agent_settings(bad)
    assert loaded.max_iterations == 20
    assert theme == Theme.DARK


def test_create_initial_state_uses_persisted_settings(settings, llm) -> None:
    settings.agent_settings_path.parent.mkdir(parents=True, exist_ok=True)
    settings.agent_settings_path.write_text(
        json.dumps({"settings": {"iteration_delay": 2.5, "unknown": 1}, "theme": "light"}),
        "utf-8",
    )

    state = create_initial_state(settings=settings, llm=llm)

    assert state.llm is llm
    assert state.agent_settings.iteration_delay == 2.5
    assert state.theme == Theme.LIGHT
    assert state.task_store.count_tasks() == 0
    assert settings.export_dir.is_dir()



def test_write_session_export(state: AgentState, tmp_path: Path) -> None:
    task_api.set_objective(state, "Plan a trip")
    target = tmp_path / "out" / "session.json"

    written = write_session_export(state, target)

    assert written == target
    data = json.loads(target.read_text("utf-8"))
    assert data["objective"] == "Plan a trip"
    assert data["tasks"] == []
    assert data["executionLog"] == []

# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from autotask.config import AgentSettings
from autotask.core.state import AgentState
from autotask.tasks.event_log import EventLog
from autotask.tasks.task_store import TaskStore

from .fakes import FakeLLMClient


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AgentState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        data_dir=tmp_path,
        agent_settings_path=tmp_path / "agent_settings.json",
        export_dir=tmp_path / "exports",
        api_key=None,
        simulated_delay_seconds=0.0,
        simulated_failure_rate=0.0,
        llm_request_timeout_seconds=5.0,
    )


@pytest.fixture()
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def state(settings: SimpleNamespace, llm: FakeLLMClient) -> AgentState:
    """AgentState wired with deterministic fakes and an in-memory store."""
    return AgentState(
        settings=settings,
        agent_settings=AgentSettings(),
        task_store=TaskStore(),
        event_log=EventLog(),
        llm=llm,
    )

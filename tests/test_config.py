# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from autotask.config import AgentSettings, Settings


def test_agent_settings_defaults() -> None:
    s = AgentSettings()
    assert s.provider == "openrouter"
    assert s.max_iterations == 20
    assert s.iteration_delay == 1.0


def test_merged_coerces_cli_strings() -> None:
    s = AgentSettings().merged(
        {"max_iterations": "0", "enable_sounds": "yes", "auto_scroll": "off", "provider": " OpenAI "}
    )
    assert s.max_iterations == 1
    assert s.enable_sounds is True
    assert s.auto_scroll is False
    assert s.provider == "openai"


def test_merged_rejects_bad_input() -> None:
    with pytest.raises(ValueError, match="Unknown setting"):
        AgentSettings().merged({"nope": 1})
    with pytest.raises(ValueError):
        AgentSettings().merged({"provider": "acme"})
    with pytest.raises(ValueError):
        AgentSettings().merged({"temperature": "warm"})


def test_from_dict_ignores_unknown_keys() -> None:
    s = AgentSettings.from_dict({"model": "m", "legacy_flag": True, "max_tokens": 99999})
    assert s.model == "m"
    assert s.max_tokens == 4000
    assert AgentSettings.from_dict(s.to_dict()) == s


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("AUTOTASK_API_KEY", "OPENROUTER_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AUTOTASK_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("AUTOTASK_LLM_READ_TIMEOUT_SECONDS", "30")
    monkeypatch.setenv("AUTOTASK_LLM_REQUEST_TIMEOUT_SECONDS", "10")
    monkeypatch.setenv("AUTOTASK_SIMULATED_DELAY_SECONDS", "-1")

    s = Settings.from_env()

    assert s.data_dir == tmp_path
    assert s.agent_settings_path == tmp_path / "agent_settings.json"
    assert s.export_dir == tmp_path / "exports"
    assert s.api_key == "sk-env"
    assert s.llm_request_timeout_seconds == 30.0
    assert s.simulated_delay_seconds == 0.0
    assert set(s.provider_base_urls) == {"openrouter", "openai", "anthropic"}

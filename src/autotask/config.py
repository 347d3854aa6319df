# src/autotask/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Two layers:
- Settings: process-wide, read once from the environment (paths, timeouts, provider URLs).
- AgentSettings: operator-tunable knobs for the agent loop; persisted between sessions.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

ENV_PREFIX = "AUTOTASK"

PROVIDERS = ("openrouter", "openai", "anthropic")

DEFAULT_MODEL = "meta-llama/llama-3.1-8b-instruct:free"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    agent_settings_path: Path
    export_dir: Path

    # ---- LLM providers ----
    api_key: Optional[str]
    provider_base_urls: Dict[str, str]
    extra_headers: Dict[str, str]

    # ---- Timeouts ----
    llm_connect_timeout_seconds: float
    llm_read_timeout_seconds: float
    llm_request_timeout_seconds: float

    # ---- Simulation ----
    simulated_delay_seconds: float
    simulated_failure_rate: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "autotask")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/autotask"))
        agent_settings_path = _env_path(_k("AGENT_SETTINGS_PATH"), data_dir / "agent_settings.json")
        export_dir = _env_path(_k("EXPORT_DIR"), data_dir / "exports")

        api_key = _first_env(_k("API_KEY"), "OPENROUTER_API_KEY", "OPENAI_API_KEY", default=None)

        provider_base_urls = {
            "openrouter": _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1"),
            "openai": _env(_k("OPENAI_BASE_URL"), "https://api.openai.com/v1"),
            "anthropic": _env(_k("ANTHROPIC_BASE_URL"), "https://api.anthropic.com/v1/"),
        }

        extra_headers = {
            "HTTP-Referer": _env(_k("HTTP_REFERER"), "https://example.com"),
            "X-Title": _env(_k("APP_TITLE"), app_name),
        }

        connect_timeout = _env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0)
        read_timeout = _env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 60.0)
        request_timeout = _env_float(_k("LLM_REQUEST_TIMEOUT_SECONDS"), 90.0)
        # keep the outer deadline >= read timeout
        request_timeout = max(request_timeout, read_timeout)

        simulated_delay = max(0.0, _env_float(_k("SIMULATED_DELAY_SECONDS"), 0.5))
        simulated_failure_rate = min(1.0, max(0.0, _env_float(_k("SIMULATED_FAILURE_RATE"), 0.0)))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            agent_settings_path=agent_settings_path,
            export_dir=export_dir,
            api_key=api_key,
            provider_base_urls=provider_base_urls,
            extra_headers=extra_headers,
            llm_connect_timeout_seconds=connect_timeout,
            llm_read_timeout_seconds=read_timeout,
            llm_request_timeout_seconds=request_timeout,
            simulated_delay_seconds=simulated_delay,
            simulated_failure_rate=simulated_failure_rate,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(value)


@dataclass(slots=True)
class AgentSettings:
    """
    Tuning knobs for the loop and the delegated executor.

    These survive resets and sessions; task/log state does not.
    iteration_delay is in seconds.
    """

    api_key: str = ""
    provider: str = "openrouter"
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    iteration_delay: float = 1.0
    max_tokens: int = 1000
    enable_sounds: bool = False
    auto_scroll: bool = True
    max_iterations: int = 20

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def merged(self, partial: dict[str, Any]) -> AgentSettings:
        """
        Return a validated copy with `partial` applied.

        Values may be strings (CLI input); they are coerced and clamped.
        Raises ValueError for unknown keys or unparsable values.
        """
        known = set(self.field_names())
        unknown = sorted(set(partial) - known)
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")

        updates: dict[str, Any] = {}
        for key, raw in partial.items():
            if key in ("api_key", "model"):
                updates[key] = str(raw).strip()
            elif key == "provider":
                provider = str(raw).strip().lower()
                if provider not in PROVIDERS:
                    raise ValueError(f"provider must be one of: {', '.join(PROVIDERS)}")
                updates[key] = provider
            elif key == "temperature":
                updates[key] = min(2.0, max(0.0, float(raw)))
            elif key == "iteration_delay":
                updates[key] = max(0.05, float(raw))
            elif key == "max_tokens":
                updates[key] = min(4000, max(100, int(raw)))
            elif key == "max_iterations":
                updates[key] = max(1, int(raw))
            else:
                updates[key] = _coerce_bool(raw)

        return replace(self, **updates)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentSettings:
        """Build from persisted data, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.field_names()}
        return cls().merged(known)

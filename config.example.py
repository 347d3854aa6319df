# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Use .env (local, gitignored).

Tuning settings changed at runtime (/set ...) are stored separately in
<data_dir>/agent_settings.json and survive restarts.

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "AUTOTASK_APP_NAME": "App display name (default: autotask).",
    "AUTOTASK_LOG_LEVEL": "Console logging level (default: INFO).",
    # LLM providers
    "AUTOTASK_API_KEY": (
        "Provider API key used when none is set with /set api_key=... "
        "(fallbacks: OPENROUTER_API_KEY, OPENAI_API_KEY)."
    ),
    "AUTOTASK_OPENROUTER_BASE_URL": "OpenRouter base URL (default: https://openrouter.ai/api/v1).",
    "AUTOTASK_OPENAI_BASE_URL": "OpenAI base URL (default: https://api.openai.com/v1).",
    "AUTOTASK_ANTHROPIC_BASE_URL": "Anthropic OpenAI-compatible base URL (default: https://api.anthropic.com/v1/).",
    "AUTOTASK_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "AUTOTASK_APP_TITLE": "Optional OpenRouter metadata header title.",
    # Timeouts
    "AUTOTASK_LLM_CONNECT_TIMEOUT_SECONDS": "Connect timeout (default: 5).",
    "AUTOTASK_LLM_READ_TIMEOUT_SECONDS": "Read timeout (default: 60).",
    "AUTOTASK_LLM_REQUEST_TIMEOUT_SECONDS": "Whole-request deadline per task (default: 90).",
    # Simulation
    "AUTOTASK_SIMULATED_DELAY_SECONDS": "Artificial work time per simulated task (default: 0.5).",
    "AUTOTASK_SIMULATED_FAILURE_RATE": "Chance (0..1) that a simulated task fails, to exercise the failure path (default: 0).",
    # Paths (gitignored)
    "AUTOTASK_DATA_DIR": "Local data directory (default: .local/autotask).",
    "AUTOTASK_AGENT_SETTINGS_PATH": "Persisted tuning settings (default: <data_dir>/agent_settings.json).",
    "AUTOTASK_EXPORT_DIR": "Session export directory (default: <data_dir>/exports).",
}

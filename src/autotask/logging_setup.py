# src/autotask/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "autotask.log"

# Loop progress is already rendered from the event log; these stay quiet on the console.
_CHATTY_PREFIXES: tuple[str, ...] = (
    "autotask.tasks.task_scheduler",
    "autotask.tasks.task_executor",
)

_THIRD_PARTY_LEVELS: dict[str, int] = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "openai": logging.WARNING,
    "asyncio": logging.INFO,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console view for the interactive REPL:
    - autotask records pass, except loop/executor chatter below WARNING
    - everything else (third-party, py.warnings) only from ERROR up
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("autotask."):
            return record.levelno >= logging.ERROR
        if name.startswith(_CHATTY_PREFIXES):
            return record.levelno >= logging.WARNING
        return True


def _formatter(with_date: bool) -> logging.Formatter:
    if with_date:
        return logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    return logging.Formatter(fmt="%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S")


def setup_logging(
    *,
    log_dir: str | Path = ".local/autotask",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console (filtered) + file (everything at file_level) handlers on the root logger.

    Existing root handlers are replaced, so calling twice does not duplicate output.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_formatter(with_date=False))
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(_formatter(with_date=True))
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    for name, level in _THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    return log_file

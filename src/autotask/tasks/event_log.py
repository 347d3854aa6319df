# src/autotask/tasks/event_log.py

from __future__ import annotations

import contextlib
import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from .task_models import LogEntry, LogType

logger = logging.getLogger(__name__)

LogListener = Callable[[LogEntry], None]

DEFAULT_ICONS: dict[LogType, str] = {
    LogType.INFO: "📝",
    LogType.SUCCESS: "✅",
    LogType.WARNING: "⚠️",
    LogType.ERROR: "❌",
    LogType.TASK: "▶️",
    LogType.RESULT: "📊",
    LogType.THINKING: "🔍",
    LogType.MILESTONE: "🎯",
}


class EventLog:
    """
    Append-only record of what the agent does.

    append() assigns id + timestamp. Listeners are notified after the append;
    a failing listener is logged and never affects the loop.
    """

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []
        self._listeners: list[LogListener] = []

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def subscribe(self, listener: LogListener) -> Callable[[], None]:
        """Register a listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def append(
        self,
        type: LogType,
        message: str,
        *,
        icon: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> LogEntry:
        entry = LogEntry(
            id=f"log-{uuid.uuid4().hex}",
            timestamp=time.time(),
            type=LogType(type),
            message=message,
            icon=icon if icon is not None else DEFAULT_ICONS[LogType(type)],
            metadata=dict(metadata) if metadata else None,
        )
        self._entries.append(entry)

        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception:
                logger.exception("Event log listener failed.")
        return entry

    def clear(self) -> None:
        """Only used by a full session reset."""
        self._entries = []

# tests/test_event_log.py

from __future__ import annotations

from autotask.tasks.event_log import DEFAULT_ICONS, EventLog
from autotask.tasks.task_models import LogEntry, LogType


def test_append_assigns_unique_id_timestamp_and_icon() -> None:
    log = EventLog()
    a = log.append(LogType.INFO, "one")
    b = log.append(LogType.ERROR, "two", icon="X", metadata={"k": 1})

    assert a.id != b.id
    assert a.timestamp <= b.timestamp
    assert a.icon == DEFAULT_ICONS[LogType.INFO]
    assert b.icon == "X"
    assert b.metadata == {"k": 1}
    assert [e.message for e in log.entries()] == ["one", "two"]
    assert len(log) == 2


def test_listeners_are_notified_and_isolated() -> None:
    log = EventLog()
    seen: list[LogEntry] = []

    def broken(_entry: LogEntry) -> None:
        raise RuntimeError("listener bug")

    log.subscribe(broken)
    unsubscribe = log.subscribe(seen.append)

    entry = log.append(LogType.SUCCESS, "done")
    assert seen == [entry]

    unsubscribe()
    log.append(LogType.SUCCESS, "again")
    assert seen == [entry]
    assert len(log) == 2


def test_clear_empties_the_log() -> None:
    log = EventLog()
    log.append(LogType.TASK, "x")
    log.clear()
    assert log.entries() == []

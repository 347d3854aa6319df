# tests/test_task_store.py

from __future__ import annotations

import pytest

from autotask.tasks.task_models import Task, TaskStatus
from autotask.tasks.task_store import TaskStore


def test_add_keeps_insertion_order_and_rejects_duplicates() -> None:
    store = TaskStore()
    a = Task.create("a", priority=1)
    b = Task.create("b", priority=5)
    store.add_task(a)
    store.add_task(b)

    assert [t.id for t in store.list_tasks()] == [a.id, b.id]
    with pytest.raises(ValueError):
        store.add_task(a)
    with pytest.raises(ValueError):
        store.add_task(Task(id="task-x", description="  "))


def test_update_unknown_id_is_silent_noop() -> None:
    store = TaskStore([Task.create("a")])
    assert store.update_task("task-gone", status=TaskStatus.RUNNING) is False
    assert store.fail_task("task-gone", "x") is False
    assert store.complete_task("task-gone", "x") is False


def test_update_rejects_id_and_unknown_fields() -> None:
    task = Task.create("a")
    store = TaskStore([task])
    with pytest.raises(ValueError):
        store.update_task(task.id, id="other")
    with pytest.raises(ValueError):
        store.update_task(task.id, colour="red")


def test_listed_tasks_are_snapshots() -> None:
    task = Task.create("a")
    store = TaskStore([task])
    before = store.list_tasks()[0]

    store.mark_running(task.id)

    assert before.status == TaskStatus.PENDING
    assert store.get_task(task.id).status == TaskStatus.RUNNING


def test_complete_sets_completed_at_once() -> None:
    task = Task.create("a")
    store = TaskStore([task])

    store.complete_task(task.id, "first", now_ts=100.0)
    store.complete_task(task.id, "second", now_ts=200.0)

    done = store.get_task(task.id)
    assert done.status == TaskStatus.COMPLETED
    assert done.result == "second"
    assert done.completed_at == 100.0


def test_fail_records_reason_and_clear_empties() -> None:
    task = Task.create("a")
    store = TaskStore([task])

    store.fail_task(task.id, "network down")
    failed = store.get_task(task.id)
    assert failed.status == TaskStatus.FAILED
    assert failed.result == "network down"
    assert failed.completed_at is None

    store.clear()
    assert store.count_tasks() == 0
    assert store.list_tasks() == []

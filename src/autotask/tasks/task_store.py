# src/autotask/tasks/task_store.py

from __future__ import annotations

import logging
import time
from dataclasses import fields, replace
from typing import Any

from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

_TASK_FIELDS = frozenset(f.name for f in fields(Task))


class TaskStore:
    """
    In-memory task store.

    Insertion order is creation order (not priority order).
    Stored tasks are replaced, never mutated in place, so a Task handed out
    by list_tasks() is a stable snapshot.

    No derived indices: every read walks the live sequence.
    """

    def __init__(self, tasks: list[Task] | None = None) -> None:
        self._tasks: list[Task] = []
        for t in tasks or []:
            self.add_task(t)

    # ---- low-level helpers ----

    def _index_of(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    # ---- public API ----

    def count_tasks(self) -> int:
        return len(self._tasks)

    def list_tasks(self) -> list[Task]:
        return list(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        i = self._index_of(task_id)
        return self._tasks[i] if i is not None else None

    def add_task(self, task: Task) -> str:
        if not task.description or not task.description.strip():
            raise ValueError("description is required")
        if self._index_of(task.id) is not None:
            raise ValueError(f"duplicate task id: {task.id}")

        self._tasks.append(task)
        logger.debug("Task added id=%s priority=%s deps=%s", task.id, task.priority, list(task.dependencies))
        return task.id

    def update_task(self, task_id: str, **updates: Any) -> bool:
        """
        Partial merge by id.

        Unknown ids are a silent no-op (returns False): the loop may hold
        a stale id after a reset.
        """
        bad = set(updates) - _TASK_FIELDS
        if bad or "id" in updates:
            raise ValueError(f"cannot update task fields: {sorted(bad | ({'id'} & set(updates)))}")

        i = self._index_of(task_id)
        if i is None:
            logger.debug("update_task ignored: unknown id=%s", task_id)
            return False

        self._tasks[i] = replace(self._tasks[i], **updates)
        return True

    def mark_running(self, task_id: str) -> bool:
        return self.update_task(task_id, status=TaskStatus.RUNNING)

    def complete_task(self, task_id: str, result: str, now_ts: float | None = None) -> bool:
        """completed_at is set once; completing an already-completed task keeps the first stamp."""
        task = self.get_task(task_id)
        if task is None:
            return False
        completed_at = task.completed_at
        if completed_at is None:
            completed_at = time.time() if now_ts is None else now_ts
        return self.update_task(
            task_id,
            status=TaskStatus.COMPLETED,
            result=result,
            completed_at=completed_at,
        )

    def fail_task(self, task_id: str, reason: str) -> bool:
        return self.update_task(task_id, status=TaskStatus.FAILED, result=reason)

    def clear(self) -> None:
        n = len(self._tasks)
        self._tasks = []
        logger.debug("TaskStore cleared (%d tasks removed)", n)

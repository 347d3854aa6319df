# src/autotask/tasks/task_models.py

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    pending -> running -> completed | failed
    Terminal statuses never go back to pending.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_resolved(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class LogType(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    TASK = "task"
    RESULT = "result"
    THINKING = "thinking"
    MILESTONE = "milestone"


def new_task_id() -> str:
    return f"task-{uuid.uuid4().hex[:12]}"


@dataclass(slots=True)
class Task:
    id: str
    description: str
    status: TaskStatus = TaskStatus.PENDING
    priority: int = 1
    created_at: float = field(default_factory=time.time)
    completed_at: float | None = None
    result: str | None = None
    dependencies: tuple[str, ...] = ()

    # Follow-up bookkeeping: where the task came from (not a dependency).
    parent_id: str | None = None
    depth: int = 0

    @classmethod
    def create(
        cls,
        description: str,
        *,
        priority: int = 1,
        dependencies: tuple[str, ...] | list[str] = (),
        parent_id: str | None = None,
        depth: int = 0,
    ) -> Task:
        return cls(
            id=new_task_id(),
            description=description.strip(),
            priority=int(priority),
            dependencies=tuple(dependencies),
            parent_id=parent_id,
            depth=int(depth),
        )


@dataclass(frozen=True, slots=True)
class LogEntry:
    id: str
    timestamp: float
    type: LogType
    message: str
    icon: str
    metadata: dict[str, Any] | None = None

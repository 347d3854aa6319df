# tests/test_task_generator.py

from __future__ import annotations

import pytest

from autotask.config import AgentSettings
from autotask.core.errors import DelegationError, EmptyObjectiveError
from autotask.tasks.task_generator import (
    generate_follow_up_tasks,
    generate_initial_tasks,
    parse_task_list,
    plan_initial_tasks,
    prioritize_tasks,
    select_next_task,
)
from autotask.tasks.task_models import Task, TaskStatus

from .fakes import FakeLLMClient


@pytest.mark.parametrize(
    "objective",
    ["Write a blog post", "Build a weather app", "Research solar panels", "Plan a wedding", "zzz"],
)
def test_initial_tasks_are_pending_and_sequentially_prioritized(objective: str) -> None:
    tasks = generate_initial_tasks(objective)

    assert tasks
    assert all(t.status == TaskStatus.PENDING for t in tasks)
    assert all(t.dependencies == () for t in tasks)
    assert [t.priority for t in tasks] == list(range(len(tasks), 0, -1))
    assert len({t.id for t in tasks}) == len(tasks)


@pytest.mark.parametrize("objective", ["", "   ", "\n\t"])
def test_blank_objective_is_rejected(objective: str) -> None:
    with pytest.raises(EmptyObjectiveError):
        generate_initial_tasks(objective)


def test_prioritize_is_stable_and_idempotent() -> None:
    a = Task.create("a", priority=1)
    b = Task.create("b", priority=3)
    c = Task.create("c", priority=1)
    d = Task.create("d", priority=3)

    once = prioritize_tasks([a, b, c, d])
    twice = prioritize_tasks(once)

    assert [t.description for t in once] == ["b", "d", "a", "c"]
    assert [t.id for t in twice] == [t.id for t in once]


def test_follow_ups_from_next_step_lines() -> None:
    done = Task.create("research", priority=4)
    result = "Findings...\nNext step: compare prices\n- next step: draft summary\nNext step: third one"

    follow_ups = generate_follow_up_tasks(done, result, "objective")

    assert [t.description for t in follow_ups] == ["compare prices", "draft summary"]
    for t in follow_ups:
        assert t.status == TaskStatus.PENDING
        assert done.id not in t.dependencies
        assert t.parent_id == done.id
        assert t.depth == 1
        assert t.priority == 4


def test_follow_ups_from_result_markers() -> None:
    done = Task.create("Review the draft")
    follow_ups = generate_follow_up_tasks(done, "The draft needs revisions.", "objective")
    assert [t.description for t in follow_ups] == ["Apply revisions from: Review the draft"]


def test_follow_ups_stop_at_max_depth_and_plain_results() -> None:
    deep = Task.create("deep", depth=1)
    assert generate_follow_up_tasks(deep, "Next step: more", "o") == []

    plain = Task.create("plain")
    assert generate_follow_up_tasks(plain, "All good.", "o") == []


def test_follow_ups_do_not_repeat_the_completed_task() -> None:
    done = Task.create("compare prices")
    assert generate_follow_up_tasks(done, "Next step: Compare prices", "o") == []


def test_select_next_task_skips_unmet_dependencies() -> None:
    base = Task.create("base", priority=1)
    blocked = Task.create("blocked", priority=9, dependencies=[base.id])
    assert select_next_task([base, blocked]) is base

    done_base = Task(**{**_as_kwargs(base), "status": TaskStatus.COMPLETED})
    assert select_next_task([done_base, blocked]) is blocked

    for status in (TaskStatus.RUNNING, TaskStatus.FAILED):
        other = Task(**{**_as_kwargs(base), "status": status})
        assert select_next_task([other, blocked]) is None


def test_select_next_task_treats_unknown_dependency_as_unmet() -> None:
    orphan = Task.create("orphan", dependencies=["task-missing"])
    assert select_next_task([orphan]) is None


def test_parse_task_list_handles_numbers_and_bullets() -> None:
    text = "Here you go:\n1. Gather data\n2) Clean data.\n- Train model\n* Gather data\nthanks"
    assert parse_task_list(text) == ["Gather data", "Clean data", "Train model"]


@pytest.mark.asyncio
async def test_plan_initial_tasks_uses_llm_reply() -> None:
    llm = FakeLLMClient(next_text="1. Outline\n2. Draft\n3. Edit")
    settings = AgentSettings(model="m", temperature=0.3, max_tokens=500)

    tasks = await plan_initial_tasks("Write a story", llm, settings)

    assert [t.description for t in tasks] == ["Outline", "Draft", "Edit"]
    assert [t.priority for t in tasks] == [3, 2, 1]
    call = llm.calls[0]
    assert call["model"] == "m"
    assert call["messages"][1]["content"] == "Objective: Write a story"


@pytest.mark.asyncio
async def test_plan_initial_tasks_without_list_raises() -> None:
    llm = FakeLLMClient(next_text="I cannot help with that.")
    with pytest.raises(DelegationError):
        await plan_initial_tasks("Write a story", llm, AgentSettings())


def _as_kwargs(task: Task) -> dict:
    return {name: getattr(task, name) for name in task.__slots__}


@pytest.mark.asyncio
async def test_plan_initial_tasks_honours_timeout() -> None:
    llm = FakeLLMClient(next_text="1. Outline", delay=1.0)
    with pytest.raises(DelegationError, match="timed out"):
        await plan_initial_tasks("Write a story", llm, AgentSettings(), timeout_seconds=0.01)

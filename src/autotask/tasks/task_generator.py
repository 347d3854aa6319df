# src/autotask/tasks/task_generator.py

"""
Task generation and ordering.

All functions here are side-effect free except plan_initial_tasks, which
performs one LLM round-trip. Nothing in this module touches the TaskStore.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Iterable, Sequence

from ..config import AgentSettings
from ..core.errors import DelegationError, EmptyObjectiveError
from ..core.persona import get_planner_system_prompt
from ..core.ports import LLMClient
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

MAX_FOLLOW_UP_DEPTH = 1
MAX_FOLLOW_UPS_PER_TASK = 2
MAX_PLANNED_TASKS = 7

_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("writing", ("write", "blog", "article", "essay", "post", "story", "draft", "document")),
    ("building", ("build", "develop", "create", "app", "code", "implement", "website", "program")),
    ("research", ("research", "analyze", "analyse", "study", "learn", "investigate", "compare")),
    ("planning", ("plan", "organize", "organise", "schedule", "event", "trip", "prepare")),
)

_INITIAL_TEMPLATES: dict[str, tuple[str, ...]] = {
    "writing": (
        "Research the topic: {objective}",
        "Create an outline for: {objective}",
        "Write a first draft of: {objective}",
        "Review and edit the draft",
        "Finalize and publish the result",
    ),
    "building": (
        "Define requirements for: {objective}",
        "Design the architecture and components",
        "Implement the core functionality",
        "Test and fix issues",
        "Prepare the deployment",
    ),
    "research": (
        "Gather sources about: {objective}",
        "Analyze the collected information",
        "Summarize key findings",
        "Draw conclusions and recommendations",
    ),
    "planning": (
        "List goals and constraints for: {objective}",
        "Outline a timeline with milestones",
        "Identify resources and responsibilities",
        "Review the plan for risks",
    ),
    "generic": (
        "Analyze the objective: {objective}",
        "Break down the work into concrete steps",
        "Execute the main work",
        "Review the results",
    ),
}

_FOLLOW_UP_MARKERS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"further investigation", re.IGNORECASE), "Investigate further: {description}"),
    (re.compile(r"needs? revisions?", re.IGNORECASE), "Apply revisions from: {description}"),
    (re.compile(r"open questions?", re.IGNORECASE), "Resolve open questions from: {description}"),
)

_NEXT_STEP_RE = re.compile(r"^\s*(?:[-*]\s*)?next step\s*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE)
_LIST_ITEM_RE = re.compile(r"^\s*(?:\d+\s*[.)]|[-*•])\s+(.+?)\s*$")


def classify_objective(objective: str) -> str:
    words = set(re.findall(r"[a-z]+", objective.lower()))
    for category, keywords in _CATEGORY_KEYWORDS:
        if words.intersection(keywords):
            return category
    return "generic"


def _with_sequential_priorities(descriptions: Sequence[str]) -> list[Task]:
    # First task gets the highest priority so priority order == creation order.
    n = len(descriptions)
    return [Task.create(d, priority=n - i) for i, d in enumerate(descriptions)]


def generate_initial_tasks(objective: str) -> list[Task]:
    """
    Heuristic decomposition of the objective into an ordered batch.

    Raises EmptyObjectiveError for a blank objective.
    """
    objective = (objective or "").strip()
    if not objective:
        raise EmptyObjectiveError()

    category = classify_objective(objective)
    descriptions = [t.format(objective=objective) for t in _INITIAL_TEMPLATES[category]]
    logger.debug("Initial decomposition category=%s count=%d", category, len(descriptions))
    return _with_sequential_priorities(descriptions)


def parse_task_list(text: str, *, limit: int = MAX_PLANNED_TASKS) -> list[str]:
    """Extract task lines from a numbered/bulleted list reply."""
    out: list[str] = []
    seen: set[str] = set()
    for line in (text or "").splitlines():
        m = _LIST_ITEM_RE.match(line)
        if not m:
            continue
        desc = m.group(1).strip().rstrip(".").strip()
        key = desc.lower()
        if desc and key not in seen:
            seen.add(key)
            out.append(desc)
        if len(out) >= limit:
            break
    return out


async def plan_initial_tasks(
    objective: str,
    llm: LLMClient,
    settings: AgentSettings,
    *,
    timeout_seconds: float | None = None,
) -> list[Task]:
    """
    Ask the language model to decompose the objective.

    Raises EmptyObjectiveError for a blank objective, DelegationError when
    the call fails, outlives `timeout_seconds`, or the reply contains no
    usable task lines.
    """
    objective = (objective or "").strip()
    if not objective:
        raise EmptyObjectiveError()

    call = llm.complete(
        provider=settings.provider,
        api_key=settings.api_key,
        model=settings.model,
        messages=[
            {"role": "system", "content": get_planner_system_prompt()},
            {"role": "user", "content": f"Objective: {objective}"},
        ],
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )
    try:
        reply = await asyncio.wait_for(call, timeout=timeout_seconds) if timeout_seconds else await call
    except TimeoutError as e:
        raise DelegationError(f"Planning request timed out after {timeout_seconds:.0f}s.") from e

    descriptions = parse_task_list(reply)
    if not descriptions:
        raise DelegationError("Planner reply contained no tasks.")
    return _with_sequential_priorities(descriptions)


def generate_follow_up_tasks(completed_task: Task, result: str, objective: str) -> list[Task]:
    """
    Derive 0..N follow-up tasks from a completed task's result.

    Sources, in order: explicit "Next step:" lines, then known result markers.
    Follow-ups record the origin in parent_id but never depend on it.
    An empty list is the normal way a branch of work ends.
    """
    if completed_task.depth >= MAX_FOLLOW_UP_DEPTH:
        return []

    text = result or ""
    descriptions: list[str] = [m.group(1).strip() for m in _NEXT_STEP_RE.finditer(text)]

    if not descriptions:
        for pattern, template in _FOLLOW_UP_MARKERS:
            if pattern.search(text):
                descriptions.append(template.format(description=completed_task.description))

    out: list[Task] = []
    seen: set[str] = {completed_task.description.lower()}
    for desc in descriptions:
        key = desc.lower()
        if not desc or key in seen:
            continue
        seen.add(key)
        out.append(
            Task.create(
                desc,
                priority=completed_task.priority,
                parent_id=completed_task.id,
                depth=completed_task.depth + 1,
            )
        )
        if len(out) >= MAX_FOLLOW_UPS_PER_TASK:
            break

    if out:
        logger.debug("Derived %d follow-up(s) from task=%s objective=%r", len(out), completed_task.id, objective)
    return out


def prioritize_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Stable sort by priority, highest first; ties keep insertion order."""
    return sorted(tasks, key=lambda t: -t.priority)


def dependencies_met(task: Task, by_id: dict[str, Task]) -> bool:
    for dep_id in task.dependencies:
        dep = by_id.get(dep_id)
        if dep is None or dep.status != TaskStatus.COMPLETED:
            return False
    return True


def select_next_task(tasks: Sequence[Task]) -> Task | None:
    """Highest-priority pending task whose dependencies are all completed."""
    by_id = {t.id: t for t in tasks}
    for task in prioritize_tasks(tasks):
        if task.status == TaskStatus.PENDING and dependencies_met(task, by_id):
            return task
    return None

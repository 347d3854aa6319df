# src/autotask/tasks/task_scheduler.py

from __future__ import annotations

"""
Agent loop.

A repeating timer that, while the agent is running and not paused:
- evaluates stop conditions (all work resolved / iteration budget),
- selects the highest-priority runnable task (dependencies satisfied),
- drives it through the executor for the current mode,
- commits the result (or the failure), appends follow-ups, logs milestones.

Ticks never overlap: a tick that finds another tick in flight returns at once.
A result that resolves after a pause/reset (generation changed) is discarded.
"""

import asyncio
import contextlib
import logging
from collections.abc import Mapping

from ..core.errors import AgentError, DelegationError
from ..core.ports import TaskExecutor
from ..core.state import AgentMode, AgentState, LoopPhase
from .task_executor import DelegatedExecutor, SimulatedExecutor, select_executor
from .task_generator import generate_follow_up_tasks, select_next_task
from .task_models import LogType, Task, TaskStatus

logger = logging.getLogger(__name__)

MILESTONE_THRESHOLDS: tuple[int, ...] = (25, 50, 75, 100)


def default_executors(state: AgentState) -> dict[AgentMode, TaskExecutor]:
    settings = state.settings
    executors: dict[AgentMode, TaskExecutor] = {
        AgentMode.SIMULATED: SimulatedExecutor(
            delay_seconds=float(getattr(settings, "simulated_delay_seconds", 0.0)),
            failure_rate=float(getattr(settings, "simulated_failure_rate", 0.0)),
        ),
    }
    if state.llm is not None:
        executors[AgentMode.DELEGATED] = DelegatedExecutor(
            state.llm,
            timeout_seconds=getattr(settings, "llm_request_timeout_seconds", None),
        )
    return executors


def completion_percent(tasks: list[Task]) -> float:
    if not tasks:
        return 0.0
    done = sum(1 for t in tasks if t.status == TaskStatus.COMPLETED)
    return done * 100.0 / len(tasks)


class AgentLoop:
    """
    Drives one AgentState.

    tick() is the unit of work (one selection + at most one execution) and
    can be awaited directly; start()/aclose() own the repeating timer task.
    """

    def __init__(
        self,
        state: AgentState,
        executors: Mapping[AgentMode, TaskExecutor] | None = None,
    ) -> None:
        self.state = state
        self.executors: Mapping[AgentMode, TaskExecutor] = (
            executors if executors is not None else default_executors(state)
        )
        self._in_flight = False
        self._timer: asyncio.Task[None] | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    # ---- timer ----

    def start(self) -> None:
        if self._timer is not None and not self._timer.done():
            return
        self._timer = asyncio.create_task(self._run(), name="autotask-loop")

    async def aclose(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await timer

    async def _run(self) -> None:
        logger.info("Agent loop timer started.")
        while True:
            if self.state.is_active:
                try:
                    await self.tick()
                except Exception:
                    # tick() already converts executor failures; this is a bug guard.
                    logger.exception("Agent tick crashed.")
            delay = max(0.05, float(self.state.agent_settings.iteration_delay))
            await asyncio.sleep(delay)

    # ---- state machine ----

    async def tick(self) -> bool:
        """
        Run one scheduling step. Returns True if a task was executed.

        No-op while idle/paused or while another tick is in flight.
        """
        if self._in_flight:
            logger.debug("tick skipped: previous tick still in flight")
            return False
        if not self.state.is_active:
            return False

        self._in_flight = True
        try:
            return await self._tick()
        finally:
            self._in_flight = False

    async def _tick(self) -> bool:
        state = self.state

        if self._evaluate_stop():
            return False

        state.phase = LoopPhase.SELECTING
        tasks = state.task_store.list_tasks()
        task = select_next_task(tasks)
        if task is None:
            self._note_stall(tasks)
            return False

        if state.stalled:
            state.stalled = False
            logger.info("Stall cleared: task %s is runnable", task.id)

        await self._execute(task)
        if state.is_active:
            self._evaluate_stop()
        return True

    async def _execute(self, task: Task) -> None:
        state = self.state
        generation = state.generation
        mode = state.mode
        objective = state.objective
        settings = state.agent_settings

        state.phase = LoopPhase.EXECUTING
        state.task_store.mark_running(task.id)
        state.current_iteration += 1
        logger.info("Iteration %d/%d: task=%s mode=%s", state.current_iteration, state.max_iterations, task.id, mode.value)

        state.event_log.append(LogType.TASK, f"Starting: {task.description}", metadata={"task_id": task.id})
        if mode == AgentMode.DELEGATED:
            state.event_log.append(LogType.THINKING, f"Consulting {settings.model}...", metadata={"task_id": task.id})
        else:
            state.event_log.append(LogType.THINKING, "Processing task...", metadata={"task_id": task.id})

        result: str | None = None
        error: str | None = None
        status_code: int | None = None
        try:
            executor = select_executor(mode, self.executors)
            result = await executor.execute(task, objective, settings)
            if not result or not result.strip():
                error = "Executor returned an empty result."
        except DelegationError as e:
            error = e.detail
            status_code = e.status_code
        except AgentError as e:
            error = e.message
        except Exception as e:
            logger.exception("Executor crashed on task=%s", task.id)
            error = str(e).strip() or e.__class__.__name__

        # Pause/reset while the call was in flight: drop the result.
        if state.generation != generation or not state.is_active:
            self._discard(task)
            return

        if error is not None:
            self._commit_failure(task, error, status_code=status_code)
        else:
            assert result is not None
            self._commit_success(task, result)

        if state.phase == LoopPhase.EXECUTING:
            state.phase = LoopPhase.SELECTING

    def _commit_success(self, task: Task, result: str) -> None:
        state = self.state
        state.task_store.complete_task(task.id, result)
        logger.info("Task %s -> completed", task.id)

        state.event_log.append(LogType.SUCCESS, f"Completed: {task.description}", metadata={"task_id": task.id})
        state.event_log.append(LogType.RESULT, f"Result: {result}", metadata={"task_id": task.id})

        completed = state.task_store.get_task(task.id) or task
        follow_ups = generate_follow_up_tasks(completed, result, state.objective)
        for t in follow_ups:
            state.task_store.add_task(t)
        if follow_ups:
            state.event_log.append(
                LogType.INFO,
                f"Generated {len(follow_ups)} follow-up task(s)",
                metadata={"task_id": task.id, "follow_up_ids": [t.id for t in follow_ups]},
            )

        self._log_milestones()

    def _commit_failure(self, task: Task, reason: str, *, status_code: int | None = None) -> None:
        state = self.state
        state.task_store.fail_task(task.id, reason)
        logger.info("Task %s -> failed: %s (status=%s)", task.id, reason, status_code)
        metadata: dict[str, object] = {"task_id": task.id}
        if status_code is not None:
            metadata["status_code"] = status_code
        state.event_log.append(LogType.ERROR, f"Failed: {task.description} - {reason}", metadata=metadata)

    def _discard(self, task: Task) -> None:
        state = self.state
        # The task never resolved; put it back if it still exists.
        current = state.task_store.get_task(task.id)
        if current is not None and current.status == TaskStatus.RUNNING:
            state.task_store.update_task(task.id, status=TaskStatus.PENDING)
            state.event_log.append(
                LogType.INFO,
                f"Discarded in-flight result for: {task.description}",
                metadata={"task_id": task.id},
            )
        logger.info("Discarded stale result for task=%s", task.id)

    def _log_milestones(self) -> None:
        state = self.state
        percent = completion_percent(state.task_store.list_tasks())
        for threshold in MILESTONE_THRESHOLDS:
            if percent >= threshold and threshold not in state.milestones_reached:
                state.milestones_reached.add(threshold)
                state.event_log.append(
                    LogType.MILESTONE,
                    f"Milestone: {threshold}% complete!",
                    metadata={"percent": threshold},
                )

    def _evaluate_stop(self) -> bool:
        """Apply terminal transitions. Returns True if the loop halted."""
        state = self.state
        tasks = state.task_store.list_tasks()

        if tasks and all(t.status.is_resolved for t in tasks) and any(
            t.status == TaskStatus.COMPLETED for t in tasks
        ):
            self._halt(LoopPhase.STOPPED_COMPLETE)
            state.event_log.append(LogType.MILESTONE, "🎉 All tasks completed! Objective achieved!")
            logger.info("Objective complete after %d iteration(s).", state.current_iteration)
            return True

        if state.current_iteration >= state.max_iterations:
            self._halt(LoopPhase.STOPPED_BUDGET)
            state.event_log.append(LogType.WARNING, f"Reached maximum iterations ({state.max_iterations})")
            logger.info("Iteration budget exhausted (%d).", state.max_iterations)
            return True

        return False

    def _halt(self, phase: LoopPhase) -> None:
        state = self.state
        state.is_running = False
        state.is_paused = False
        state.stalled = False
        state.phase = phase

    def _note_stall(self, tasks: list[Task]) -> None:
        state = self.state
        if any(t.status == TaskStatus.RUNNING for t in tasks):
            return
        if state.stalled:
            return
        state.stalled = True

        blocked = [t for t in tasks if t.status == TaskStatus.PENDING]
        if blocked:
            message = f"No runnable task: {len(blocked)} pending task(s) blocked by unmet dependencies"
        elif tasks:
            message = "No runnable task: every task failed"
        else:
            message = "No runnable task: the task list is empty"
        state.event_log.append(LogType.WARNING, message, metadata={"blocked_ids": [t.id for t in blocked]})
        logger.warning("%s (session=%s)", message, state.session_id)

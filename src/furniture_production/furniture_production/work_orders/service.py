from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import minutes_between, now_local
from ..common.validators import require_non_empty
from ..core.constants import DONE_STAGE
from ..core.enums import WorkStatus
from ..core.exceptions import NotFoundError, ValidationError
from .decomposition import PausePeriod, Process, SubTask
from .model import WorkOrderTask
from .repository import WorkOrderRepository

logger = logging.getLogger(__name__)


def _pause(periods: tuple[PausePeriod, ...], is_paused: bool, now: datetime) -> Optional[tuple[PausePeriod, ...]]:
    if is_paused and (not periods or periods[-1].is_open):
        return None
    return periods + (PausePeriod(started_at=now),)


def _resume(periods: tuple[PausePeriod, ...], is_paused: bool, now: datetime) -> Optional[tuple[PausePeriod, ...]]:
    if not is_paused and not any(p.is_open for p in periods):
        return None
    return tuple(replace(p, ended_at=now) if p.is_open else p for p in periods)


class TaskService:
    """Edits to a task's breakdown; every edit re-derives the task's own status."""

    def __init__(
        self,
        work_orders: WorkOrderRepository,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self._work_orders = work_orders
        self._clock = clock or now_local
        self._new_id = id_factory or (lambda: f"st-{uuid.uuid4().hex[:12]}")

    def get_task(self, organization_id: str, task_id: str) -> WorkOrderTask:
        task = self._work_orders.get_task(organization_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        return task

    def toggle_pause(
        self,
        organization_id: str,
        task_id: str,
        paused: bool,
        *,
        subtask_id: Optional[str] = None,
    ) -> WorkOrderTask:
        task = self.get_task(organization_id, task_id)
        now = self._clock()
        toggle = _pause if paused else _resume

        if subtask_id is None:
            periods = toggle(task.pause_periods, task.is_paused, now)
            if periods is None:
                return task
            updated = replace(task, is_paused=paused, pause_periods=periods)
        else:
            sub = self._find_subtask(task, subtask_id)
            periods = toggle(sub.pause_periods, sub.is_paused, now)
            if periods is None:
                return task
            changed = replace(sub, is_paused=paused, pause_periods=periods)
            updated = replace(task, subtasks=tuple(changed if s.subtask_id == subtask_id else s for s in task.subtasks))

        self._work_orders.save_task(updated)
        logger.info("Task %s%s %s", task_id, f"/{subtask_id}" if subtask_id else "", "paused" if paused else "resumed")
        return updated

    def update_task_processes(self, organization_id: str, task_id: str, processes: Sequence[Process]) -> WorkOrderTask:
        task = self.get_task(organization_id, task_id)
        now = self._clock()
        previous = {p.process_name: p for p in task.processes}

        stamped: list[Process] = []
        for p in processes:
            require_non_empty(p.process_name, "process_name")
            before = previous.get(p.process_name)
            started = p.started_at or (before.started_at if before else None)
            completed = p.completed_at or (before.completed_at if before else None)
            if p.status != WorkStatus.WAITING and started is None:
                started = now
            if p.status == WorkStatus.DONE:
                completed = completed or now
            else:
                completed = None
            stamped.append(
                replace(
                    p,
                    started_at=started,
                    completed_at=completed,
                    duration_minutes=minutes_between(started, completed) if completed else None,
                )
            )

        return self._save_derived(replace(task, processes=tuple(stamped)))

    def create_or_update_subtasks(self, organization_id: str, task_id: str, subtasks: Sequence[SubTask]) -> WorkOrderTask:
        task = self.get_task(organization_id, task_id)
        now = self._clock()
        merged = {s.subtask_id: s for s in task.subtasks}

        for incoming in subtasks:
            if incoming.quantity <= 0:
                raise ValidationError("Sub-task quantity must be greater than zero")
            sub_id = incoming.subtask_id or self._new_id()
            before = merged.get(sub_id)
            started = incoming.started_at or (before.started_at if before else None)
            if incoming.status != WorkStatus.WAITING and started is None:
                started = now
            completed = None
            if incoming.status == WorkStatus.DONE:
                completed = incoming.completed_at or (before.completed_at if before else None) or now
            merged[sub_id] = replace(
                incoming,
                subtask_id=sub_id,
                started_at=started,
                completed_at=completed,
                pause_periods=incoming.pause_periods or (before.pause_periods if before else ()),
            )

        total = sum(s.quantity for s in merged.values())
        if total > task.quantity:
            raise ValidationError(f"Sub-task quantities ({total}) exceed task quantity ({task.quantity})")

        return self._save_derived(replace(task, subtasks=tuple(merged.values())))

    def move_subtask(self, organization_id: str, task_id: str, subtask_id: str, target_stage: str) -> WorkOrderTask:
        target_stage = require_non_empty(target_stage, "target_stage")
        task = self.get_task(organization_id, task_id)
        sub = self._find_subtask(task, subtask_id)
        now = self._clock()

        if target_stage == DONE_STAGE:
            moved = replace(sub, status=WorkStatus.DONE, started_at=sub.started_at or now, completed_at=now)
        else:
            # Moving back out of completion reopens the sub-task.
            moved = replace(
                sub,
                current_stage=target_stage,
                status=WorkStatus.IN_PROGRESS,
                started_at=sub.started_at or now,
                completed_at=None,
            )

        subtasks = tuple(moved if s.subtask_id == subtask_id else s for s in task.subtasks)
        return self._save_derived(replace(task, subtasks=self._auto_merge(task_id, subtasks)))

    def apply_derived_status(self, task: WorkOrderTask) -> WorkOrderTask:
        """Align status and timestamps with the decomposition; unfreeze a reopened task."""

        decomposition = task.decomposition
        status = decomposition.derived_status()
        if status is None:
            return task

        started = decomposition.started_at() or task.started_at
        completed = None
        if status == WorkStatus.DONE:
            completed = decomposition.completed_at() or task.completed_at or self._clock()

        updated = replace(task, status=status, started_at=started, completed_at=completed)
        if task.is_frozen and status != WorkStatus.DONE:
            updated = replace(updated, is_frozen=False, frozen_labor_cost=None)
            logger.info("Task %s reopened, costs unfrozen", task.task_id)
        return updated

    def _save_derived(self, task: WorkOrderTask) -> WorkOrderTask:
        updated = self.apply_derived_status(task)
        self._work_orders.save_task(updated)
        return updated

    def _auto_merge(self, task_id: str, subtasks: tuple[SubTask, ...]) -> tuple[SubTask, ...]:
        if len(subtasks) < 2:
            return subtasks
        stage = subtasks[0].current_stage
        if any(s.current_stage != stage or s.status == WorkStatus.DONE for s in subtasks):
            return subtasks

        helpers: list[str] = []
        for s in subtasks:
            helpers.extend(h for h in s.helpers if h not in helpers)
        starts = [s.started_at for s in subtasks if s.started_at]
        first = subtasks[0]
        merged = SubTask(
            subtask_id=first.subtask_id,
            quantity=sum(s.quantity for s in subtasks),
            current_stage=stage,
            status=first.status,
            worker_id=next((s.worker_id for s in subtasks if s.worker_id), None),
            worker_name=next((s.worker_name for s in subtasks if s.worker_id), None),
            helpers=tuple(helpers),
            started_at=min(starts) if starts else None,
        )
        logger.info("Auto-merged %d sub-tasks of task %s on stage %s", len(subtasks), task_id, stage)
        return (merged,)

    @staticmethod
    def _find_subtask(task: WorkOrderTask, subtask_id: str) -> SubTask:
        for s in task.subtasks:
            if s.subtask_id == subtask_id:
                return s
        raise NotFoundError(f"Sub-task {subtask_id} not found on task {task.task_id}")

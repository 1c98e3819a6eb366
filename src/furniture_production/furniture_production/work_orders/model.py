from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import covers
from ..core.enums import WorkOrderType, WorkStatus
from .decomposition import (
    Decomposition,
    NoDecomposition,
    PausePeriod,
    Process,
    ProcessDecomposition,
    SubTask,
    SubTaskDecomposition,
    paused_on,
)


@dataclass(frozen=True)
class AssignedWorker:
    worker_id: str
    worker_name: Optional[str] = None


@dataclass(frozen=True)
class WorkOrderTask:
    """Domain entity: one product line inside a work order (also called an item)."""

    task_id: str
    organization_id: str
    work_order_id: str
    product_id: str
    product_name: str = ""
    project_id: Optional[str] = None
    quantity: int = 1
    status: WorkStatus = WorkStatus.WAITING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    is_paused: bool = False
    pause_periods: tuple[PausePeriod, ...] = ()
    assigned_workers: tuple[AssignedWorker, ...] = ()
    processes: tuple[Process, ...] = ()
    subtasks: tuple[SubTask, ...] = ()

    # Economics synced by the cost aggregator.
    product_value: float = 0.0
    material_cost: float = 0.0
    material_cost_overridden: bool = False
    planned_labor_cost: float = 0.0
    actual_labor_cost: float = 0.0
    transport_share: float = 0.0
    services_total: float = 0.0
    is_frozen: bool = False
    frozen_labor_cost: Optional[float] = None

    @property
    def decomposition(self) -> Decomposition:
        if self.subtasks:
            return SubTaskDecomposition(self.subtasks)
        if self.processes:
            return ProcessDecomposition(self.processes)
        return NoDecomposition()

    @property
    def assigned_worker_ids(self) -> frozenset[str]:
        return frozenset(w.worker_id for w in self.assigned_workers)

    def effective_started_at(self) -> Optional[datetime]:
        return self.started_at or self.decomposition.started_at()

    def covers(self, day: date) -> bool:
        end = self.completed_at if self.status == WorkStatus.DONE else None
        return covers(day, self.effective_started_at(), end)

    def is_paused_on(self, day: date) -> bool:
        return paused_on(self.is_paused, self.pause_periods, day)

    def worker_name(self, worker_id: str) -> Optional[str]:
        for w in self.assigned_workers:
            if w.worker_id == worker_id:
                return w.worker_name
        return None


@dataclass(frozen=True)
class WorkOrder:
    """Domain entity: a batch of product tasks produced or installed together."""

    work_order_id: str
    organization_id: str
    work_order_number: str = ""
    name: str = ""
    order_type: WorkOrderType = WorkOrderType.PRODUCTION
    status: WorkStatus = WorkStatus.WAITING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    planned_start: Optional[date] = None
    planned_end: Optional[date] = None
    is_scheduled: bool = False
    scheduled_at: Optional[datetime] = None
    production_steps: tuple[str, ...] = ()

    total_value: float = 0.0
    material_cost: float = 0.0
    transport_total: float = 0.0
    services_total: float = 0.0
    planned_labor_cost: float = 0.0
    actual_labor_cost: float = 0.0
    gross_profit: float = 0.0
    profit: float = 0.0
    profit_margin: float = 0.0
    labor_cost_variance: float = 0.0
    last_recalculated_at: Optional[datetime] = None

    tasks: tuple[WorkOrderTask, ...] = field(default=(), compare=False)

    def effective_started_at(self) -> Optional[datetime]:
        if self.started_at:
            return self.started_at
        starts = [t.effective_started_at() for t in self.tasks if t.effective_started_at()]
        return min(starts) if starts else None

    def covers(self, day: date) -> bool:
        end = self.completed_at if self.status == WorkStatus.DONE else None
        return covers(day, self.effective_started_at(), end)

    def task(self, task_id: str) -> Optional[WorkOrderTask]:
        for t in self.tasks:
            if t.task_id == task_id:
                return t
        return None

    @property
    def display_name(self) -> str:
        return self.name or self.work_order_number or self.work_order_id

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ..work_orders.decomposition import Assignment
from ..work_orders.model import WorkOrder, WorkOrderTask


@dataclass(frozen=True)
class EligibleAssignment:
    work_order: WorkOrder
    task: WorkOrderTask
    assignment: Assignment


def resolve_assignment(task: WorkOrderTask, worker_id: str, day: date) -> Optional[Assignment]:
    """How ``worker_id`` worked on ``task`` that day, or None when the day is not billable to it."""

    if not task.covers(day) or task.is_paused_on(day):
        return None
    found = task.decomposition.assignment_for(worker_id, day)
    if found is not None:
        return found
    if worker_id in task.assigned_worker_ids:
        return Assignment(process_name=task.decomposition.active_stage())
    return None


def find_eligible_assignments(orders: Iterable[WorkOrder], worker_id: str, day: date) -> list[EligibleAssignment]:
    eligible: list[EligibleAssignment] = []
    seen: set[str] = set()
    for order in orders:
        if not order.covers(day):
            continue
        for task in order.tasks:
            if task.task_id in seen:
                continue
            assignment = resolve_assignment(task, worker_id, day)
            if assignment is None:
                continue
            seen.add(task.task_id)
            eligible.append(EligibleAssignment(work_order=order, task=task, assignment=assignment))
    return eligible


def candidate_workers(task: WorkOrderTask) -> dict[str, str]:
    """Every worker referenced by the task, mapped to the best known display name."""

    names: dict[str, str] = {}
    for w in task.assigned_workers:
        names.setdefault(w.worker_id, w.worker_name or w.worker_id)
    for part in (*task.processes, *task.subtasks):
        if part.worker_id:
            names.setdefault(part.worker_id, part.worker_name or part.worker_id)
        for helper in part.helpers:
            names.setdefault(helper, helper)
    return names

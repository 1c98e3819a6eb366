from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from ..common.money import round_money
from ..core.constants import DEFAULT_HOURS_WORKED


def work_log_key(worker_id: str, task_id: str, work_date: date) -> str:
    """Natural identifier: a worker has at most one log per task per day."""
    return f"{worker_id}_{task_id}_{work_date.isoformat()}"


@dataclass(frozen=True)
class WorkLog:
    """Derived fact: worker earned ``daily_rate`` on ``work_date`` for ``task_id``."""

    work_log_id: str
    organization_id: str
    work_date: date
    worker_id: str
    task_id: str
    work_order_id: str
    product_id: str
    daily_rate: float
    original_daily_rate: float
    split_factor: int
    worker_name: Optional[str] = None
    hours_worked: float = DEFAULT_HOURS_WORKED
    process_name: Optional[str] = None
    subtask_id: Optional[str] = None
    is_from_attendance: bool = True
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class DerivationResult:
    created: int = 0
    skipped: int = 0
    updated: int = 0
    deleted: int = 0
    affected_work_orders: tuple[str, ...] = ()


@dataclass(frozen=True)
class WorkerLaborBreakdown:
    """Read-model: labor a single worker contributed to a task."""

    worker_id: str
    worker_name: str
    days: int
    cost: float


def summarize_by_worker(logs: Iterable[WorkLog]) -> list[WorkerLaborBreakdown]:
    acc: "OrderedDict[str, list]" = OrderedDict()
    for log in sorted(logs, key=lambda l: (l.work_date, l.worker_id)):
        entry = acc.setdefault(log.worker_id, [log.worker_name or log.worker_id, set(), 0.0])
        entry[1].add(log.work_date)
        entry[2] += float(log.daily_rate)
    return [
        WorkerLaborBreakdown(worker_id=wid, worker_name=name, days=len(days), cost=round_money(cost))
        for wid, (name, days, cost) in acc.items()
    ]

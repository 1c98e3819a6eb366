from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict
from datetime import datetime
from typing import Iterable

from ..common.datetime_utils import month_key, quarter_key
from ..common.money import money_sum, round_money
from ..worklogs.model import WorkLog, summarize_by_worker
from ..work_orders.model import WorkOrder
from .model import ProductionSnapshot, ProfitFigures, SnapshotItem, SnapshotProcess, SnapshotWorker


def _days_between(start, end) -> int:
    if not start or not end:
        return 0
    start_day = start.date() if isinstance(start, datetime) else start
    end_day = end.date() if isinstance(end, datetime) else end
    return max((end_day - start_day).days + 1, 0)


def _quality(snapshot_fields: dict) -> tuple[int, tuple[str, ...]]:
    issues: list[str] = []
    score = 100
    if snapshot_fields["total_material_cost"] <= 0:
        issues.append("Missing material cost")
        score -= 50
    if not snapshot_fields["items"]:
        issues.append("No products in snapshot")
        score -= 20
    if not snapshot_fields["actual_start"] or not snapshot_fields["actual_end"]:
        issues.append("Missing start/end dates")
        score -= 20
    if snapshot_fields["actual_days"] <= 0:
        issues.append("Invalid duration")
        score -= 10
    if snapshot_fields["workers_count"] <= 0:
        issues.append("No workers assigned")
        score -= 10
    if not -50 <= snapshot_fields["profit_margin"] <= 200:
        issues.append("Unrealistic profit margin")
        score -= 15
    return max(score, 0), tuple(issues)


def build_snapshot(
    work_order: WorkOrder,
    logs: Iterable[WorkLog],
    figures: ProfitFigures,
    *,
    snapshot_id: str,
    created_at: datetime,
) -> ProductionSnapshot:
    logs = list(logs)
    by_task: dict[str, list[WorkLog]] = defaultdict(list)
    for log in logs:
        by_task[log.task_id].append(log)

    items: list[SnapshotItem] = []
    for task in work_order.tasks:
        workers = tuple(
            SnapshotWorker(worker_id=b.worker_id, worker_name=b.worker_name, days=b.days, cost=b.cost)
            for b in summarize_by_worker(by_task.get(task.task_id, []))
        )
        processes = tuple(
            SnapshotProcess(
                process_name=p.process_name,
                status=p.status.value,
                started_at=p.started_at,
                completed_at=p.completed_at,
                duration_minutes=p.duration_minutes,
            )
            for p in task.processes
        )
        items.append(
            SnapshotItem(
                task_id=task.task_id,
                product_id=task.product_id,
                product_name=task.product_name,
                quantity=task.quantity,
                material_cost=round_money(task.material_cost),
                labor_cost=round_money(task.actual_labor_cost),
                selling_price=round_money(task.product_value),
                transport_share=round_money(task.transport_share),
                services_total=round_money(task.services_total),
                profit=round_money(
                    task.product_value
                    - task.material_cost
                    - task.actual_labor_cost
                    - task.transport_share
                    - task.services_total
                ),
                workers=workers,
                processes=processes,
            )
        )

    worker_days = {(log.worker_id, log.work_date) for log in logs}
    total_worker_days = len(worker_days)
    labor = money_sum(log.daily_rate for log in logs)
    start = work_order.started_at

    fields = dict(
        snapshot_id=snapshot_id,
        organization_id=work_order.organization_id,
        work_order_id=work_order.work_order_id,
        work_order_number=work_order.work_order_number,
        created_at=created_at,
        items=tuple(items),
        total_quantity=sum(i.quantity for i in items),
        total_selling_price=round_money(work_order.total_value),
        total_material_cost=round_money(work_order.material_cost),
        transport_total=round_money(work_order.transport_total),
        services_total=round_money(work_order.services_total),
        planned_start=work_order.planned_start,
        planned_end=work_order.planned_end,
        actual_start=work_order.started_at,
        actual_end=work_order.completed_at,
        planned_days=_days_between(work_order.planned_start, work_order.planned_end),
        actual_days=_days_between(work_order.started_at, work_order.completed_at),
        planned_labor_cost=round_money(work_order.planned_labor_cost),
        actual_labor_cost=round_money(work_order.actual_labor_cost),
        labor_cost_variance=figures.labor_cost_variance,
        gross_profit=figures.gross_profit,
        net_profit=figures.net_profit,
        profit_margin=figures.profit_margin,
        workers_count=len({log.worker_id for log in logs}),
        total_worker_days=total_worker_days,
        avg_daily_rate=round_money(labor / total_worker_days) if total_worker_days else 0.0,
        production_steps=tuple(work_order.production_steps),
        month=month_key(start.date()) if start else None,
        quarter=quarter_key(start.date()) if start else None,
    )
    score, issues = _quality(fields)
    return ProductionSnapshot(**fields, quality_score=score, data_issues=issues)


def snapshot_payload(snapshot: ProductionSnapshot) -> dict:
    return asdict(snapshot)


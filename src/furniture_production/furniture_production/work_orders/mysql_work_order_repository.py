from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import parse_iso_datetime
from ..core.enums import WorkOrderType, WorkStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json
from .decomposition import PausePeriod, Process, SubTask
from .model import AssignedWorker, WorkOrder, WorkOrderTask
from .repository import WorkOrderRepository

_ORDER_COLUMNS = """
    work_order_id, organization_id, work_order_number, name, order_type, status,
    started_at, completed_at, planned_start, planned_end, is_scheduled, scheduled_at, production_steps,
    total_value, material_cost, transport_total, services_total, planned_labor_cost, actual_labor_cost,
    gross_profit, profit, profit_margin, labor_cost_variance, last_recalculated_at
"""

_TASK_COLUMNS = """
    task_id, organization_id, work_order_id, product_id, product_name, project_id, quantity, status,
    started_at, completed_at, is_paused, pause_periods, assigned_workers, processes, subtasks,
    product_value, material_cost, material_cost_overridden, planned_labor_cost, actual_labor_cost,
    transport_share, services_total, is_frozen, frozen_labor_cost
"""


def _pause_periods(raw: Any) -> tuple[PausePeriod, ...]:
    return tuple(
        PausePeriod(started_at=parse_iso_datetime(p["started_at"]), ended_at=parse_iso_datetime(p.get("ended_at")))
        for p in load_json(raw, [])
    )


def _dump_pause_periods(periods: Sequence[PausePeriod]) -> str:
    return dump_json([{"started_at": p.started_at, "ended_at": p.ended_at} for p in periods])


def _processes(raw: Any) -> tuple[Process, ...]:
    return tuple(
        Process(
            process_name=p["process_name"],
            status=WorkStatus(p.get("status", WorkStatus.WAITING.value)),
            worker_id=p.get("worker_id"),
            worker_name=p.get("worker_name"),
            helpers=tuple(p.get("helpers") or ()),
            started_at=parse_iso_datetime(p.get("started_at")),
            completed_at=parse_iso_datetime(p.get("completed_at")),
            duration_minutes=p.get("duration_minutes"),
        )
        for p in load_json(raw, [])
    )


def _subtasks(raw: Any) -> tuple[SubTask, ...]:
    return tuple(
        SubTask(
            subtask_id=s["subtask_id"],
            quantity=int(s.get("quantity") or 0),
            current_stage=s.get("current_stage"),
            status=WorkStatus(s.get("status", WorkStatus.WAITING.value)),
            worker_id=s.get("worker_id"),
            worker_name=s.get("worker_name"),
            helpers=tuple(s.get("helpers") or ()),
            is_paused=bool(s.get("is_paused", False)),
            pause_periods=_pause_periods(s.get("pause_periods")),
            started_at=parse_iso_datetime(s.get("started_at")),
            completed_at=parse_iso_datetime(s.get("completed_at")),
        )
        for s in load_json(raw, [])
    )


def _dump_processes(processes: Sequence[Process]) -> str:
    return dump_json(
        [
            {
                "process_name": p.process_name,
                "status": p.status,
                "worker_id": p.worker_id,
                "worker_name": p.worker_name,
                "helpers": list(p.helpers),
                "started_at": p.started_at,
                "completed_at": p.completed_at,
                "duration_minutes": p.duration_minutes,
            }
            for p in processes
        ]
    )


def _dump_subtasks(subtasks: Sequence[SubTask]) -> str:
    return dump_json(
        [
            {
                "subtask_id": s.subtask_id,
                "quantity": s.quantity,
                "current_stage": s.current_stage,
                "status": s.status,
                "worker_id": s.worker_id,
                "worker_name": s.worker_name,
                "helpers": list(s.helpers),
                "is_paused": s.is_paused,
                "pause_periods": [{"started_at": p.started_at, "ended_at": p.ended_at} for p in s.pause_periods],
                "started_at": s.started_at,
                "completed_at": s.completed_at,
            }
            for s in subtasks
        ]
    )


def _to_task(r: dict) -> WorkOrderTask:
    frozen_labor = r.get("frozen_labor_cost")
    return WorkOrderTask(
        task_id=str(r["task_id"]),
        organization_id=str(r["organization_id"]),
        work_order_id=str(r["work_order_id"]),
        product_id=str(r["product_id"]),
        product_name=r.get("product_name") or "",
        project_id=r.get("project_id"),
        quantity=int(r.get("quantity") or 1),
        status=WorkStatus(r["status"]),
        started_at=r.get("started_at"),
        completed_at=r.get("completed_at"),
        is_paused=bool(r.get("is_paused")),
        pause_periods=_pause_periods(r.get("pause_periods")),
        assigned_workers=tuple(
            AssignedWorker(worker_id=w["worker_id"], worker_name=w.get("worker_name"))
            for w in load_json(r.get("assigned_workers"), [])
        ),
        processes=_processes(r.get("processes")),
        subtasks=_subtasks(r.get("subtasks")),
        product_value=float(r.get("product_value") or 0),
        material_cost=float(r.get("material_cost") or 0),
        material_cost_overridden=bool(r.get("material_cost_overridden")),
        planned_labor_cost=float(r.get("planned_labor_cost") or 0),
        actual_labor_cost=float(r.get("actual_labor_cost") or 0),
        transport_share=float(r.get("transport_share") or 0),
        services_total=float(r.get("services_total") or 0),
        is_frozen=bool(r.get("is_frozen")),
        frozen_labor_cost=float(frozen_labor) if frozen_labor is not None else None,
    )


def _to_order(r: dict, tasks: Sequence[WorkOrderTask]) -> WorkOrder:
    return WorkOrder(
        work_order_id=str(r["work_order_id"]),
        organization_id=str(r["organization_id"]),
        work_order_number=r.get("work_order_number") or "",
        name=r.get("name") or "",
        order_type=WorkOrderType(r.get("order_type") or WorkOrderType.PRODUCTION.value),
        status=WorkStatus(r["status"]),
        started_at=r.get("started_at"),
        completed_at=r.get("completed_at"),
        planned_start=r.get("planned_start"),
        planned_end=r.get("planned_end"),
        is_scheduled=bool(r.get("is_scheduled")),
        scheduled_at=r.get("scheduled_at"),
        production_steps=tuple(load_json(r.get("production_steps"), [])),
        total_value=float(r.get("total_value") or 0),
        material_cost=float(r.get("material_cost") or 0),
        transport_total=float(r.get("transport_total") or 0),
        services_total=float(r.get("services_total") or 0),
        planned_labor_cost=float(r.get("planned_labor_cost") or 0),
        actual_labor_cost=float(r.get("actual_labor_cost") or 0),
        gross_profit=float(r.get("gross_profit") or 0),
        profit=float(r.get("profit") or 0),
        profit_margin=float(r.get("profit_margin") or 0),
        labor_cost_variance=float(r.get("labor_cost_variance") or 0),
        last_recalculated_at=r.get("last_recalculated_at"),
        tasks=tuple(tasks),
    )


class MySQLWorkOrderRepository(WorkOrderRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, rows: list[dict]) -> list[WorkOrder]:
        if not rows:
            return []
        ids = [r["work_order_id"] for r in rows]
        cur.execute(
            f"SELECT {_TASK_COLUMNS} FROM work_order_tasks WHERE work_order_id IN ({in_clause(ids)}) ORDER BY task_id",
            tuple(ids),
        )
        by_order: dict[str, list[WorkOrderTask]] = defaultdict(list)
        for t in fetchall(cur):
            by_order[str(t["work_order_id"])].append(_to_task(t))
        return [_to_order(r, by_order.get(str(r["work_order_id"]), [])) for r in rows]

    def _select(self, where: str, params: tuple) -> list[WorkOrder]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ORDER_COLUMNS} FROM work_orders WHERE {where} ORDER BY work_order_id", params)
            return self._load(cur, fetchall(cur))

    def get(self, organization_id: str, work_order_id: str) -> Optional[WorkOrder]:
        found = self._select("organization_id=%s AND work_order_id=%s", (organization_id, work_order_id))
        return found[0] if found else None

    def list_covering_date(self, organization_id: str, work_date: date) -> Sequence[WorkOrder]:
        day_end = datetime.combine(work_date + timedelta(days=1), time.min)
        day_start = datetime.combine(work_date, time.min)
        # The header start is only filled in by recalculation; unstarted headers fall back to task starts.
        candidates = self._select(
            """
            organization_id=%s AND (started_at IS NULL OR started_at < %s)
            AND (completed_at IS NULL OR status<>%s OR completed_at >= %s)
            """,
            (organization_id, day_end, WorkStatus.DONE.value, day_start),
        )
        return [order for order in candidates if order.covers(work_date)]

    def list_by_status(self, organization_id: str, statuses: Iterable[WorkStatus]) -> Sequence[WorkOrder]:
        values = [WorkStatus(s).value for s in statuses]
        if not values:
            return []
        return self._select(
            f"organization_id=%s AND status IN ({in_clause(values)})",
            (organization_id, *values),
        )

    def list_for_project(self, organization_id: str, project_id: str) -> Sequence[WorkOrder]:
        return self._select(
            """
            organization_id=%s AND work_order_id IN (
                SELECT DISTINCT work_order_id FROM work_order_tasks WHERE organization_id=%s AND project_id=%s
            )
            """,
            (organization_id, organization_id, project_id),
        )

    def list_all(self, organization_id: Optional[str] = None) -> Sequence[WorkOrder]:
        if organization_id is None:
            return self._select("1=1", ())
        return self._select("organization_id=%s", (organization_id,))

    def get_task(self, organization_id: str, task_id: str) -> Optional[WorkOrderTask]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TASK_COLUMNS} FROM work_order_tasks WHERE organization_id=%s AND task_id=%s",
                (organization_id, task_id),
            )
            r = fetchone(cur)
            return _to_task(r) if r else None

    def save_task(self, task: WorkOrderTask) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_order_tasks
                SET status=%s, started_at=%s, completed_at=%s, is_paused=%s, pause_periods=%s,
                    processes=%s, subtasks=%s, product_value=%s, material_cost=%s, actual_labor_cost=%s,
                    is_frozen=%s, frozen_labor_cost=%s
                WHERE organization_id=%s AND task_id=%s
                """,
                (
                    task.status.value,
                    task.started_at,
                    task.completed_at,
                    int(task.is_paused),
                    _dump_pause_periods(task.pause_periods),
                    _dump_processes(task.processes),
                    _dump_subtasks(task.subtasks),
                    task.product_value,
                    task.material_cost,
                    task.actual_labor_cost,
                    int(task.is_frozen),
                    task.frozen_labor_cost,
                    task.organization_id,
                    task.task_id,
                ),
            )

    def save_task_costs(self, task: WorkOrderTask) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_order_tasks
                SET product_value=%s, material_cost=%s, actual_labor_cost=%s, is_frozen=%s, frozen_labor_cost=%s
                WHERE organization_id=%s AND task_id=%s
                """,
                (
                    task.product_value,
                    task.material_cost,
                    task.actual_labor_cost,
                    int(task.is_frozen),
                    task.frozen_labor_cost,
                    task.organization_id,
                    task.task_id,
                ),
            )

    def save_aggregates(self, work_order: WorkOrder) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_orders
                SET status=%s, started_at=%s, completed_at=%s,
                    total_value=%s, material_cost=%s, transport_total=%s, services_total=%s,
                    planned_labor_cost=%s, actual_labor_cost=%s, gross_profit=%s, profit=%s,
                    profit_margin=%s, labor_cost_variance=%s, last_recalculated_at=%s
                WHERE organization_id=%s AND work_order_id=%s
                """,
                (
                    work_order.status.value,
                    work_order.started_at,
                    work_order.completed_at,
                    work_order.total_value,
                    work_order.material_cost,
                    work_order.transport_total,
                    work_order.services_total,
                    work_order.planned_labor_cost,
                    work_order.actual_labor_cost,
                    work_order.gross_profit,
                    work_order.profit,
                    work_order.profit_margin,
                    work_order.labor_cost_variance,
                    work_order.last_recalculated_at,
                    work_order.organization_id,
                    work_order.work_order_id,
                ),
            )

    def save_schedule(
        self,
        organization_id: str,
        work_order_id: str,
        *,
        planned_start: date,
        planned_end: date,
        scheduled_at: datetime,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_orders
                SET planned_start=%s, planned_end=%s, is_scheduled=1, scheduled_at=%s
                WHERE organization_id=%s AND work_order_id=%s
                """,
                (planned_start, planned_end, scheduled_at, organization_id, work_order_id),
            )

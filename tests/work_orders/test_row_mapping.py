import json
from datetime import date, datetime

from src.furniture_production.furniture_production.core.enums import WorkStatus
from src.furniture_production.furniture_production.work_orders.decomposition import PausePeriod, Process, SubTask
from src.furniture_production.furniture_production.work_orders.mysql_work_order_repository import (
    MySQLWorkOrderRepository,
    _dump_pause_periods,
    _dump_processes,
    _dump_subtasks,
    _to_task,
)


def _row(**overrides):
    row = {
        "task_id": "t1",
        "organization_id": "org-1",
        "work_order_id": "wo-1",
        "product_id": "p-1",
        "product_name": "Cabinet",
        "project_id": "prj-1",
        "quantity": 2,
        "status": "InProgress",
        "started_at": datetime(2024, 4, 29, 8),
        "completed_at": None,
        "is_paused": 0,
        "pause_periods": None,
        "assigned_workers": json.dumps([{"worker_id": "w-a", "worker_name": "Worker A"}]),
        "processes": None,
        "subtasks": None,
        "product_value": "500.00",
        "material_cost": None,
        "material_cost_overridden": 0,
        "planned_labor_cost": 0,
        "actual_labor_cost": 0,
        "transport_share": 0,
        "services_total": 0,
        "is_frozen": 0,
        "frozen_labor_cost": None,
    }
    row.update(overrides)
    return row


def test_task_row_with_empty_json_columns():
    task = _to_task(_row())

    assert task.status == WorkStatus.IN_PROGRESS
    assert task.assigned_worker_ids == frozenset({"w-a"})
    assert task.processes == ()
    assert task.product_value == 500.0
    assert task.material_cost == 0.0
    assert task.frozen_labor_cost is None


def test_task_row_decodes_nested_collections():
    period = PausePeriod(started_at=datetime(2024, 4, 30, 9), ended_at=datetime(2024, 5, 1, 8))
    process = Process("Cutting", WorkStatus.DONE, worker_id="w-a", helpers=("w-b",), started_at=datetime(2024, 4, 29, 8),
                      completed_at=datetime(2024, 4, 29, 16), duration_minutes=480)
    sub = SubTask("st-1", 2, "Drilling", WorkStatus.IN_PROGRESS, worker_id="w-a", pause_periods=(period,))

    task = _to_task(
        _row(
            pause_periods=_dump_pause_periods([period]).encode("utf-8"),
            processes=_dump_processes([process]),
            subtasks=_dump_subtasks([sub]),
            is_frozen=1,
            frozen_labor_cost="90.00",
        )
    )

    assert task.pause_periods == (period,)
    assert task.processes == (process,)
    assert task.subtasks == (sub,)
    assert task.is_frozen
    assert task.frozen_labor_cost == 90.0


class ScriptedCursor:
    def __init__(self, results):
        self.results = list(results)
        self.statements = []

    def execute(self, sql, params=()):
        self.statements.append((sql, params))

    def fetchall(self):
        return self.results.pop(0)

    def close(self):
        pass


class ScriptedConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        pass

    def close(self):
        pass


class ScriptedFactory:
    def __init__(self, *results):
        self.cursor = ScriptedCursor(results)

    def connect(self):
        return ScriptedConnection(self.cursor)


def test_covering_date_uses_task_start_when_header_is_unstarted():
    headers = [
        {"work_order_id": "wo-1", "organization_id": "org-1", "status": "InProgress", "started_at": None},
        {"work_order_id": "wo-2", "organization_id": "org-1", "status": "Waiting", "started_at": None},
    ]
    tasks = [
        _row(task_id="t1", work_order_id="wo-1", started_at=datetime(2024, 5, 1, 8)),
        _row(task_id="t2", work_order_id="wo-2", status="Waiting", started_at=None),
    ]
    factory = ScriptedFactory(headers, tasks)

    found = MySQLWorkOrderRepository(factory).list_covering_date("org-1", date(2024, 5, 1))

    assert [o.work_order_id for o in found] == ["wo-1"]
    sql, _ = factory.cursor.statements[0]
    assert "started_at IS NULL OR started_at <" in sql

from __future__ import annotations

from datetime import date, datetime

from src.furniture_production.furniture_production.core.enums import WorkStatus
from src.furniture_production.furniture_production.costing.calculator.standard_calculator import StandardProfitCalculator
from src.furniture_production.furniture_production.costing.model import CostTotals
from src.furniture_production.furniture_production.costing.snapshot import build_snapshot, snapshot_payload
from src.furniture_production.furniture_production.work_orders.decomposition import Process
from src.furniture_production.furniture_production.worklogs.model import WorkLog

from tests.fakes import ORG, make_order, make_task


def _log(worker_id: str, day: date, rate: float) -> WorkLog:
    return WorkLog(
        work_log_id=f"{worker_id}_t1_{day.isoformat()}",
        organization_id=ORG,
        work_date=day,
        worker_id=worker_id,
        worker_name=worker_id.upper(),
        task_id="t1",
        work_order_id="wo-1",
        product_id="p-t1",
        daily_rate=rate,
        original_daily_rate=rate,
        split_factor=1,
    )


def _order(material_cost: float):
    task = make_task(
        "t1",
        status=WorkStatus.DONE,
        completed_at=datetime(2024, 5, 1, 16),
        product_value=500,
        material_cost=material_cost,
        actual_labor_cost=240,
        processes=[Process("Cutting", WorkStatus.DONE, duration_minutes=120)],
    )
    return make_order(
        "wo-1",
        task,
        status=WorkStatus.DONE,
        completed_at=datetime(2024, 5, 1, 16),
        total_value=500,
        material_cost=material_cost,
        actual_labor_cost=240,
        production_steps=("Cutting",),
    )


LOGS = [
    _log("w-a", date(2024, 4, 29), 90),
    _log("w-a", date(2024, 4, 30), 90),
    _log("w-b", date(2024, 4, 30), 60),
]


def _snapshot(order):
    figures = StandardProfitCalculator().calculate(
        CostTotals(total_value=order.total_value, material_cost=order.material_cost, actual_labor_cost=order.actual_labor_cost)
    )
    return build_snapshot(order, LOGS, figures, snapshot_id="snap-wo-1", created_at=datetime(2024, 5, 1, 17))


def test_snapshot_captures_items_workers_and_durations():
    snapshot = _snapshot(_order(100))

    [item] = snapshot.items
    assert [(w.worker_id, w.days, w.cost) for w in item.workers] == [("w-a", 2, 180.0), ("w-b", 1, 60.0)]
    assert item.processes[0].process_name == "Cutting"
    assert item.profit == 160.0
    assert snapshot.workers_count == 2
    assert snapshot.total_worker_days == 3
    assert snapshot.avg_daily_rate == 80.0
    assert snapshot.actual_days == 3
    assert snapshot.planned_days == 0
    assert snapshot.net_profit == 160.0
    assert snapshot.profit_margin == 32.0
    assert (snapshot.month, snapshot.quarter) == ("2024-04", "2024-Q2")
    assert snapshot.quality_score == 100
    assert snapshot.data_issues == ()


def test_snapshot_quality_drops_for_missing_material_cost():
    snapshot = _snapshot(_order(0))

    assert snapshot.quality_score == 50
    assert snapshot.data_issues == ("Missing material cost",)


def test_snapshot_payload_is_a_plain_dict():
    payload = snapshot_payload(_snapshot(_order(100)))

    assert payload["snapshot_id"] == "snap-wo-1"
    assert payload["items"][0]["workers"][0]["worker_id"] == "w-a"

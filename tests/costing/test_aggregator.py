from __future__ import annotations

from datetime import date, datetime

import pytest

from src.furniture_production.furniture_production.catalog.model import OfferPrice
from src.furniture_production.furniture_production.core.enums import WorkStatus
from src.furniture_production.furniture_production.core.exceptions import NotFoundError
from src.furniture_production.furniture_production.projects.model import Product, Project
from src.furniture_production.furniture_production.worklogs.model import WorkLog, work_log_key

from tests.fakes import ORG, make_order, make_task

DAY = date(2024, 5, 1)


def _log(task_id: str, rate: float, *, worker_id: str = "w-a", day: date = DAY, work_order_id: str = "wo-1") -> WorkLog:
    return WorkLog(
        work_log_id=work_log_key(worker_id, task_id, day),
        organization_id=ORG,
        work_date=day,
        worker_id=worker_id,
        worker_name=worker_id.upper(),
        task_id=task_id,
        work_order_id=work_order_id,
        product_id=f"p-{task_id}",
        daily_rate=rate,
        original_daily_rate=rate,
        split_factor=1,
    )


def test_recalculate_rolls_logs_and_materials_into_the_order(container, store, fixed_now):
    store.work_orders.add(
        make_order(
            "wo-1",
            make_task("t1", product_value=500, planned_labor_cost=100, transport_share=20),
            make_task("t2", product_value=300, services_total=10),
        )
    )
    store.materials.costs.update({"p-t1": 100.0, "p-t2": 50.0})
    store.worklogs.upsert(_log("t1", 45))
    store.worklogs.upsert(_log("t1", 60, worker_id="w-b"))
    store.worklogs.upsert(_log("t2", 45))

    result = container.aggregator.recalculate(ORG, "wo-1")
    order = store.work_orders.get(ORG, "wo-1")

    assert store.work_orders.get_task(ORG, "t1").actual_labor_cost == 105.0
    assert store.work_orders.get_task(ORG, "t2").material_cost == 50.0
    assert order.total_value == 800.0
    assert order.material_cost == 150.0
    assert order.actual_labor_cost == 150.0
    assert order.gross_profit == 620.0
    assert order.profit == 470.0
    assert order.profit_margin == 58.75
    assert order.labor_cost_variance == -50.0
    assert order.last_recalculated_at == fixed_now
    assert result.work_order.status == WorkStatus.IN_PROGRESS
    assert result.product_ids == ("p-t1", "p-t2")
    assert not result.completed_now


def test_recalculate_unknown_order(container):
    with pytest.raises(NotFoundError):
        container.aggregator.recalculate(ORG, "missing")


def test_frozen_task_keeps_its_captured_costs(container, store):
    frozen = make_task(
        "t1",
        status=WorkStatus.DONE,
        completed_at=datetime(2024, 4, 30, 16),
        is_frozen=True,
        frozen_labor_cost=90.0,
        material_cost=40.0,
        product_value=200,
    )
    store.work_orders.add(make_order("wo-1", frozen, make_task("t2", product_value=100)))
    store.materials.costs.update({"p-t1": 999.0, "p-t2": 10.0})
    store.worklogs.upsert(_log("t1", 500))

    container.aggregator.recalculate(ORG, "wo-1")
    task = store.work_orders.get_task(ORG, "t1")

    assert task.actual_labor_cost == 90.0
    assert task.material_cost == 40.0
    assert store.materials.calls == ["p-t2"]


def test_done_task_is_frozen_with_current_labor(container, store):
    store.work_orders.add(
        make_order("wo-1", make_task("t1", status=WorkStatus.DONE, completed_at=datetime(2024, 5, 1, 12), product_value=100))
    )
    store.worklogs.upsert(_log("t1", 90))

    container.aggregator.recalculate(ORG, "wo-1")
    store.worklogs.upsert(_log("t1", 40, worker_id="w-b"))
    container.aggregator.recalculate(ORG, "wo-1")

    task = store.work_orders.get_task(ORG, "t1")
    assert task.is_frozen
    assert task.frozen_labor_cost == 90.0
    assert task.actual_labor_cost == 90.0


def test_overridden_material_cost_is_not_replaced(container, store):
    store.work_orders.add(make_order("wo-1", make_task("t1", material_cost=75.0, material_cost_overridden=True)))
    store.materials.costs["p-t1"] = 10.0

    container.aggregator.recalculate(ORG, "wo-1")

    assert store.work_orders.get_task(ORG, "t1").material_cost == 75.0


def test_zero_value_is_recovered_from_first_accepted_offer(container, store):
    store.work_orders.add(make_order("wo-1", make_task("t1")))
    store.offers.prices["p-t1"] = [
        OfferPrice("of-2", "p-t1", 350.0, datetime(2024, 2, 1)),
        OfferPrice("of-1", "p-t1", 300.0, datetime(2024, 1, 1)),
    ]

    container.aggregator.recalculate(ORG, "wo-1")

    assert store.work_orders.get_task(ORG, "t1").product_value == 300.0
    assert store.work_orders.get(ORG, "wo-1").total_value == 300.0


def test_header_value_is_kept_when_tasks_have_none(container, store):
    store.work_orders.add(make_order("wo-1", make_task("t1"), total_value=1000.0))
    store.worklogs.upsert(_log("t1", 100))

    container.aggregator.recalculate(ORG, "wo-1")
    order = store.work_orders.get(ORG, "wo-1")

    assert order.total_value == 1000.0
    assert order.profit == 900.0


def test_completing_the_order_writes_one_snapshot(container, store, fixed_now):
    done_at = datetime(2024, 5, 1, 12)
    store.work_orders.add(
        make_order(
            "wo-1",
            make_task("t1", status=WorkStatus.DONE, completed_at=done_at, product_value=500),
            make_task("t2", status=WorkStatus.DONE, completed_at=datetime(2024, 4, 30, 12), product_value=300),
        )
    )
    store.materials.costs.update({"p-t1": 100.0, "p-t2": 100.0})
    store.worklogs.upsert(_log("t1", 90))

    result = container.aggregator.recalculate(ORG, "wo-1")

    assert result.completed_now
    assert result.snapshot_id == "snap-wo-1"
    order = store.work_orders.get(ORG, "wo-1")
    assert order.status == WorkStatus.DONE
    assert order.completed_at == done_at
    snapshot = store.snapshots.saved["snap-wo-1"]
    assert snapshot.created_at == fixed_now
    assert snapshot.total_selling_price == 800.0
    assert snapshot.net_profit == 510.0

    store.snapshots.saved.clear()
    again = container.aggregator.recalculate(ORG, "wo-1")
    assert again.snapshot_id is None
    assert store.snapshots.saved == {}


def test_snapshot_failure_does_not_undo_recalculation(container, store):
    store.snapshots.fail = True
    store.work_orders.add(make_order("wo-1", make_task("t1", status=WorkStatus.DONE, completed_at=datetime(2024, 5, 1, 12))))

    result = container.aggregator.recalculate(ORG, "wo-1")

    assert result.snapshot_id is None
    assert store.work_orders.get(ORG, "wo-1").status == WorkStatus.DONE


def test_status_sync_failure_does_not_undo_recalculation(container, store, monkeypatch):
    store.work_orders.add(make_order("wo-1", make_task("t1", product_value=100)))

    def boom(*args, **kwargs):
        raise RuntimeError("projects store unavailable")

    monkeypatch.setattr(store.projects, "get_product", boom)
    result = container.aggregator.recalculate(ORG, "wo-1")

    assert result.project_ids == ()
    assert store.work_orders.get(ORG, "wo-1").total_value == 100.0


def test_recalculation_advances_product_and_project_status(container, store):
    store.projects.add_project(
        Project("prj-1", ORG, "Kitchen", status="Approved"),
        Product("p-t1", ORG, "prj-1", "Cabinet", status="Waiting"),
    )
    store.work_orders.add(make_order("wo-1", make_task("t1")))

    result = container.aggregator.recalculate(ORG, "wo-1")

    assert result.project_ids == ("prj-1",)
    assert store.projects.products["p-t1"].status == "Assembly"
    assert store.projects.projects["prj-1"].status == "InProduction"


def test_pause_landing_mid_recalculation_is_kept(container, store, monkeypatch):
    store.work_orders.add(make_order("wo-1", make_task("t1")))
    store.materials.costs["p-t1"] = 40.0
    lookup = store.materials.material_cost_for_product

    def pause_while_pricing(organization_id, product_id):
        container.task_service.toggle_pause(ORG, "t1", True)
        return lookup(organization_id, product_id)

    monkeypatch.setattr(store.materials, "material_cost_for_product", pause_while_pricing)

    container.aggregator.recalculate(ORG, "wo-1")
    task = store.work_orders.get_task(ORG, "t1")

    assert task.is_paused
    assert len(task.pause_periods) == 1
    assert task.material_cost == 40.0

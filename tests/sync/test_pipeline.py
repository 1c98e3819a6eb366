from __future__ import annotations

import threading
from datetime import date, datetime

import pytest

from src.furniture_production.furniture_production.container import build_services
from src.furniture_production.furniture_production.core.enums import AttendanceStatus, WorkStatus
from src.furniture_production.furniture_production.core.exceptions import NotFoundError
from src.furniture_production.furniture_production.core.settings import EngineSettings
from src.furniture_production.furniture_production.projects.model import Product, Project
from src.furniture_production.furniture_production.work_orders.decomposition import Process, SubTask

from tests.fakes import ORG, InMemoryProjects, make_order, make_task

DAY = date(2024, 5, 1)


def _rates(store):
    return {l.task_id: l.daily_rate for l in store.worklogs.all()}


def test_attendance_pause_and_absence_flow_through_to_costs(container, store):
    store.work_orders.add(make_order("wo-1", make_task("t1"), make_task("t2"), make_task("t3")))

    container.sync.record_attendance(ORG, "w-a", DAY, AttendanceStatus.PRESENT)
    assert _rates(store) == {"t1": 30.0, "t2": 30.0, "t3": 30.0}
    assert store.work_orders.get(ORG, "wo-1").actual_labor_cost == 90.0

    container.sync.toggle_pause(ORG, "t3", True)
    assert _rates(store) == {"t1": 45.0, "t2": 45.0}
    assert store.work_orders.get_task(ORG, "t3").actual_labor_cost == 0.0
    assert store.work_orders.get_task(ORG, "t1").actual_labor_cost == 45.0
    assert store.work_orders.get(ORG, "wo-1").actual_labor_cost == 90.0

    container.sync.record_attendance(ORG, "w-a", DAY, AttendanceStatus.ABSENT)
    assert _rates(store) == {}
    assert store.work_orders.get(ORG, "wo-1").actual_labor_cost == 0.0


def test_skip_recalculation_leaves_costs_for_a_later_batch(container, store):
    store.work_orders.add(make_order("wo-1", make_task("t1")))

    attendance_id = container.sync.record_attendance(ORG, "w-a", DAY, "Present", skip_recalculation=True)

    assert attendance_id == "w-a_2024-05-01"
    assert _rates(store) == {"t1": 90.0}
    assert store.work_orders.get(ORG, "wo-1").actual_labor_cost == 0.0


def test_completing_the_last_process_freezes_costs_and_snapshots(container, store):
    cutting = Process("Cutting", WorkStatus.IN_PROGRESS, worker_id="w-a", started_at=datetime(2024, 4, 29, 8))
    store.work_orders.add(make_order("wo-1", make_task("t1", processes=[cutting], product_value=400)))
    container.sync.record_attendance(ORG, "w-a", DAY, AttendanceStatus.PRESENT)

    task = container.sync.update_task_processes(ORG, "t1", [Process("Cutting", WorkStatus.DONE, worker_id="w-a")])

    assert task.status == WorkStatus.DONE
    stored = store.work_orders.get_task(ORG, "t1")
    assert stored.is_frozen
    assert stored.frozen_labor_cost == 90.0
    assert store.work_orders.get(ORG, "wo-1").status == WorkStatus.DONE
    assert "snap-wo-1" in store.snapshots.saved


def test_moving_a_subtask_rederives_todays_logs(container, store):
    subs = [
        SubTask("st-1", 1, "Cutting", WorkStatus.IN_PROGRESS, worker_id="w-a", started_at=datetime(2024, 4, 29, 8)),
    ]
    store.work_orders.add(make_order("wo-1", make_task("t1", workers=(), subtasks=subs), make_task("t2")))
    container.sync.record_attendance(ORG, "w-a", DAY, AttendanceStatus.PRESENT)
    assert _rates(store) == {"t1": 45.0, "t2": 45.0}

    container.sync.create_or_update_subtasks(
        ORG, "t1", [SubTask("st-1", 1, "Cutting", WorkStatus.IN_PROGRESS, worker_id="w-b")]
    )

    assert _rates(store) == {"t2": 90.0}


def test_recalculate_many_isolates_failures_and_reports_progress(container, store):
    store.work_orders.add(make_order("wo-1", make_task("t1")))
    store.work_orders.add(make_order("wo-2", make_task("t2", "wo-2")))
    events = []

    report = container.sync.recalculate_many(ORG, ["wo-2", "missing", "wo-1", "wo-1"], progress=events.append)

    assert report.total == 3
    assert report.processed == 2
    assert report.failed == 1
    assert report.errors[0].startswith("missing:")
    assert report.affected_work_orders == {"wo-1", "wo-2"}
    assert [e.done for e in events] == [1, 2, 3]
    assert events[-1].failed == 1


def test_failing_progress_callback_does_not_stop_the_job(container, store):
    store.work_orders.add(make_order("wo-1", make_task("t1")))

    def broken(event):
        raise RuntimeError("ui went away")

    report = container.sync.recalculate_many(ORG, ["wo-1"], progress=broken)

    assert report.processed == 1


def test_recalculate_all_active_skips_done_orders(container, store):
    store.work_orders.add(make_order("wo-1", make_task("t1")))
    store.work_orders.add(make_order("wo-2", make_task("t2", "wo-2"), status=WorkStatus.WAITING))
    store.work_orders.add(make_order("wo-3", make_task("t3", "wo-3"), status=WorkStatus.DONE))

    report = container.sync.recalculate_all_active(ORG)

    assert report.affected_work_orders == {"wo-1", "wo-2"}
    assert store.work_orders.get(ORG, "wo-3").last_recalculated_at is None


def test_parallel_recalculation_processes_every_order(store, fixed_now):
    container = build_services(
        workers_repo=store.workers,
        attendance_repo=store.attendance,
        worklogs_repo=store.worklogs,
        work_orders_repo=store.work_orders,
        projects_repo=store.projects,
        materials=store.materials,
        offers=store.offers,
        snapshots_repo=store.snapshots,
        settings=EngineSettings(recalc_parallelism=4),
        clock=lambda: fixed_now,
    )
    ids = [f"wo-{i}" for i in range(10)]
    for wo_id in ids:
        store.work_orders.add(make_order(wo_id, make_task(f"t-{wo_id}", wo_id, product_value=100)))

    report = container.sync.recalculate_many(ORG, ids)

    assert report.processed == 10
    assert report.failed == 0
    assert all(store.work_orders.get(ORG, wo_id).total_value == 100.0 for wo_id in ids)


def test_profit_warnings_for_unknown_order(container):
    with pytest.raises(NotFoundError):
        container.sync.validate_work_order_profit_warnings(ORG, "missing")


def test_profit_warnings_for_stored_order(container, store):
    store.work_orders.add(make_order("wo-1", make_task("t1", product_value=100, material_cost=20)))

    assert container.sync.validate_work_order_profit_warnings(ORG, "wo-1") == []


class InterleavedProjects(InMemoryProjects):
    """Both readers see the old status; the Cutting write lands after Ready."""

    def __init__(self):
        super().__init__()
        self.readers = threading.Barrier(2, timeout=5)
        self.ready_written = threading.Event()

    def get_product(self, organization_id, product_id):
        product = super().get_product(organization_id, product_id)
        self.readers.wait()
        return product

    def advance_product_status(self, organization_id, product_id, status, *, unless_in):
        if status == "Cutting":
            self.ready_written.wait(timeout=5)
        advanced = super().advance_product_status(organization_id, product_id, status, unless_in=unless_in)
        if status == "Ready":
            self.ready_written.set()
        return advanced


def test_parallel_orders_never_move_a_shared_product_backwards(store, fixed_now):
    projects = InterleavedProjects()
    projects.add_project(
        Project("prj-1", ORG, "Kitchen", status="Approved"),
        Product("p-1", ORG, "prj-1", "Cabinet", status="Waiting"),
    )
    store.work_orders.add(
        make_order(
            "wo-1",
            make_task("t1", product_id="p-1", status=WorkStatus.DONE, processes=[Process("Assembly", WorkStatus.DONE)]),
            status=WorkStatus.DONE,
        )
    )
    store.work_orders.add(
        make_order("wo-2", make_task("t2", "wo-2", product_id="p-1", processes=[Process("Cutting", WorkStatus.IN_PROGRESS)]))
    )
    container = build_services(
        workers_repo=store.workers,
        attendance_repo=store.attendance,
        worklogs_repo=store.worklogs,
        work_orders_repo=store.work_orders,
        projects_repo=projects,
        materials=store.materials,
        offers=store.offers,
        snapshots_repo=store.snapshots,
        settings=EngineSettings(recalc_parallelism=2),
        clock=lambda: fixed_now,
    )

    report = container.sync.recalculate_many(ORG, ["wo-1", "wo-2"])

    assert report.failed == 0
    assert projects.products["p-1"].status == "Ready"
    assert projects.product_updates == [("p-1", "Ready")]

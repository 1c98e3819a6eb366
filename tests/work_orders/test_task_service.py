from __future__ import annotations

from datetime import datetime
from itertools import count

import pytest

from src.furniture_production.furniture_production.core.enums import WorkStatus
from src.furniture_production.furniture_production.core.exceptions import NotFoundError, ValidationError
from src.furniture_production.furniture_production.work_orders.decomposition import Process, SubTask
from src.furniture_production.furniture_production.work_orders.service import TaskService

from tests.fakes import ORG, InMemoryWorkOrders, make_order, make_task

NOW = datetime(2024, 5, 1, 17, 0)


def _service(*tasks):
    repo = InMemoryWorkOrders()
    repo.add(make_order("wo-1", *tasks))
    ids = count(1)
    return TaskService(repo, clock=lambda: NOW, id_factory=lambda: f"st-new-{next(ids)}"), repo


def test_toggle_pause_opens_and_closes_a_period():
    service, repo = _service(make_task("t1"))

    paused = service.toggle_pause(ORG, "t1", True)
    assert paused.is_paused
    assert len(paused.pause_periods) == 1
    assert paused.pause_periods[0].started_at == NOW
    assert paused.pause_periods[0].is_open

    resumed = service.toggle_pause(ORG, "t1", False)
    assert not resumed.is_paused
    assert resumed.pause_periods[0].ended_at == NOW
    assert repo.get_task(ORG, "t1") == resumed


def test_toggle_pause_is_idempotent():
    service, _ = _service(make_task("t1"))

    first = service.toggle_pause(ORG, "t1", True)
    second = service.toggle_pause(ORG, "t1", True)

    assert second == first
    assert len(second.pause_periods) == 1
    assert service.toggle_pause(ORG, "t1", False) != first
    assert len(service.toggle_pause(ORG, "t1", False).pause_periods) == 1


def test_toggle_pause_on_a_subtask_leaves_the_task_running():
    sub = SubTask("st-1", 1, "Cutting", WorkStatus.IN_PROGRESS, worker_id="w-a")
    service, _ = _service(make_task("t1", subtasks=[sub]))

    task = service.toggle_pause(ORG, "t1", True, subtask_id="st-1")

    assert not task.is_paused
    assert task.subtasks[0].is_paused
    assert task.subtasks[0].pause_periods[0].started_at == NOW


def test_toggle_pause_unknown_task_or_subtask():
    service, _ = _service(make_task("t1"))

    with pytest.raises(NotFoundError):
        service.toggle_pause(ORG, "missing", True)
    with pytest.raises(NotFoundError):
        service.toggle_pause(ORG, "t1", True, subtask_id="missing")


def test_update_task_processes_stamps_times_and_derives_status():
    earlier = datetime(2024, 5, 1, 8, 0)
    service, _ = _service(make_task("t1", status=WorkStatus.WAITING, started_at=None))

    task = service.update_task_processes(
        ORG,
        "t1",
        [
            Process("Cutting", WorkStatus.DONE, worker_id="w-a", started_at=earlier),
            Process("Assembly", WorkStatus.IN_PROGRESS, worker_id="w-a"),
            Process("Finishing"),
        ],
    )

    cutting, assembly, finishing = task.processes
    assert (cutting.completed_at, cutting.duration_minutes) == (NOW, 540)
    assert (assembly.started_at, assembly.completed_at) == (NOW, None)
    assert finishing.started_at is None
    assert task.status == WorkStatus.IN_PROGRESS
    assert task.started_at == earlier


def test_update_task_processes_keeps_previous_timestamps():
    started = datetime(2024, 4, 29, 8, 0)
    service, _ = _service(
        make_task("t1", processes=[Process("Cutting", WorkStatus.IN_PROGRESS, worker_id="w-a", started_at=started)])
    )

    task = service.update_task_processes(ORG, "t1", [Process("Cutting", WorkStatus.DONE, worker_id="w-a")])

    assert task.processes[0].started_at == started
    assert task.status == WorkStatus.DONE
    assert task.completed_at == NOW


def test_update_task_processes_requires_names():
    service, _ = _service(make_task("t1"))

    with pytest.raises(ValidationError):
        service.update_task_processes(ORG, "t1", [Process(" ")])


def test_create_or_update_subtasks_validates_quantities():
    service, _ = _service(make_task("t1", quantity=4))

    with pytest.raises(ValidationError):
        service.create_or_update_subtasks(ORG, "t1", [SubTask("", 0)])
    with pytest.raises(ValidationError):
        service.create_or_update_subtasks(ORG, "t1", [SubTask("", 3), SubTask("", 2)])


def test_create_or_update_subtasks_assigns_ids_and_merges_by_id():
    service, _ = _service(make_task("t1", quantity=4))

    created = service.create_or_update_subtasks(ORG, "t1", [SubTask("", 2, "Cutting", WorkStatus.IN_PROGRESS)])
    assert created.subtasks[0].subtask_id == "st-new-1"
    assert created.subtasks[0].started_at == NOW

    updated = service.create_or_update_subtasks(ORG, "t1", [SubTask("st-new-1", 3, "Drilling", WorkStatus.IN_PROGRESS)])
    assert [(s.subtask_id, s.quantity, s.current_stage) for s in updated.subtasks] == [("st-new-1", 3, "Drilling")]
    assert updated.subtasks[0].started_at == NOW


def test_move_subtask_to_done_completes_the_task():
    sub = SubTask("st-1", 2, "Assembly", WorkStatus.IN_PROGRESS, started_at=datetime(2024, 4, 29, 8))
    service, _ = _service(make_task("t1", quantity=2, subtasks=[sub]))

    task = service.move_subtask(ORG, "t1", "st-1", "DONE")

    assert task.subtasks[0].status == WorkStatus.DONE
    assert task.subtasks[0].completed_at == NOW
    assert task.status == WorkStatus.DONE
    assert task.completed_at == NOW


def test_move_subtask_auto_merges_when_all_share_a_stage():
    subs = [
        SubTask("st-1", 1, "Cutting", WorkStatus.IN_PROGRESS, worker_id="w-a", started_at=datetime(2024, 4, 30, 8)),
        SubTask("st-2", 2, "Drilling", WorkStatus.IN_PROGRESS, helpers=("w-b",), started_at=datetime(2024, 4, 29, 8)),
    ]
    service, _ = _service(make_task("t1", quantity=3, subtasks=subs))

    task = service.move_subtask(ORG, "t1", "st-2", "Cutting")

    [merged] = task.subtasks
    assert merged.subtask_id == "st-1"
    assert merged.quantity == 3
    assert merged.worker_id == "w-a"
    assert merged.helpers == ("w-b",)
    assert merged.started_at == datetime(2024, 4, 29, 8)


def test_reopening_a_done_subtask_unfreezes_the_task():
    sub = SubTask("st-1", 1, "Assembly", WorkStatus.DONE, completed_at=datetime(2024, 4, 30, 16))
    frozen = make_task(
        "t1",
        status=WorkStatus.DONE,
        completed_at=datetime(2024, 4, 30, 16),
        subtasks=[sub],
        is_frozen=True,
        frozen_labor_cost=90.0,
    )
    service, _ = _service(frozen)

    task = service.move_subtask(ORG, "t1", "st-1", "Assembly")

    assert task.status == WorkStatus.IN_PROGRESS
    assert task.completed_at is None
    assert not task.is_frozen
    assert task.frozen_labor_cost is None


def test_apply_derived_status_leaves_plain_tasks_alone():
    service, _ = _service()
    task = make_task("t1", status=WorkStatus.WAITING)

    assert service.apply_derived_status(task) is task

from datetime import date, datetime

from src.furniture_production.furniture_production.core.enums import WorkStatus
from src.furniture_production.furniture_production.work_orders.decomposition import (
    NoDecomposition,
    PausePeriod,
    Process,
    ProcessDecomposition,
    SubTask,
    SubTaskDecomposition,
    paused_on,
    rollup_status,
)

from tests.fakes import make_task


def test_rollup_status():
    assert rollup_status([]) is None
    assert rollup_status([WorkStatus.DONE, WorkStatus.DONE]) == WorkStatus.DONE
    assert rollup_status([WorkStatus.DONE, WorkStatus.IN_PROGRESS]) == WorkStatus.IN_PROGRESS
    assert rollup_status([WorkStatus.DONE, WorkStatus.WAITING]) == WorkStatus.WAITING
    assert rollup_status([WorkStatus.WAITING]) == WorkStatus.WAITING


def test_pause_period_includes_start_day_and_excludes_resume_day():
    period = PausePeriod(started_at=datetime(2024, 5, 1, 15, 0), ended_at=datetime(2024, 5, 3, 9, 0))

    assert not period.covers(date(2024, 4, 30))
    assert period.covers(date(2024, 5, 1))
    assert period.covers(date(2024, 5, 2))
    assert not period.covers(date(2024, 5, 3))
    assert PausePeriod(started_at=datetime(2024, 5, 1, 15, 0)).covers(date(2030, 1, 1))


def test_paused_on_prefers_periods_over_legacy_flag():
    closed = PausePeriod(started_at=datetime(2024, 4, 1), ended_at=datetime(2024, 4, 2))

    assert paused_on(True, (), date(2024, 5, 1))
    assert not paused_on(True, (closed,), date(2024, 5, 1))
    assert not paused_on(False, (), date(2024, 5, 1))


def test_process_decomposition_stages_and_dates():
    processes = (
        Process("Cutting", WorkStatus.DONE, started_at=datetime(2024, 4, 29, 8), completed_at=datetime(2024, 4, 30, 12)),
        Process("Drilling", WorkStatus.IN_PROGRESS, started_at=datetime(2024, 4, 30, 13)),
        Process("Assembly"),
    )
    d = ProcessDecomposition(processes)

    assert d.derived_status() == WorkStatus.IN_PROGRESS
    assert d.started_at() == datetime(2024, 4, 29, 8)
    assert d.completed_at() is None
    assert d.active_stage() == "Drilling"
    assert d.last_stage() == "Assembly"


def test_process_assignment_follows_the_process_dates():
    cutting = Process(
        "Cutting",
        WorkStatus.DONE,
        worker_id="w-a",
        started_at=datetime(2024, 4, 29, 8),
        completed_at=datetime(2024, 4, 30, 12),
    )
    d = ProcessDecomposition((cutting,))

    assert d.assignment_for("w-a", date(2024, 4, 30)).process_name == "Cutting"
    assert d.assignment_for("w-a", date(2024, 5, 1)) is None
    assert d.assignment_for("w-b", date(2024, 4, 30)) is None


def test_subtask_decomposition_last_stage_is_latest_completed():
    subtasks = (
        SubTask("st-1", 1, "Assembly", WorkStatus.DONE, completed_at=datetime(2024, 5, 2)),
        SubTask("st-2", 1, "Drilling", WorkStatus.DONE, completed_at=datetime(2024, 5, 1)),
    )
    d = SubTaskDecomposition(subtasks)

    assert d.derived_status() == WorkStatus.DONE
    assert d.completed_at() == datetime(2024, 5, 2)
    assert d.last_stage() == "Assembly"


def test_paused_subtask_has_no_assignment():
    sub = SubTask(
        "st-1",
        1,
        "Cutting",
        WorkStatus.IN_PROGRESS,
        worker_id="w-a",
        is_paused=True,
        started_at=datetime(2024, 4, 29, 8),
    )

    assert SubTaskDecomposition((sub,)).assignment_for("w-a", date(2024, 5, 1)) is None


def test_task_picks_its_decomposition():
    assert isinstance(make_task("t1").decomposition, NoDecomposition)
    assert isinstance(make_task("t1", processes=[Process("Cutting")]).decomposition, ProcessDecomposition)
    with_both = make_task("t1", processes=[Process("Cutting")], subtasks=[SubTask("st-1", 1)])
    assert isinstance(with_both.decomposition, SubTaskDecomposition)

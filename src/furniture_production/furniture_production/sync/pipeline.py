from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Sequence

from ..attendance.model import AttendanceWarning
from ..attendance.repository import AttendanceRepository
from ..attendance.service import AttendanceLedger
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_RECALC_PARALLELISM
from ..core.enums import AttendanceStatus, WorkStatus
from ..core.exceptions import NotFoundError
from ..costing.model import ProfitWarning, RecalculationResult
from ..costing.service import CostAggregator
from ..costing.warnings import validate_work_order_profit_warnings
from ..worklogs.eligibility import candidate_workers
from ..worklogs.service import WorkLogDeriver
from ..work_orders.decomposition import Process, SubTask
from ..work_orders.model import WorkOrderTask
from ..work_orders.repository import WorkOrderRepository
from ..work_orders.service import TaskService
from ..workers.repository import WorkerRepository
from .model import JobProgress, JobReport, ProgressCallback

logger = logging.getLogger(__name__)


class WorkOrderLocks:
    """One lock per work order so concurrent recalculations of it run one at a time."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def for_work_order(self, work_order_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(work_order_id)
            if lock is None:
                lock = self._locks[work_order_id] = threading.Lock()
            return lock


def notify(progress: Optional[ProgressCallback], event: JobProgress) -> None:
    if progress is None:
        return
    try:
        progress(event)
    except Exception:
        logger.exception("Progress callback failed for job %s", event.job)


class ProductionSync:
    """Drives attendance and task edits through derivation, costing and status sync.

    Each stage returns the ids the next one needs: attendance -> work orders ->
    products -> projects.
    """

    def __init__(
        self,
        ledger: AttendanceLedger,
        deriver: WorkLogDeriver,
        tasks: TaskService,
        aggregator: CostAggregator,
        attendance: AttendanceRepository,
        workers: WorkerRepository,
        work_orders: WorkOrderRepository,
        *,
        parallelism: int = DEFAULT_RECALC_PARALLELISM,
        locks: Optional[WorkOrderLocks] = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._ledger = ledger
        self._deriver = deriver
        self._tasks = tasks
        self._aggregator = aggregator
        self._attendance = attendance
        self._workers = workers
        self._work_orders = work_orders
        self._parallelism = max(int(parallelism), 1)
        self._locks = locks or WorkOrderLocks()
        self._clock = clock or now_local

    # Attendance

    def record_attendance(
        self,
        organization_id: str,
        worker_id: str,
        work_date: date,
        status: AttendanceStatus | str,
        notes: Optional[str] = None,
        *,
        skip_recalculation: bool = False,
    ) -> str:
        result = self._ledger.record_attendance(organization_id, worker_id, work_date, status, notes)
        if not skip_recalculation:
            self.recalculate_many(organization_id, result.derivation.affected_work_orders, job="attendance")
        return result.attendance_id

    def missing_attendance_warnings(self, organization_id: str, work_date: date) -> list[AttendanceWarning]:
        return self._ledger.missing_attendance_warnings(organization_id, work_date)

    # Task edits

    def toggle_pause(
        self,
        organization_id: str,
        task_id: str,
        paused: bool,
        *,
        subtask_id: Optional[str] = None,
    ) -> WorkOrderTask:
        before = self._tasks.get_task(organization_id, task_id)
        after = self._tasks.toggle_pause(organization_id, task_id, paused, subtask_id=subtask_id)
        self._after_task_change(organization_id, before, after)
        return after

    def update_task_processes(self, organization_id: str, task_id: str, processes: Sequence[Process]) -> WorkOrderTask:
        before = self._tasks.get_task(organization_id, task_id)
        after = self._tasks.update_task_processes(organization_id, task_id, processes)
        self._after_task_change(organization_id, before, after)
        return after

    def create_or_update_subtasks(self, organization_id: str, task_id: str, subtasks: Sequence[SubTask]) -> WorkOrderTask:
        before = self._tasks.get_task(organization_id, task_id)
        after = self._tasks.create_or_update_subtasks(organization_id, task_id, subtasks)
        self._after_task_change(organization_id, before, after)
        return after

    def move_subtask(self, organization_id: str, task_id: str, subtask_id: str, target_stage: str) -> WorkOrderTask:
        before = self._tasks.get_task(organization_id, task_id)
        after = self._tasks.move_subtask(organization_id, task_id, subtask_id, target_stage)
        self._after_task_change(organization_id, before, after)
        return after

    def _after_task_change(self, organization_id: str, before: WorkOrderTask, after: WorkOrderTask) -> None:
        # Today's splits depend on which tasks are eligible; re-derive for everyone involved.
        today = self._clock().date()
        affected = {after.work_order_id}
        for worker_id in sorted({*candidate_workers(before), *candidate_workers(after)}):
            record = self._attendance.get_for_worker_and_date(organization_id, worker_id, today)
            if record is None:
                continue
            worker = self._workers.get_by_id(organization_id, worker_id)
            if worker is None:
                logger.warning("Worker %s on task %s no longer exists", worker_id, after.task_id)
                continue
            result = self._deriver.derive_or_cleanup(organization_id, worker, today, record.status, worker.daily_rate)
            affected.update(result.affected_work_orders)
        self.recalculate_many(organization_id, affected, job="task-change")

    # Costing

    def recalculate_work_order(self, organization_id: str, work_order_id: str) -> RecalculationResult:
        with self._locks.for_work_order(work_order_id):
            return self._aggregator.recalculate(organization_id, work_order_id)

    def recalculate_many(
        self,
        organization_id: str,
        work_order_ids: Iterable[str],
        *,
        job: str = "recalculate",
        progress: Optional[ProgressCallback] = None,
    ) -> JobReport:
        ids = sorted(set(work_order_ids))
        report = JobReport(job=job, total=len(ids))
        if not ids:
            return report

        def run(work_order_id: str) -> RecalculationResult:
            return self.recalculate_work_order(organization_id, work_order_id)

        if self._parallelism == 1 or len(ids) == 1:
            for work_order_id in ids:
                self._collect(report, work_order_id, lambda: run(work_order_id), progress)
            return report

        with ThreadPoolExecutor(max_workers=min(self._parallelism, len(ids))) as pool:
            futures = {pool.submit(run, work_order_id): work_order_id for work_order_id in ids}
            for future in as_completed(futures):
                self._collect(report, futures[future], future.result, progress)
        return report

    def _collect(self, report: JobReport, work_order_id: str, outcome, progress: Optional[ProgressCallback]) -> None:
        try:
            outcome()
            report.processed += 1
            report.affected_work_orders.add(work_order_id)
        except Exception as exc:
            logger.exception("Recalculation failed for work order %s", work_order_id)
            report.record_failure(work_order_id, exc)
        notify(
            progress,
            JobProgress(
                job=report.job,
                done=report.processed + report.failed,
                total=report.total,
                item=work_order_id,
                failed=report.failed,
            ),
        )

    def recalculate_all_active(self, organization_id: str, *, progress: Optional[ProgressCallback] = None) -> JobReport:
        orders = self._work_orders.list_by_status(organization_id, [WorkStatus.WAITING, WorkStatus.IN_PROGRESS])
        logger.info("Recalculating %d active work orders for %s", len(orders), organization_id)
        return self.recalculate_many(
            organization_id,
            [o.work_order_id for o in orders],
            job="recalculate-all-active",
            progress=progress,
        )

    def validate_work_order_profit_warnings(self, organization_id: str, work_order_id: str) -> list[ProfitWarning]:
        order = self._work_orders.get(organization_id, work_order_id)
        if order is None:
            raise NotFoundError(f"Work order {work_order_id} not found")
        return validate_work_order_profit_warnings(order)

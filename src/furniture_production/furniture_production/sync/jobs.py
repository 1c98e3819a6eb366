from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

from ..attendance.model import AttendanceRecord, attendance_key
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_days, is_weekend, now_local
from ..core.constants import DEFAULT_SCHEDULE_DAYS, WRITE_BATCH_LIMIT
from ..core.enums import AttendanceStatus, WorkStatus
from ..core.exceptions import ValidationError
from ..projects.repository import ProjectRepository
from ..status.service import StatusPropagator
from ..worklogs.service import WorkLogDeriver
from ..work_orders.repository import WorkOrderRepository
from ..work_orders.service import TaskService
from ..workers.model import Worker
from ..workers.repository import WorkerRepository
from .model import JobProgress, JobReport, ProgressCallback, StartupSyncReport
from .pipeline import ProductionSync, notify

logger = logging.getLogger(__name__)


class ReconciliationJobs:
    """Batch repairs that converge stored data by recomputing it.

    All jobs are safe to re-run, continue past item failures and report progress
    through an optional callback.
    """

    def __init__(
        self,
        sync: ProductionSync,
        attendance: AttendanceRepository,
        workers: WorkerRepository,
        work_orders: WorkOrderRepository,
        projects: ProjectRepository,
        deriver: WorkLogDeriver,
        tasks: TaskService,
        propagator: StatusPropagator,
        *,
        write_batch_limit: int = WRITE_BATCH_LIMIT,
        schedule_days: int = DEFAULT_SCHEDULE_DAYS,
        clock: Callable[[], datetime] | None = None,
    ):
        self._sync = sync
        self._attendance = attendance
        self._workers = workers
        self._work_orders = work_orders
        self._projects = projects
        self._deriver = deriver
        self._tasks = tasks
        self._propagator = propagator
        self._batch_limit = max(int(write_batch_limit), 1)
        self._schedule_days = int(schedule_days)
        self._clock = clock or now_local

    def backfill_from_attendance(
        self,
        organization_id: str,
        date_from: date,
        date_to: date,
        *,
        progress: Optional[ProgressCallback] = None,
    ) -> JobReport:
        if date_to < date_from:
            raise ValidationError("date_to must not be before date_from")

        records = self._attendance.list_range(organization_id, start_date=date_from, end_date=date_to)
        report = JobReport(job="backfill", total=len(records))
        workers: dict[str, Optional[Worker]] = {}

        for record in records:
            item = f"{record.worker_id}@{record.work_date.isoformat()}"
            try:
                if record.worker_id not in workers:
                    workers[record.worker_id] = self._workers.get_by_id(organization_id, record.worker_id)
                worker = workers[record.worker_id]
                if worker is None:
                    raise ValidationError(f"Worker {record.worker_id} not found")
                result = self._deriver.derive_or_cleanup(
                    organization_id, worker, record.work_date, record.status, worker.daily_rate
                )
                report.processed += 1
                report.created += result.created
                report.updated += result.updated
                report.deleted += result.deleted
                report.affected_work_orders.update(result.affected_work_orders)
            except Exception as exc:
                logger.exception("Backfill failed for %s", item)
                report.record_failure(item, exc)
            notify(progress, JobProgress("backfill", report.processed + report.failed, report.total, item, report.failed))

        # Recalculate once per affected order instead of once per record.
        recalculation = self._sync.recalculate_many(organization_id, report.affected_work_orders, job="backfill-recalculate")
        report.failed += recalculation.failed
        report.errors.extend(recalculation.errors)
        logger.info(
            "Backfill %s..%s: %d records, %d created, %d updated, %d deleted, %d failed",
            date_from,
            date_to,
            report.processed,
            report.created,
            report.updated,
            report.deleted,
            report.failed,
        )
        return report

    def auto_populate_weekends(
        self,
        organization_id: str,
        workers: Optional[Sequence[Worker]],
        year: int,
        month: int,
        *,
        progress: Optional[ProgressCallback] = None,
    ) -> JobReport:
        if not 1 <= int(month) <= 12:
            raise ValidationError("month must be between 1 and 12")
        workers = list(workers) if workers is not None else list(self._workers.list_active(organization_id))
        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        weekend_days = [d for d in iter_days(first, last) if is_weekend(d)]

        existing = {
            (r.worker_id, r.work_date)
            for r in self._attendance.list_range(
                organization_id,
                start_date=first,
                end_date=last,
                worker_ids=[w.worker_id for w in workers],
            )
        }
        now = self._clock()
        pending = [
            AttendanceRecord(
                attendance_id=attendance_key(w.worker_id, d),
                organization_id=organization_id,
                worker_id=w.worker_id,
                worker_name=w.name,
                work_date=d,
                status=AttendanceStatus.WEEKEND,
                created_at=now,
                modified_at=now,
            )
            for d in weekend_days
            for w in workers
            if (w.worker_id, d) not in existing
        ]

        report = JobReport(job="weekends", total=len(pending))
        for start in range(0, len(pending), self._batch_limit):
            batch = pending[start : start + self._batch_limit]
            try:
                report.created += self._attendance.insert_many(batch)
                report.processed += len(batch)
            except Exception as exc:
                logger.exception("Weekend batch starting at %d failed", start)
                report.record_failure(f"batch@{start}", exc)
            notify(progress, JobProgress("weekends", min(start + len(batch), len(pending)), len(pending)))

        logger.info("Weekend attendance %04d-%02d: %d created, %d skipped", year, month, report.created, len(existing))
        return report

    def run_startup_sync(self, organization_id: str, *, progress: Optional[ProgressCallback] = None) -> StartupSyncReport:
        now = self._clock()
        scheduled = 0
        for order in self._work_orders.list_by_status(organization_id, [WorkStatus.IN_PROGRESS]):
            if order.is_scheduled:
                continue
            try:
                started = order.effective_started_at()
                planned_start = started.date() if started else now.date()
                self._work_orders.save_schedule(
                    organization_id,
                    order.work_order_id,
                    planned_start=planned_start,
                    planned_end=planned_start + timedelta(days=self._schedule_days),
                    scheduled_at=now,
                )
                scheduled += 1
                logger.info("Auto-scheduled orphaned work order %s from %s", order.work_order_id, planned_start)
            except Exception:
                logger.exception("Auto-scheduling failed for work order %s", order.work_order_id)

        recalculation = self._sync.recalculate_all_active(organization_id, progress=progress)

        synced = 0
        changed: dict[str, str] = {}
        for project in self._projects.list_projects(organization_id):
            try:
                status = self._propagator.sync_project(organization_id, project.project_id)
                synced += 1
                if status:
                    changed[project.project_id] = status
            except Exception:
                logger.exception("Project sync failed for %s", project.project_id)

        logger.info(
            "Startup sync %s: %d scheduled, %d recalculated, %d projects changed",
            organization_id,
            scheduled,
            recalculation.processed,
            len(changed),
        )
        return StartupSyncReport(
            scheduled=scheduled,
            recalculation=recalculation,
            projects_synced=synced,
            projects_changed=changed,
        )

    def repair_all_statuses(
        self,
        organization_id: Optional[str] = None,
        *,
        progress: Optional[ProgressCallback] = None,
    ) -> JobReport:
        orders = self._work_orders.list_all(organization_id)
        report = JobReport(job="repair", total=len(orders))
        by_org: dict[str, list[str]] = defaultdict(list)

        for order in orders:
            try:
                for task in order.tasks:
                    fixed = self._tasks.apply_derived_status(task)
                    if _status_fields(fixed) != _status_fields(task):
                        self._work_orders.save_task(fixed)
                        report.updated += 1
                        logger.info(
                            "Repaired task %s: %s -> %s",
                            task.task_id,
                            task.status.value,
                            fixed.status.value,
                        )
                by_org[order.organization_id].append(order.work_order_id)
                report.processed += 1
            except Exception as exc:
                logger.exception("Repair failed for work order %s", order.work_order_id)
                report.record_failure(order.work_order_id, exc)
            notify(progress, JobProgress("repair", report.processed + report.failed, report.total, order.work_order_id, report.failed))

        for org_id, ids in by_org.items():
            recalculation = self._sync.recalculate_many(org_id, ids, job="repair-recalculate")
            report.failed += recalculation.failed
            report.errors.extend(recalculation.errors)
            report.affected_work_orders.update(recalculation.affected_work_orders)

        logger.info("Status repair: %d orders checked, %d tasks fixed", report.processed, report.updated)
        return report


def _status_fields(task) -> tuple:
    return (task.status, task.started_at, task.completed_at, task.is_frozen)

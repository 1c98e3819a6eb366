from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..common.money import split_amount
from ..core.constants import SPLIT_TOLERANCE
from ..core.enums import AttendanceStatus
from ..work_orders.repository import WorkOrderRepository
from ..workers.model import Worker
from .eligibility import find_eligible_assignments
from .model import DerivationResult, WorkLog, work_log_key
from .repository import WorkLogRepository

logger = logging.getLogger(__name__)


class WorkLogDeriver:
    """Turns one attendance fact into per-task WorkLogs.

    A worker's daily rate is split evenly over every task they were eligible for
    that day. Every run converges the stored logs to the current split, so
    re-running it is always safe.
    """

    def __init__(
        self,
        worklogs: WorkLogRepository,
        work_orders: WorkOrderRepository,
        *,
        split_tolerance: float = SPLIT_TOLERANCE,
        clock: Callable[[], datetime] | None = None,
    ):
        self._worklogs = worklogs
        self._work_orders = work_orders
        self._tolerance = float(split_tolerance)
        self._clock = clock or now_local

    def derive_or_cleanup(
        self,
        organization_id: str,
        worker: Worker,
        work_date: date,
        status: AttendanceStatus,
        daily_rate: Optional[float] = None,
    ) -> DerivationResult:
        rate = float(worker.daily_rate if daily_rate is None else daily_rate)
        if AttendanceStatus(status).is_working:
            return self._derive(organization_id, worker, work_date, rate)
        return self._cleanup(organization_id, worker, work_date)

    def _derive(self, organization_id: str, worker: Worker, work_date: date, rate: float) -> DerivationResult:
        orders = self._work_orders.list_covering_date(organization_id, work_date)
        eligible = find_eligible_assignments(orders, worker.worker_id, work_date)
        eligible_ids = [e.task.task_id for e in eligible]
        affected = {e.work_order.work_order_id for e in eligible}

        existing = {
            log.task_id: log
            for log in self._worklogs.list_for_worker_and_date(organization_id, worker.worker_id, work_date)
        }

        stale = [log for task_id, log in existing.items() if task_id not in eligible_ids]
        deleted = self._worklogs.delete_many(organization_id, [log.work_log_id for log in stale]) if stale else 0
        affected.update(log.work_order_id for log in stale)

        total = len(eligible_ids)
        shares = split_amount(rate, eligible_ids)

        created = skipped = 0
        for e in eligible:
            task = e.task
            if task.task_id in existing:
                skipped += 1
                continue
            self._worklogs.upsert(
                WorkLog(
                    work_log_id=work_log_key(worker.worker_id, task.task_id, work_date),
                    organization_id=organization_id,
                    work_date=work_date,
                    worker_id=worker.worker_id,
                    worker_name=worker.name,
                    task_id=task.task_id,
                    work_order_id=e.work_order.work_order_id,
                    product_id=task.product_id,
                    daily_rate=shares[task.task_id],
                    original_daily_rate=rate,
                    split_factor=total,
                    process_name=e.assignment.process_name,
                    subtask_id=e.assignment.subtask_id,
                    created_at=self._clock(),
                )
            )
            created += 1

        # Always reconcile: a previous run may have split over a different set of tasks.
        updated = 0
        for log in self._worklogs.list_for_worker_and_date(organization_id, worker.worker_id, work_date):
            expected = shares.get(log.task_id)
            if expected is None:
                continue
            if (
                abs(log.daily_rate - expected) > self._tolerance
                or abs(log.original_daily_rate - rate) > self._tolerance
                or log.split_factor != total
            ):
                self._worklogs.update_split(
                    organization_id,
                    log.work_log_id,
                    daily_rate=expected,
                    original_daily_rate=rate,
                    split_factor=total,
                )
                updated += 1

        logger.info(
            "Derived work logs worker=%s date=%s eligible=%d created=%d skipped=%d updated=%d deleted=%d",
            worker.worker_id,
            work_date,
            total,
            created,
            skipped,
            updated,
            deleted,
        )
        return DerivationResult(
            created=created,
            skipped=skipped,
            updated=updated,
            deleted=deleted,
            affected_work_orders=tuple(sorted(affected)),
        )

    def _cleanup(self, organization_id: str, worker: Worker, work_date: date) -> DerivationResult:
        # Affected orders must be known before the logs disappear.
        orders = self._work_orders.list_covering_date(organization_id, work_date)
        affected = {e.work_order.work_order_id for e in find_eligible_assignments(orders, worker.worker_id, work_date)}
        affected.update(
            log.work_order_id
            for log in self._worklogs.list_for_worker_and_date(organization_id, worker.worker_id, work_date)
        )

        deleted = self._worklogs.delete_for_worker_and_date(organization_id, worker.worker_id, work_date)
        if deleted:
            logger.info("Removed %d work logs worker=%s date=%s", deleted, worker.worker_id, work_date)
        return DerivationResult(deleted=deleted, affected_work_orders=tuple(sorted(affected)))

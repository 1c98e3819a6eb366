from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus, WorkStatus
from ..core.exceptions import NotFoundError
from ..worklogs.eligibility import candidate_workers, resolve_assignment
from ..worklogs.model import DerivationResult
from ..worklogs.service import WorkLogDeriver
from ..work_orders.repository import WorkOrderRepository
from ..workers.repository import WorkerRepository
from .model import AttendanceRecord, AttendanceWarning, attendance_key
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceResult:
    attendance_id: str
    derivation: DerivationResult


class AttendanceLedger:
    def __init__(
        self,
        attendance: AttendanceRepository,
        workers: WorkerRepository,
        work_orders: WorkOrderRepository,
        deriver: WorkLogDeriver,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        self._attendance = attendance
        self._workers = workers
        self._work_orders = work_orders
        self._deriver = deriver
        self._clock = clock or now_local

    def record_attendance(
        self,
        organization_id: str,
        worker_id: str,
        work_date: date,
        status: AttendanceStatus | str,
        notes: Optional[str] = None,
    ) -> AttendanceResult:
        """Upsert the worker's status for the day and derive WorkLogs from it.

        Submitting the same status twice merges into the one record for that day.
        """

        status = AttendanceStatus(status)
        worker = self._workers.get_by_id(organization_id, worker_id)
        if worker is None:
            raise NotFoundError(f"Worker {worker_id} not found")

        now = self._clock()
        existing = self._attendance.get_for_worker_and_date(organization_id, worker_id, work_date)
        record = AttendanceRecord(
            attendance_id=existing.attendance_id if existing else attendance_key(worker_id, work_date),
            organization_id=organization_id,
            worker_id=worker_id,
            worker_name=worker.name,
            work_date=work_date,
            status=status,
            notes=notes,
            created_at=existing.created_at if existing else now,
            modified_at=now,
        )
        attendance_id = self._attendance.upsert(record)
        logger.info("Attendance %s %s -> %s", worker_id, work_date, status.value)

        derivation = self._deriver.derive_or_cleanup(organization_id, worker, work_date, status, worker.daily_rate)
        return AttendanceResult(attendance_id=attendance_id, derivation=derivation)

    def missing_attendance_warnings(self, organization_id: str, work_date: date) -> list[AttendanceWarning]:
        recorded = {
            r.worker_id
            for r in self._attendance.list_range(organization_id, start_date=work_date, end_date=work_date)
        }
        warnings: list[AttendanceWarning] = []
        seen: set[tuple[str, str, str]] = set()

        for order in self._work_orders.list_by_status(organization_id, [WorkStatus.IN_PROGRESS]):
            if not order.covers(work_date):
                continue
            for task in order.tasks:
                for worker_id, worker_name in candidate_workers(task).items():
                    key = (worker_id, order.work_order_id, task.task_id)
                    if worker_id in recorded or key in seen:
                        continue
                    if resolve_assignment(task, worker_id, work_date) is None:
                        continue
                    seen.add(key)
                    warnings.append(
                        AttendanceWarning(
                            worker_id=worker_id,
                            worker_name=worker_name,
                            work_order_id=order.work_order_id,
                            work_order_name=order.display_name,
                            task_id=task.task_id,
                            item_name=task.product_name or task.product_id,
                            work_date=work_date,
                        )
                    )
        return warnings

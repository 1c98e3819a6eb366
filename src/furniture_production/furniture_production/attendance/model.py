from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


def attendance_key(worker_id: str, work_date: date) -> str:
    """Natural identifier of the one record a worker may have per day."""
    return f"{worker_id}_{work_date.isoformat()}"


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: a worker's status for one calendar day."""

    attendance_id: str
    organization_id: str
    worker_id: str
    work_date: date
    status: AttendanceStatus
    worker_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceWarning:
    """Read-model: an eligible worker on an active order without attendance for the day."""

    worker_id: str
    worker_name: str
    work_order_id: str
    work_order_name: str
    task_id: str
    item_name: str
    work_date: date

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_worker_and_date(self, organization_id: str, worker_id: str, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert(self, record: AttendanceRecord) -> str:
        """Create or update the record keyed by (organization, worker, date).

        Returns attendance_id.
        """

        raise NotImplementedError

    def insert_many(self, records: Sequence[AttendanceRecord]) -> int:
        """Insert records in one grouped write, leaving existing keys untouched.

        Returns the number of rows written.
        """

        raise NotImplementedError

    def list_range(
        self,
        organization_id: str,
        *,
        start_date: date,
        end_date: date,
        worker_ids: Optional[Iterable[str]] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

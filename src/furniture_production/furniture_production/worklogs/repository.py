from __future__ import annotations

from datetime import date
from typing import Iterable, Protocol, Sequence

from .model import WorkLog


class WorkLogRepository(Protocol):
    def list_for_worker_and_date(self, organization_id: str, worker_id: str, work_date: date) -> Sequence[WorkLog]:
        raise NotImplementedError

    def list_for_work_order(self, organization_id: str, work_order_id: str) -> Sequence[WorkLog]:
        raise NotImplementedError

    def upsert(self, log: WorkLog) -> str:
        """Create the log under its natural key, or overwrite it. Returns work_log_id."""

        raise NotImplementedError

    def update_split(
        self,
        organization_id: str,
        work_log_id: str,
        *,
        daily_rate: float,
        original_daily_rate: float,
        split_factor: int,
    ) -> bool:
        raise NotImplementedError

    def delete_many(self, organization_id: str, work_log_ids: Iterable[str]) -> int:
        raise NotImplementedError

    def delete_for_worker_and_date(self, organization_id: str, worker_id: str, work_date: date) -> int:
        raise NotImplementedError

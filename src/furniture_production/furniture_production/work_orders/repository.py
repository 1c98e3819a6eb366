from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import WorkStatus
from .model import WorkOrder, WorkOrderTask


class WorkOrderRepository(Protocol):
    """Work orders are always returned with their tasks loaded."""

    def get(self, organization_id: str, work_order_id: str) -> Optional[WorkOrder]:
        raise NotImplementedError

    def list_covering_date(self, organization_id: str, work_date: date) -> Sequence[WorkOrder]:
        """Orders whose active interval includes the date, completed ones included."""

        raise NotImplementedError

    def list_by_status(self, organization_id: str, statuses: Iterable[WorkStatus]) -> Sequence[WorkOrder]:
        raise NotImplementedError

    def list_for_project(self, organization_id: str, project_id: str) -> Sequence[WorkOrder]:
        raise NotImplementedError

    def list_all(self, organization_id: Optional[str] = None) -> Sequence[WorkOrder]:
        raise NotImplementedError

    def get_task(self, organization_id: str, task_id: str) -> Optional[WorkOrderTask]:
        raise NotImplementedError

    def save_task(self, task: WorkOrderTask) -> None:
        raise NotImplementedError

    def save_task_costs(self, task: WorkOrderTask) -> None:
        """Persist only the synced cost fields, leaving lifecycle and breakdown fields untouched."""

        raise NotImplementedError

    def save_aggregates(self, work_order: WorkOrder) -> None:
        """Persist the derived header fields (status, dates, totals, profit)."""

        raise NotImplementedError

    def save_schedule(
        self,
        organization_id: str,
        work_order_id: str,
        *,
        planned_start: date,
        planned_end: date,
        scheduled_at: datetime,
    ) -> None:
        raise NotImplementedError

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import WorkStatus
from ..work_orders.model import WorkOrder


@dataclass(frozen=True)
class CostTotals:
    total_value: float = 0.0
    material_cost: float = 0.0
    planned_labor_cost: float = 0.0
    actual_labor_cost: float = 0.0
    transport_total: float = 0.0
    services_total: float = 0.0


@dataclass(frozen=True)
class ProfitFigures:
    gross_profit: float
    net_profit: float
    profit_margin: float
    labor_cost_variance: float


@dataclass(frozen=True)
class RecalculationResult:
    work_order: WorkOrder
    previous_status: WorkStatus
    product_ids: tuple[str, ...] = ()
    project_ids: tuple[str, ...] = ()
    snapshot_id: Optional[str] = None

    @property
    def completed_now(self) -> bool:
        return self.previous_status != WorkStatus.DONE and self.work_order.status == WorkStatus.DONE


@dataclass(frozen=True)
class ProfitWarning:
    """Advisory diagnostic; never blocks a save."""

    code: str
    message: str
    task_id: Optional[str] = None


@dataclass(frozen=True)
class SnapshotWorker:
    worker_id: str
    worker_name: str
    days: int
    cost: float


@dataclass(frozen=True)
class SnapshotProcess:
    process_name: str
    status: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None


@dataclass(frozen=True)
class SnapshotItem:
    task_id: str
    product_id: str
    product_name: str
    quantity: int
    material_cost: float
    labor_cost: float
    selling_price: float
    transport_share: float
    services_total: float
    profit: float
    workers: tuple[SnapshotWorker, ...] = ()
    processes: tuple[SnapshotProcess, ...] = ()


@dataclass(frozen=True)
class ProductionSnapshot:
    """Frozen economics of a completed work order, kept for analytics."""

    snapshot_id: str
    organization_id: str
    work_order_id: str
    work_order_number: str
    created_at: datetime
    items: tuple[SnapshotItem, ...]
    total_quantity: int
    total_selling_price: float
    total_material_cost: float
    transport_total: float
    services_total: float
    planned_start: Optional[date]
    planned_end: Optional[date]
    actual_start: Optional[datetime]
    actual_end: Optional[datetime]
    planned_days: int
    actual_days: int
    planned_labor_cost: float
    actual_labor_cost: float
    labor_cost_variance: float
    gross_profit: float
    net_profit: float
    profit_margin: float
    workers_count: int
    total_worker_days: int
    avg_daily_rate: float
    production_steps: tuple[str, ...] = ()
    month: Optional[str] = None
    quarter: Optional[str] = None
    quality_score: int = 100
    data_issues: tuple[str, ...] = field(default=())

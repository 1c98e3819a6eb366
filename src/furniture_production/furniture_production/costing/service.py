from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..catalog.repository import AcceptedOfferLookup, MaterialCostProvider
from ..common.datetime_utils import now_local
from ..common.money import money_sum, round_money
from ..core.enums import OfferBackfillPolicy, WorkStatus
from ..core.exceptions import NotFoundError
from ..status.service import StatusPropagator
from ..worklogs.model import WorkLog
from ..worklogs.repository import WorkLogRepository
from ..work_orders.decomposition import rollup_status
from ..work_orders.model import WorkOrder, WorkOrderTask
from ..work_orders.repository import WorkOrderRepository
from .calculator.base import ProfitCalculator
from .calculator.standard_calculator import StandardProfitCalculator
from .model import CostTotals, RecalculationResult
from .policy import OfferBackfillStrategy, strategy_for
from .repository import SnapshotRepository, snapshot_key
from .snapshot import build_snapshot

logger = logging.getLogger(__name__)


class CostAggregator:
    """Recomputes task and work-order economics from WorkLogs and material prices.

    Frozen tasks keep the costs captured when they were completed. Completing the
    last task writes a production snapshot; snapshot and status-sync failures are
    logged and never undo the recalculation.
    """

    def __init__(
        self,
        work_orders: WorkOrderRepository,
        worklogs: WorkLogRepository,
        materials: MaterialCostProvider,
        offers: AcceptedOfferLookup,
        propagator: StatusPropagator,
        snapshots: Optional[SnapshotRepository] = None,
        *,
        calculator: Optional[ProfitCalculator] = None,
        backfill: OfferBackfillStrategy | OfferBackfillPolicy | str = OfferBackfillPolicy.FIRST_ACCEPTED,
        clock: Callable[[], datetime] | None = None,
    ):
        self._work_orders = work_orders
        self._worklogs = worklogs
        self._materials = materials
        self._offers = offers
        self._propagator = propagator
        self._snapshots = snapshots
        self._calculator = calculator or StandardProfitCalculator()
        self._backfill = backfill if isinstance(backfill, OfferBackfillStrategy) else strategy_for(backfill)
        self._clock = clock or now_local

    def recalculate(self, organization_id: str, work_order_id: str) -> RecalculationResult:
        order = self._work_orders.get(organization_id, work_order_id)
        if order is None:
            raise NotFoundError(f"Work order {work_order_id} not found")

        logs = self._worklogs.list_for_work_order(organization_id, work_order_id)
        logs_by_task: dict[str, list[WorkLog]] = defaultdict(list)
        for log in logs:
            logs_by_task[log.task_id].append(log)

        tasks: list[WorkOrderTask] = []
        for task in order.tasks:
            costed = self._cost_task(organization_id, task, logs_by_task.get(task.task_id, []))
            if costed != task:
                self._work_orders.save_task_costs(costed)
            tasks.append(costed)

        updated = self._aggregate(order, tasks)
        self._work_orders.save_aggregates(updated)
        logger.info(
            "Recalculated work order %s status=%s value=%.2f labor=%.2f net=%.2f",
            work_order_id,
            updated.status.value,
            updated.total_value,
            updated.actual_labor_cost,
            updated.profit,
        )

        snapshot_id = None
        if order.status != WorkStatus.DONE and updated.status == WorkStatus.DONE:
            snapshot_id = self._write_snapshot(updated, logs)

        project_ids: set[str] = set()
        try:
            project_ids = self._propagator.sync_products(organization_id, tasks)
            self._propagator.sync_projects(organization_id, project_ids)
        except Exception:
            logger.exception("Status sync failed for work order %s", work_order_id)

        return RecalculationResult(
            work_order=updated,
            previous_status=order.status,
            product_ids=tuple(sorted({t.product_id for t in tasks})),
            project_ids=tuple(sorted(project_ids)),
            snapshot_id=snapshot_id,
        )

    def _cost_task(self, organization_id: str, task: WorkOrderTask, logs: Sequence[WorkLog]) -> WorkOrderTask:
        if task.is_frozen or task.material_cost_overridden:
            material = task.material_cost
        else:
            material = round_money(self._materials.material_cost_for_product(organization_id, task.product_id))

        if task.is_frozen and task.frozen_labor_cost is not None:
            labor = task.frozen_labor_cost
        else:
            labor = money_sum(log.daily_rate for log in logs)

        value = task.product_value
        if value <= 0:
            value = self._recover_value(organization_id, task) or value

        is_frozen = task.is_frozen
        frozen_labor = task.frozen_labor_cost
        if task.status == WorkStatus.DONE and not task.is_frozen:
            is_frozen = True
            frozen_labor = labor
            logger.info("Froze costs of task %s material=%.2f labor=%.2f", task.task_id, material, labor)

        return replace(
            task,
            material_cost=material,
            actual_labor_cost=labor,
            product_value=value,
            is_frozen=is_frozen,
            frozen_labor_cost=frozen_labor,
        )

    def _recover_value(self, organization_id: str, task: WorkOrderTask) -> Optional[float]:
        prices = self._offers.accepted_offer_prices(organization_id, task.product_id)
        picked = self._backfill.pick(prices)
        if picked is None:
            return None
        logger.info(
            "Recovered value %.2f for task %s from accepted offer %s",
            picked.selling_price,
            task.task_id,
            picked.offer_id,
        )
        return round_money(picked.selling_price)

    def _aggregate(self, order: WorkOrder, tasks: Sequence[WorkOrderTask]) -> WorkOrder:
        totals = CostTotals(
            total_value=money_sum(t.product_value for t in tasks),
            material_cost=money_sum(t.material_cost for t in tasks),
            planned_labor_cost=money_sum(t.planned_labor_cost for t in tasks),
            actual_labor_cost=money_sum(t.actual_labor_cost for t in tasks),
            transport_total=money_sum(t.transport_share for t in tasks),
            services_total=money_sum(t.services_total for t in tasks),
        )
        if totals.total_value == 0 and order.total_value > 0:
            # Older orders carry their value on the header only.
            totals = replace(totals, total_value=order.total_value)
        figures = self._calculator.calculate(totals)

        status = rollup_status(t.status for t in tasks) or order.status
        starts = [t.effective_started_at() for t in tasks if t.effective_started_at()]
        ends = [t.completed_at for t in tasks if t.completed_at]

        return replace(
            order,
            status=status,
            started_at=min(starts) if starts else order.started_at,
            completed_at=max(ends) if status == WorkStatus.DONE and ends else None,
            total_value=totals.total_value,
            material_cost=totals.material_cost,
            transport_total=totals.transport_total,
            services_total=totals.services_total,
            planned_labor_cost=totals.planned_labor_cost,
            actual_labor_cost=totals.actual_labor_cost,
            gross_profit=figures.gross_profit,
            profit=figures.net_profit,
            profit_margin=figures.profit_margin,
            labor_cost_variance=figures.labor_cost_variance,
            last_recalculated_at=self._clock(),
            tasks=tuple(tasks),
        )

    def _write_snapshot(self, order: WorkOrder, logs: Sequence[WorkLog]) -> Optional[str]:
        if self._snapshots is None:
            return None
        try:
            figures = self._calculator.calculate(
                CostTotals(
                    total_value=order.total_value,
                    material_cost=order.material_cost,
                    planned_labor_cost=order.planned_labor_cost,
                    actual_labor_cost=order.actual_labor_cost,
                    transport_total=order.transport_total,
                    services_total=order.services_total,
                )
            )
            snapshot = build_snapshot(
                order,
                logs,
                figures,
                snapshot_id=snapshot_key(order.work_order_id),
                created_at=self._clock(),
            )
            snapshot_id = self._snapshots.save(snapshot)
            logger.info("Created production snapshot %s (quality %d)", snapshot_id, snapshot.quality_score)
            return snapshot_id
        except Exception:
            logger.exception("Snapshot creation failed for work order %s", order.work_order_id)
            return None

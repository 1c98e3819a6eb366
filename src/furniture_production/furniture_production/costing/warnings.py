from __future__ import annotations

from typing import Optional

from ..core.enums import WorkStatus
from ..work_orders.model import WorkOrder
from .calculator.base import ProfitCalculator
from .calculator.standard_calculator import StandardProfitCalculator
from .model import CostTotals, ProfitWarning


def validate_work_order_profit_warnings(
    work_order: WorkOrder,
    *,
    calculator: Optional[ProfitCalculator] = None,
) -> list[ProfitWarning]:
    """Advisory checks on a work order's economics. Callers decide whether to show them."""

    calculator = calculator or StandardProfitCalculator()
    warnings: list[ProfitWarning] = []

    for task in work_order.tasks:
        label = task.product_name or task.product_id
        if task.product_value <= 0:
            warnings.append(ProfitWarning("ZERO_VALUE", f"{label}: contracted value is zero", task.task_id))
        if task.material_cost <= 0:
            warnings.append(ProfitWarning("ZERO_MATERIAL_COST", f"{label}: no material cost recorded", task.task_id))
        if task.status == WorkStatus.DONE and task.actual_labor_cost <= 0:
            warnings.append(ProfitWarning("MISSING_LABOR", f"{label}: completed without recorded labor", task.task_id))

    totals = CostTotals(
        total_value=sum(t.product_value for t in work_order.tasks) or work_order.total_value,
        material_cost=sum(t.material_cost for t in work_order.tasks),
        planned_labor_cost=sum(t.planned_labor_cost for t in work_order.tasks),
        actual_labor_cost=sum(t.actual_labor_cost for t in work_order.tasks),
        transport_total=sum(t.transport_share for t in work_order.tasks),
        services_total=sum(t.services_total for t in work_order.tasks),
    )
    figures = calculator.calculate(totals)

    if totals.total_value <= 0:
        warnings.append(ProfitWarning("ZERO_TOTAL_VALUE", "Work order has no contracted value"))
    elif figures.net_profit < 0:
        warnings.append(
            ProfitWarning("NEGATIVE_MARGIN", f"Net profit is negative ({figures.profit_margin:.2f}% margin)")
        )
    if totals.planned_labor_cost > 0 and figures.labor_cost_variance < 0:
        warnings.append(
            ProfitWarning("LABOR_OVER_PLAN", f"Actual labor exceeds plan by {-figures.labor_cost_variance:.2f}")
        )
    return warnings

from __future__ import annotations

from ...common.money import round_money
from ..model import CostTotals, ProfitFigures
from .base import ProfitCalculator


class StandardProfitCalculator(ProfitCalculator):
    """Gross = value - material - transport - services; net = gross - actual labor."""

    def calculate(self, totals: CostTotals) -> ProfitFigures:
        gross = totals.total_value - totals.material_cost - totals.transport_total - totals.services_total
        net = gross - totals.actual_labor_cost
        margin = (net / totals.total_value) * 100 if totals.total_value else 0.0
        return ProfitFigures(
            gross_profit=round_money(gross),
            net_profit=round_money(net),
            profit_margin=round_money(margin),
            labor_cost_variance=round_money(totals.planned_labor_cost - totals.actual_labor_cost),
        )

from __future__ import annotations

from abc import ABC, abstractmethod

from ..model import CostTotals, ProfitFigures


class ProfitCalculator(ABC):
    """Calculator interface (Strategy Pattern for work-order profitability)."""

    @abstractmethod
    def calculate(self, totals: CostTotals) -> ProfitFigures:
        raise NotImplementedError

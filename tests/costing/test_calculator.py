from src.furniture_production.furniture_production.costing.calculator.standard_calculator import StandardProfitCalculator
from src.furniture_production.furniture_production.costing.model import CostTotals


def test_standard_calculator_profit_and_margin():
    totals = CostTotals(
        total_value=1000,
        material_cost=300,
        planned_labor_cost=250,
        actual_labor_cost=200,
        transport_total=50,
        services_total=25,
    )

    figures = StandardProfitCalculator().calculate(totals)

    assert figures.gross_profit == 625.0
    assert figures.net_profit == 425.0
    assert figures.profit_margin == 42.5
    assert figures.labor_cost_variance == 50.0


def test_standard_calculator_zero_value_has_zero_margin():
    figures = StandardProfitCalculator().calculate(CostTotals(material_cost=10, actual_labor_cost=5))

    assert figures.net_profit == -15.0
    assert figures.profit_margin == 0.0

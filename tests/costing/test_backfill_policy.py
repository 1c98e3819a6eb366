from datetime import datetime

import pytest

from src.furniture_production.furniture_production.catalog.model import OfferPrice
from src.furniture_production.furniture_production.core.enums import OfferBackfillPolicy
from src.furniture_production.furniture_production.costing.policy import (
    DisabledStrategy,
    FirstAcceptedStrategy,
    HighestPriceStrategy,
    LatestAcceptedStrategy,
    strategy_for,
)

PRICES = [
    OfferPrice("of-2", "p-1", 350.0, datetime(2024, 2, 1)),
    OfferPrice("of-1", "p-1", 300.0, datetime(2024, 1, 1)),
    OfferPrice("of-3", "p-1", 0.0, datetime(2023, 12, 1)),
    OfferPrice("of-4", "p-1", 320.0, datetime(2024, 3, 1)),
]


def test_first_accepted_skips_zero_prices():
    assert FirstAcceptedStrategy().pick(PRICES).offer_id == "of-1"


def test_latest_accepted():
    assert LatestAcceptedStrategy().pick(PRICES).offer_id == "of-4"


def test_highest_price():
    assert HighestPriceStrategy().pick(PRICES).offer_id == "of-2"


def test_disabled_and_empty():
    assert DisabledStrategy().pick(PRICES) is None
    assert FirstAcceptedStrategy().pick([]) is None


@pytest.mark.parametrize(
    "policy, expected",
    [
        ("first_accepted", FirstAcceptedStrategy),
        (OfferBackfillPolicy.LATEST_ACCEPTED, LatestAcceptedStrategy),
        ("highest", HighestPriceStrategy),
        ("disabled", DisabledStrategy),
    ],
)
def test_strategy_factory(policy, expected):
    assert isinstance(strategy_for(policy), expected)


def test_strategy_factory_rejects_unknown_policy():
    with pytest.raises(ValueError):
        strategy_for("cheapest")

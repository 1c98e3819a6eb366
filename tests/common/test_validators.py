from datetime import date, datetime

import pytest

from src.furniture_production.furniture_production.common.validators import (
    optional_datetime,
    require_date,
    require_int,
)
from src.furniture_production.furniture_production.core.exceptions import ValidationError


def test_require_date_parses_iso_dates():
    assert require_date(" 2024-05-01 ", "date") == date(2024, 5, 1)


@pytest.mark.parametrize("value", ["", None, "2024-13-01", "01.05.2024"])
def test_require_date_rejects_missing_and_malformed(value):
    with pytest.raises(ValidationError):
        require_date(value, "date")


def test_optional_datetime():
    assert optional_datetime(None, "started_at") is None
    assert optional_datetime("2024-05-01T08:30:00", "started_at") == datetime(2024, 5, 1, 8, 30)
    with pytest.raises(ValidationError):
        optional_datetime("yesterday", "started_at")


def test_require_int_rejects_text():
    assert require_int("3", "quantity") == 3
    with pytest.raises(ValidationError):
        require_int("two", "quantity")

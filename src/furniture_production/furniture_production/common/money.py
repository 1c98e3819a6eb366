from __future__ import annotations

from typing import Iterable, Sequence


def round_money(value: float) -> float:
    return round(float(value), 2)


def to_cents(value: float) -> int:
    return int(round(float(value) * 100))


def split_amount(total: float, keys: Sequence[str]) -> dict[str, float]:
    """Split ``total`` across ``keys`` in whole cents.

    Remainder cents go to the lowest keys so the parts always add up to the total.
    """

    if not keys:
        return {}
    ordered = sorted(keys)
    cents = to_cents(total)
    base, remainder = divmod(cents, len(ordered))
    return {key: (base + (1 if idx < remainder else 0)) / 100 for idx, key in enumerate(ordered)}


def money_sum(values: Iterable[float]) -> float:
    return round_money(sum(float(v or 0) for v in values))

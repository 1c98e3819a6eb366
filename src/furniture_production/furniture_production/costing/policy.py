"""Which accepted offer supplies a task's contracted value when it was saved as zero."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from ..catalog.model import OfferPrice
from ..core.enums import OfferBackfillPolicy


class OfferBackfillStrategy(ABC):
    @abstractmethod
    def pick(self, prices: Sequence[OfferPrice]) -> Optional[OfferPrice]:
        raise NotImplementedError


def _usable(prices: Sequence[OfferPrice]) -> list[OfferPrice]:
    return [p for p in prices if p.selling_price > 0]


def _accepted_key(p: OfferPrice):
    return (p.accepted_at or datetime.min, p.offer_id)


class FirstAcceptedStrategy(OfferBackfillStrategy):
    def pick(self, prices: Sequence[OfferPrice]) -> Optional[OfferPrice]:
        usable = _usable(prices)
        return min(usable, key=_accepted_key) if usable else None


class LatestAcceptedStrategy(OfferBackfillStrategy):
    def pick(self, prices: Sequence[OfferPrice]) -> Optional[OfferPrice]:
        usable = _usable(prices)
        return max(usable, key=_accepted_key) if usable else None


class HighestPriceStrategy(OfferBackfillStrategy):
    def pick(self, prices: Sequence[OfferPrice]) -> Optional[OfferPrice]:
        usable = _usable(prices)
        return max(usable, key=lambda p: (p.selling_price, p.offer_id)) if usable else None


class DisabledStrategy(OfferBackfillStrategy):
    def pick(self, prices: Sequence[OfferPrice]) -> Optional[OfferPrice]:
        return None


def strategy_for(policy: OfferBackfillPolicy | str) -> OfferBackfillStrategy:
    """Factory Pattern: map the configured policy onto its strategy."""

    policy = OfferBackfillPolicy(policy)
    if policy == OfferBackfillPolicy.LATEST_ACCEPTED:
        return LatestAcceptedStrategy()
    if policy == OfferBackfillPolicy.HIGHEST:
        return HighestPriceStrategy()
    if policy == OfferBackfillPolicy.DISABLED:
        return DisabledStrategy()
    return FirstAcceptedStrategy()

from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from . import constants
from .enums import OfferBackfillPolicy


@dataclass(frozen=True)
class EngineSettings:
    """Tunables of the costing/sync engine read from the active settings module."""

    split_tolerance: float = constants.SPLIT_TOLERANCE
    write_batch_limit: int = constants.WRITE_BATCH_LIMIT
    recalc_parallelism: int = constants.DEFAULT_RECALC_PARALLELISM
    default_schedule_days: int = constants.DEFAULT_SCHEDULE_DAYS
    offer_backfill_policy: OfferBackfillPolicy = OfferBackfillPolicy.FIRST_ACCEPTED
    product_status_order: Optional[tuple[str, ...]] = None

    @classmethod
    def from_module(cls, settings: ModuleType) -> "EngineSettings":
        order = getattr(settings, "PRODUCT_STATUS_ORDER", None)
        return cls(
            split_tolerance=float(getattr(settings, "SPLIT_TOLERANCE", constants.SPLIT_TOLERANCE)),
            write_batch_limit=int(getattr(settings, "WRITE_BATCH_LIMIT", constants.WRITE_BATCH_LIMIT)),
            recalc_parallelism=int(getattr(settings, "RECALC_PARALLELISM", constants.DEFAULT_RECALC_PARALLELISM)),
            default_schedule_days=int(getattr(settings, "DEFAULT_SCHEDULE_DAYS", constants.DEFAULT_SCHEDULE_DAYS)),
            offer_backfill_policy=OfferBackfillPolicy(
                getattr(settings, "OFFER_BACKFILL_POLICY", OfferBackfillPolicy.FIRST_ACCEPTED.value)
            ),
            product_status_order=tuple(order) if order else None,
        )

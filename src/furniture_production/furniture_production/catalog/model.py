from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class OfferPrice:
    """Selling price of a product line on an accepted pricing offer."""

    offer_id: str
    product_id: str
    selling_price: float
    accepted_at: Optional[datetime] = None

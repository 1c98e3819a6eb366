from __future__ import annotations

from typing import Protocol, Sequence

from .model import OfferPrice


class MaterialCostProvider(Protocol):
    def material_cost_for_product(self, organization_id: str, product_id: str) -> float:
        """Current total of the product's material lines."""

        raise NotImplementedError


class AcceptedOfferLookup(Protocol):
    def accepted_offer_prices(self, organization_id: str, product_id: str) -> Sequence[OfferPrice]:
        raise NotImplementedError

from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import OfferPrice
from .repository import AcceptedOfferLookup, MaterialCostProvider


class MySQLMaterialCostProvider(MaterialCostProvider):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def material_cost_for_product(self, organization_id: str, product_id: str) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(total_price), 0) AS total
                FROM product_materials
                WHERE organization_id=%s AND product_id=%s
                """,
                (organization_id, product_id),
            )
            r = fetchone(cur)
            return float(r["total"]) if r else 0.0


class MySQLAcceptedOfferLookup(AcceptedOfferLookup):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def accepted_offer_prices(self, organization_id: str, product_id: str) -> Sequence[OfferPrice]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT o.offer_id, op.product_id, op.selling_price, o.accepted_at
                FROM offers o
                JOIN offer_products op ON op.offer_id = o.offer_id
                WHERE o.organization_id=%s AND o.status='Accepted' AND op.product_id=%s
                ORDER BY o.accepted_at, o.offer_id
                """,
                (organization_id, product_id),
            )
            return [
                OfferPrice(
                    offer_id=str(r["offer_id"]),
                    product_id=str(r["product_id"]),
                    selling_price=float(r.get("selling_price") or 0),
                    accepted_at=r.get("accepted_at"),
                )
                for r in fetchall(cur)
            ]

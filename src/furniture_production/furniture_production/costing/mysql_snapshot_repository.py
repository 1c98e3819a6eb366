from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json
from .model import ProductionSnapshot
from .repository import SnapshotRepository
from .snapshot import snapshot_payload


class MySQLSnapshotRepository(SnapshotRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def save(self, snapshot: ProductionSnapshot) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO production_snapshots(
                    snapshot_id, organization_id, work_order_id, created_at, net_profit, profit_margin,
                    quality_score, payload
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    created_at=VALUES(created_at),
                    net_profit=VALUES(net_profit),
                    profit_margin=VALUES(profit_margin),
                    quality_score=VALUES(quality_score),
                    payload=VALUES(payload)
                """,
                (
                    snapshot.snapshot_id,
                    snapshot.organization_id,
                    snapshot.work_order_id,
                    snapshot.created_at,
                    snapshot.net_profit,
                    snapshot.profit_margin,
                    snapshot.quality_score,
                    dump_json(snapshot_payload(snapshot)),
                ),
            )
            return snapshot.snapshot_id

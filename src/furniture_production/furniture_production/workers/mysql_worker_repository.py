from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Worker
from .repository import WorkerRepository

_COLUMNS = "worker_id, organization_id, name, daily_rate, role, is_active"


def _to_worker(r: dict) -> Worker:
    return Worker(
        worker_id=str(r["worker_id"]),
        organization_id=str(r["organization_id"]),
        name=str(r["name"]),
        daily_rate=float(r.get("daily_rate") or 0),
        role=r.get("role"),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLWorkerRepository(WorkerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, organization_id: str, worker_id: str) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM workers WHERE organization_id=%s AND worker_id=%s",
                (organization_id, worker_id),
            )
            r = fetchone(cur)
            return _to_worker(r) if r else None

    def list_active(self, organization_id: str) -> Sequence[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM workers WHERE organization_id=%s AND is_active=1 ORDER BY name",
                (organization_id,),
            )
            return [_to_worker(r) for r in fetchall(cur)]

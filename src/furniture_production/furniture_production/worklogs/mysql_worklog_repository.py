from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .model import WorkLog
from .repository import WorkLogRepository

_COLUMNS = """
    work_log_id, organization_id, work_date, worker_id, worker_name, task_id, work_order_id, product_id,
    daily_rate, original_daily_rate, split_factor, hours_worked, process_name, subtask_id,
    is_from_attendance, notes, created_at
"""


def _to_log(r: dict) -> WorkLog:
    return WorkLog(
        work_log_id=str(r["work_log_id"]),
        organization_id=str(r["organization_id"]),
        work_date=r["work_date"],
        worker_id=str(r["worker_id"]),
        worker_name=r.get("worker_name"),
        task_id=str(r["task_id"]),
        work_order_id=str(r["work_order_id"]),
        product_id=str(r["product_id"]),
        daily_rate=float(r["daily_rate"]),
        original_daily_rate=float(r["original_daily_rate"]),
        split_factor=int(r["split_factor"]),
        hours_worked=float(r.get("hours_worked") or 0),
        process_name=r.get("process_name"),
        subtask_id=r.get("subtask_id"),
        is_from_attendance=bool(r.get("is_from_attendance", 1)),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
    )


class MySQLWorkLogRepository(WorkLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, params: tuple) -> list[WorkLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM work_logs WHERE {where} ORDER BY work_date, task_id", params)
            return [_to_log(r) for r in fetchall(cur)]

    def list_for_worker_and_date(self, organization_id: str, worker_id: str, work_date: date) -> Sequence[WorkLog]:
        return self._select(
            "organization_id=%s AND worker_id=%s AND work_date=%s",
            (organization_id, worker_id, work_date),
        )

    def list_for_work_order(self, organization_id: str, work_order_id: str) -> Sequence[WorkLog]:
        return self._select("organization_id=%s AND work_order_id=%s", (organization_id, work_order_id))

    def upsert(self, log: WorkLog) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO work_logs(
                    work_log_id, organization_id, work_date, worker_id, worker_name, task_id, work_order_id,
                    product_id, daily_rate, original_daily_rate, split_factor, hours_worked, process_name,
                    subtask_id, is_from_attendance, notes, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    daily_rate=VALUES(daily_rate),
                    original_daily_rate=VALUES(original_daily_rate),
                    split_factor=VALUES(split_factor),
                    process_name=VALUES(process_name),
                    subtask_id=VALUES(subtask_id)
                """,
                (
                    log.work_log_id,
                    log.organization_id,
                    log.work_date,
                    log.worker_id,
                    log.worker_name,
                    log.task_id,
                    log.work_order_id,
                    log.product_id,
                    log.daily_rate,
                    log.original_daily_rate,
                    log.split_factor,
                    log.hours_worked,
                    log.process_name,
                    log.subtask_id,
                    int(log.is_from_attendance),
                    log.notes,
                    log.created_at,
                ),
            )
            return log.work_log_id

    def update_split(
        self,
        organization_id: str,
        work_log_id: str,
        *,
        daily_rate: float,
        original_daily_rate: float,
        split_factor: int,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_logs
                SET daily_rate=%s, original_daily_rate=%s, split_factor=%s
                WHERE organization_id=%s AND work_log_id=%s
                """,
                (daily_rate, original_daily_rate, int(split_factor), organization_id, work_log_id),
            )
            return cur.rowcount > 0

    def delete_many(self, organization_id: str, work_log_ids: Iterable[str]) -> int:
        ids = list(work_log_ids)
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"DELETE FROM work_logs WHERE organization_id=%s AND work_log_id IN ({in_clause(ids)})",
                (organization_id, *ids),
            )
            return int(cur.rowcount)

    def delete_for_worker_and_date(self, organization_id: str, worker_id: str, work_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM work_logs WHERE organization_id=%s AND worker_id=%s AND work_date=%s",
                (organization_id, worker_id, work_date),
            )
            return int(cur.rowcount)

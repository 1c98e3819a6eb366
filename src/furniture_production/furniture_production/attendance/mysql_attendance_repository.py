from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, organization_id, worker_id, worker_name, work_date, status, notes, created_at, modified_at"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=str(r["attendance_id"]),
        organization_id=str(r["organization_id"]),
        worker_id=str(r["worker_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        worker_name=r.get("worker_name"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
        modified_at=r.get("modified_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_worker_and_date(self, organization_id: str, worker_id: str, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE organization_id=%s AND worker_id=%s AND work_date=%s
                """,
                (organization_id, worker_id, work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def upsert(self, record: AttendanceRecord) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    attendance_id, organization_id, worker_id, worker_name, work_date, status, notes, created_at, modified_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status),
                    notes=VALUES(notes),
                    worker_name=COALESCE(VALUES(worker_name), worker_name),
                    modified_at=VALUES(modified_at)
                """,
                (
                    record.attendance_id,
                    record.organization_id,
                    record.worker_id,
                    record.worker_name,
                    record.work_date,
                    record.status.value,
                    record.notes,
                    record.created_at,
                    record.modified_at,
                ),
            )
            return record.attendance_id

    def insert_many(self, records: Sequence[AttendanceRecord]) -> int:
        if not records:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT IGNORE INTO attendance_records(
                    attendance_id, organization_id, worker_id, worker_name, work_date, status, notes, created_at, modified_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                [
                    (
                        r.attendance_id,
                        r.organization_id,
                        r.worker_id,
                        r.worker_name,
                        r.work_date,
                        r.status.value,
                        r.notes,
                        r.created_at,
                        r.modified_at,
                    )
                    for r in records
                ],
            )
            return int(cur.rowcount)

    def list_range(
        self,
        organization_id: str,
        *,
        start_date: date,
        end_date: date,
        worker_ids: Optional[Iterable[str]] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["organization_id=%s", "work_date BETWEEN %s AND %s"]
        params: list[object] = [organization_id, start_date, end_date]

        ids = list(worker_ids) if worker_ids is not None else None
        if ids is not None:
            if not ids:
                return []
            clauses.append(f"worker_id IN ({in_clause(ids)})")
            params.extend(ids)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE {where} ORDER BY work_date, worker_id",
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]

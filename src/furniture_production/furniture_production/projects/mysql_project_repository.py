from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Product, Project
from .repository import ProjectRepository


def _to_product(r: dict) -> Product:
    return Product(
        product_id=str(r["product_id"]),
        organization_id=str(r["organization_id"]),
        project_id=str(r["project_id"]),
        name=r.get("name") or "",
        status=r.get("status"),
        quantity=int(r.get("quantity") or 1),
    )


def _to_project(r: dict) -> Project:
    return Project(
        project_id=str(r["project_id"]),
        organization_id=str(r["organization_id"]),
        name=r.get("name") or "",
        status=r.get("status"),
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_product(self, organization_id: str, product_id: str) -> Optional[Product]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT product_id, organization_id, project_id, name, status, quantity
                FROM products WHERE organization_id=%s AND product_id=%s
                """,
                (organization_id, product_id),
            )
            r = fetchone(cur)
            return _to_product(r) if r else None

    def list_products(self, organization_id: str, project_id: str) -> Sequence[Product]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT product_id, organization_id, project_id, name, status, quantity
                FROM products WHERE organization_id=%s AND project_id=%s
                ORDER BY product_id
                """,
                (organization_id, project_id),
            )
            return [_to_product(r) for r in fetchall(cur)]

    def advance_product_status(
        self, organization_id: str, product_id: str, status: str, *, unless_in: Sequence[str]
    ) -> bool:
        return self._advance("products", "product_id", organization_id, product_id, status, unless_in)

    def get_project(self, organization_id: str, project_id: str) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT project_id, organization_id, name, status FROM projects WHERE organization_id=%s AND project_id=%s",
                (organization_id, project_id),
            )
            r = fetchone(cur)
            return _to_project(r) if r else None

    def list_projects(self, organization_id: str) -> Sequence[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT project_id, organization_id, name, status FROM projects WHERE organization_id=%s ORDER BY project_id",
                (organization_id,),
            )
            return [_to_project(r) for r in fetchall(cur)]

    def advance_project_status(
        self, organization_id: str, project_id: str, status: str, *, unless_in: Sequence[str]
    ) -> bool:
        return self._advance("projects", "project_id", organization_id, project_id, status, unless_in)

    def _advance(self, table: str, key: str, organization_id: str, row_id: str, status: str, unless_in) -> bool:
        blocked = list(unless_in)
        guard = f" AND (status IS NULL OR status NOT IN ({in_clause(blocked)}))" if blocked else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE {table} SET status=%s WHERE organization_id=%s AND {key}=%s{guard}",
                (status, organization_id, row_id, *blocked),
            )
            return cur.rowcount > 0

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Product, Project


class ProjectRepository(Protocol):
    """Product and project records whose status is a projection of work-order tasks."""

    def get_product(self, organization_id: str, product_id: str) -> Optional[Product]:
        raise NotImplementedError

    def list_products(self, organization_id: str, project_id: str) -> Sequence[Product]:
        raise NotImplementedError

    def advance_product_status(
        self, organization_id: str, product_id: str, status: str, *, unless_in: Sequence[str]
    ) -> bool:
        """Set the status unless the stored one is already in `unless_in`.

        The check and the write are a single atomic step. Returns True when the row changed.
        """

        raise NotImplementedError

    def get_project(self, organization_id: str, project_id: str) -> Optional[Project]:
        raise NotImplementedError

    def list_projects(self, organization_id: str) -> Sequence[Project]:
        raise NotImplementedError

    def advance_project_status(
        self, organization_id: str, project_id: str, status: str, *, unless_in: Sequence[str]
    ) -> bool:
        raise NotImplementedError

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.enums import WorkStatus
from ..projects.model import Product
from ..projects.repository import ProjectRepository
from ..work_orders.model import WorkOrderTask
from ..work_orders.repository import WorkOrderRepository
from .hierarchy import DEFAULT_HIERARCHY, StatusHierarchy

logger = logging.getLogger(__name__)


class StatusPropagator:
    """Projects task progress onto products and projects.

    Statuses only ever move forward along the hierarchy: a lower derived status
    is logged and dropped.
    """

    def __init__(
        self,
        projects: ProjectRepository,
        work_orders: WorkOrderRepository,
        *,
        hierarchy: StatusHierarchy = DEFAULT_HIERARCHY,
    ):
        self._projects = projects
        self._work_orders = work_orders
        self._hierarchy = hierarchy

    @property
    def hierarchy(self) -> StatusHierarchy:
        return self._hierarchy

    def derive_product_statuses(self, tasks: Iterable[WorkOrderTask]) -> dict[str, str]:
        derived: dict[str, str] = {}
        for task in tasks:
            status = self._hierarchy.status_for_task(task)
            current = derived.get(task.product_id)
            if current is None or self._hierarchy.product_rank(status) > self._hierarchy.product_rank(current):
                derived[task.product_id] = status
        return derived

    def sync_products(self, organization_id: str, tasks: Iterable[WorkOrderTask]) -> set[str]:
        """Apply derived statuses to the tasks' products. Returns the project ids touched."""

        project_ids: set[str] = set()
        for product_id, status in self.derive_product_statuses(tasks).items():
            product = self._projects.get_product(organization_id, product_id)
            if product is None:
                logger.warning("Product %s not found while syncing status", product_id)
                continue
            project_ids.add(product.project_id)
            self.apply_product_status(product, status)
        return project_ids

    def apply_product_status(self, product: Product, status: str) -> bool:
        h = self._hierarchy
        new_rank = h.product_rank(status)
        current_rank = h.product_rank(product.status)
        if new_rank > current_rank:
            # Another recalculation may have moved the product since it was read.
            advanced = self._projects.advance_product_status(
                product.organization_id,
                product.product_id,
                status,
                unless_in=h.product_statuses_from(status),
            )
            if advanced:
                logger.info("Product %s status %s -> %s", product.product_id, product.status, status)
            else:
                logger.info("Product %s already at or past %s", product.product_id, status)
            return advanced
        if new_rank < current_rank:
            logger.warning(
                "Rejected status regression for product %s: %s -> %s",
                product.product_id,
                product.status,
                status,
            )
        return False

    def sync_project(self, organization_id: str, project_id: str) -> Optional[str]:
        """Re-evaluate one project. Returns the new status when it changed."""

        project = self._projects.get_project(organization_id, project_id)
        if project is None:
            logger.warning("Project %s not found while syncing status", project_id)
            return None
        if project.status in self._hierarchy.project_skip_statuses:
            return None

        products = self._projects.list_products(organization_id, project_id)
        if not products:
            return None

        pending_installation = self._products_pending_installation(organization_id, project_id)
        h = self._hierarchy
        if all(self._is_complete(p, pending_installation) for p in products):
            target = h.project_complete_status
        elif project.status == h.project_approved_status and any(not h.is_idle(p.status) for p in products):
            target = h.project_in_production_status
        else:
            return None

        if h.project_rank(target) > h.project_rank(project.status):
            if not self._projects.advance_project_status(
                organization_id, project_id, target, unless_in=h.project_statuses_from(target)
            ):
                logger.info("Project %s already at or past %s", project_id, target)
                return None
            logger.info("Project %s status %s -> %s", project_id, project.status, target)
            return target
        if h.project_rank(target) < h.project_rank(project.status):
            logger.warning("Rejected status regression for project %s: %s -> %s", project_id, project.status, target)
        return None

    def sync_projects(self, organization_id: str, project_ids: Iterable[str]) -> dict[str, str]:
        changed: dict[str, str] = {}
        for project_id in sorted(set(project_ids)):
            status = self.sync_project(organization_id, project_id)
            if status:
                changed[project_id] = status
        return changed

    def _is_complete(self, product: Product, pending_installation: set[str]) -> bool:
        h = self._hierarchy
        rank = h.product_rank(product.status)
        # Ready is not final while an installation order for the product is still open.
        if product.product_id in pending_installation:
            return rank >= h.product_rank(h.final_status)
        return rank >= h.product_rank(h.production_complete_status)

    def _products_pending_installation(self, organization_id: str, project_id: str) -> set[str]:
        pending: set[str] = set()
        for order in self._work_orders.list_for_project(organization_id, project_id):
            if order.status == WorkStatus.DONE or not self._hierarchy.is_installation_order(order):
                continue
            pending.update(t.product_id for t in order.tasks if t.project_id in (None, project_id))
        return pending

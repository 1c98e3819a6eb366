"""Ordered lifecycle of products and projects, kept as immutable configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from ..core.enums import ProductStatus as PS
from ..core.enums import ProjectStatus, WorkOrderType, WorkStatus
from ..work_orders.model import WorkOrder, WorkOrderTask


@dataclass(frozen=True)
class StatusHierarchy:
    product_order: tuple[str, ...]
    project_order: tuple[str, ...]
    # Status of a product whose task finished on the given stage.
    done_stage_status: Mapping[str, str]
    # Status of a product whose task is currently on the given stage.
    active_stage_status: Mapping[str, str]
    default_done_status: str = PS.READY.value
    default_active_status: str = PS.ASSEMBLY.value
    waiting_status: str = PS.WAITING.value
    idle_statuses: frozenset[str] = frozenset()
    production_complete_status: str = PS.READY.value
    final_status: str = PS.INSTALLED.value
    project_approved_status: str = ProjectStatus.APPROVED.value
    project_in_production_status: str = ProjectStatus.IN_PRODUCTION.value
    project_complete_status: str = ProjectStatus.COMPLETE.value
    project_skip_statuses: frozenset[str] = frozenset()
    installation_stages: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "done_stage_status", MappingProxyType(dict(self.done_stage_status)))
        object.__setattr__(self, "active_stage_status", MappingProxyType(dict(self.active_stage_status)))

        known = set(self.product_order)
        referenced = {
            *self.done_stage_status.values(),
            *self.active_stage_status.values(),
            self.default_done_status,
            self.default_active_status,
            self.waiting_status,
            self.production_complete_status,
            self.final_status,
        }
        missing = sorted(referenced - known)
        if missing:
            raise ValueError(f"Product status order is missing: {', '.join(missing)}")
        if len(known) != len(self.product_order):
            raise ValueError("Product status order contains duplicates")

    def product_rank(self, status: Optional[str]) -> int:
        """Position in the product order; -1 for unknown or missing statuses."""
        try:
            return self.product_order.index(str(status))
        except ValueError:
            return -1

    def project_rank(self, status: Optional[str]) -> int:
        try:
            return self.project_order.index(str(status))
        except ValueError:
            return -1

    def product_statuses_from(self, status: str) -> tuple[str, ...]:
        """The status itself and everything ranked above it."""
        rank = self.product_rank(status)
        return self.product_order[rank:] if rank >= 0 else ()

    def project_statuses_from(self, status: str) -> tuple[str, ...]:
        rank = self.project_rank(status)
        return self.project_order[rank:] if rank >= 0 else ()

    def status_for_task(self, task: WorkOrderTask) -> str:
        decomposition = task.decomposition
        if task.status == WorkStatus.DONE:
            stage = decomposition.last_stage()
            return self.done_stage_status.get(stage, self.default_done_status) if stage else self.default_done_status
        if task.status == WorkStatus.IN_PROGRESS:
            stage = decomposition.active_stage()
            return self.active_stage_status.get(stage, self.default_active_status) if stage else self.default_active_status
        return self.waiting_status

    def is_idle(self, status: Optional[str]) -> bool:
        return status is None or status in self.idle_statuses

    def is_installation_order(self, work_order: WorkOrder) -> bool:
        if work_order.order_type == WorkOrderType.INSTALLATION:
            return True
        return any(step in self.installation_stages for step in work_order.production_steps)

    def with_product_order(self, order: Sequence[str]) -> "StatusHierarchy":
        return replace(self, product_order=tuple(order))


DEFAULT_HIERARCHY = StatusHierarchy(
    product_order=tuple(s.value for s in PS),
    project_order=(
        ProjectStatus.DRAFT.value,
        ProjectStatus.OFFERED.value,
        ProjectStatus.APPROVED.value,
        ProjectStatus.IN_PRODUCTION.value,
        ProjectStatus.ASSEMBLY.value,
        ProjectStatus.INSTALLATION.value,
        ProjectStatus.COMPLETE.value,
    ),
    done_stage_status={
        "Assembly": PS.READY.value,
        "Transport": PS.INSTALLING.value,
        "Installing": PS.INSTALLED.value,
        "Installation": PS.INSTALLED.value,
        "Cleanup": PS.INSTALLED.value,
        "Handover": PS.INSTALLED.value,
    },
    active_stage_status={
        "Cutting": PS.CUTTING.value,
        "EdgeBanding": PS.EDGE_BANDING.value,
        "Edge Banding": PS.EDGE_BANDING.value,
        "Drilling": PS.DRILLING.value,
        "Assembly": PS.ASSEMBLY.value,
        "Transport": PS.TRANSPORT.value,
        "Installing": PS.INSTALLING.value,
        "Installation": PS.INSTALLING.value,
        "Cleanup": PS.CLEANUP.value,
        "Handover": PS.HANDOVER.value,
    },
    idle_statuses=frozenset({PS.WAITING.value, PS.MATERIALS_ORDERED.value, PS.MATERIALS_READY.value}),
    project_skip_statuses=frozenset(
        {ProjectStatus.DRAFT.value, ProjectStatus.OFFERED.value, ProjectStatus.CANCELLED.value}
    ),
    installation_stages=frozenset({"Installing", "Installation", "Cleanup", "Handover"}),
)


def build_hierarchy(product_order: Optional[Sequence[str]] = None) -> StatusHierarchy:
    if not product_order:
        return DEFAULT_HIERARCHY
    return DEFAULT_HIERARCHY.with_product_order(product_order)

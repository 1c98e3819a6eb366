from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Daily attendance status of a worker."""

    PRESENT = "Present"
    FIELD = "Field"
    ABSENT = "Absent"
    SICK = "Sick"
    VACATION = "Vacation"
    WEEKEND = "Weekend"

    @property
    def is_working(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.FIELD)


class WorkStatus(str, Enum):
    """Lifecycle shared by work orders, tasks, processes and sub-tasks."""

    WAITING = "Waiting"
    IN_PROGRESS = "InProgress"
    DONE = "Done"


class WorkOrderType(str, Enum):
    PRODUCTION = "Production"
    INSTALLATION = "Installation"


class ProductStatus(str, Enum):
    WAITING = "Waiting"
    MATERIALS_ORDERED = "MaterialsOrdered"
    MATERIALS_READY = "MaterialsReady"
    CUTTING = "Cutting"
    EDGE_BANDING = "EdgeBanding"
    DRILLING = "Drilling"
    ASSEMBLY = "Assembly"
    READY = "Ready"
    TRANSPORT = "Transport"
    INSTALLING = "Installing"
    CLEANUP = "Cleanup"
    HANDOVER = "Handover"
    INSTALLED = "Installed"


class ProjectStatus(str, Enum):
    DRAFT = "Draft"
    OFFERED = "Offered"
    APPROVED = "Approved"
    IN_PRODUCTION = "InProduction"
    ASSEMBLY = "Assembly"
    INSTALLATION = "Installation"
    COMPLETE = "Complete"
    CANCELLED = "Cancelled"


class OfferBackfillPolicy(str, Enum):
    """Which accepted offer wins when a task's contracted value is recovered."""

    FIRST_ACCEPTED = "first_accepted"
    LATEST_ACCEPTED = "latest_accepted"
    HIGHEST = "highest"
    DISABLED = "disabled"

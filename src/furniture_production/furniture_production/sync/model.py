from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional


@dataclass(frozen=True)
class JobProgress:
    job: str
    done: int
    total: int
    item: Optional[str] = None
    failed: int = 0


ProgressCallback = Callable[[JobProgress], None]


@dataclass
class JobReport:
    """Outcome of a batch job; item failures are counted, never raised."""

    job: str
    total: int = 0
    processed: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    affected_work_orders: set[str] = field(default_factory=set)

    def record_failure(self, item: str, exc: BaseException) -> None:
        self.failed += 1
        self.errors.append(f"{item}: {exc}")

    def as_dict(self) -> dict:
        return {
            "job": self.job,
            "total": self.total,
            "processed": self.processed,
            "created": self.created,
            "updated": self.updated,
            "deleted": self.deleted,
            "failed": self.failed,
            "errors": list(self.errors),
            "affected_work_orders": sorted(self.affected_work_orders),
        }


@dataclass(frozen=True)
class StartupSyncReport:
    scheduled: int
    recalculation: JobReport
    projects_synced: int
    projects_changed: dict[str, str]

    def as_dict(self) -> dict:
        return {
            "scheduled": self.scheduled,
            "recalculation": self.recalculation.as_dict(),
            "projects_synced": self.projects_synced,
            "projects_changed": dict(self.projects_changed),
        }

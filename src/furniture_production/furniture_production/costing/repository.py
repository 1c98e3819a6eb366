from __future__ import annotations

from typing import Protocol

from .model import ProductionSnapshot


def snapshot_key(work_order_id: str) -> str:
    """One snapshot per work order; completing it again replaces the previous one."""
    return f"snap-{work_order_id}"


class SnapshotRepository(Protocol):
    def save(self, snapshot: ProductionSnapshot) -> str:
        """Create or replace the snapshot under its id. Returns snapshot_id."""

        raise NotImplementedError

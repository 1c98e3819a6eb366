from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Worker:
    """Domain entity: a production or installation worker paid per full day."""

    worker_id: str
    organization_id: str
    name: str
    daily_rate: float
    role: Optional[str] = None
    is_active: bool = True

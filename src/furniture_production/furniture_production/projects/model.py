from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Product:
    product_id: str
    organization_id: str
    project_id: str
    name: str
    status: Optional[str] = None
    quantity: int = 1


@dataclass(frozen=True)
class Project:
    project_id: str
    organization_id: str
    name: str
    status: Optional[str] = None

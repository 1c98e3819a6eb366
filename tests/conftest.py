from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import pytest

from src.furniture_production.furniture_production.container import Container, build_services
from src.furniture_production.furniture_production.core.settings import EngineSettings

from tests.fakes import (
    FixedMaterials,
    FixedOffers,
    InMemoryAttendance,
    InMemoryProjects,
    InMemorySnapshots,
    InMemoryWorkers,
    InMemoryWorkLogs,
    InMemoryWorkOrders,
    make_worker,
)


@dataclass
class Store:
    workers: InMemoryWorkers
    attendance: InMemoryAttendance
    worklogs: InMemoryWorkLogs
    work_orders: InMemoryWorkOrders
    projects: InMemoryProjects
    materials: FixedMaterials
    offers: FixedOffers
    snapshots: InMemorySnapshots


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 5, 1, 17, 0, 0)


@pytest.fixture
def store() -> Store:
    return Store(
        workers=InMemoryWorkers(make_worker()),
        attendance=InMemoryAttendance(),
        worklogs=InMemoryWorkLogs(),
        work_orders=InMemoryWorkOrders(),
        projects=InMemoryProjects(),
        materials=FixedMaterials(),
        offers=FixedOffers(),
        snapshots=InMemorySnapshots(),
    )


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings(recalc_parallelism=1, write_batch_limit=450)


@pytest.fixture
def container(store: Store, settings: EngineSettings, fixed_now: datetime) -> Container:
    return build_services(
        workers_repo=store.workers,
        attendance_repo=store.attendance,
        worklogs_repo=store.worklogs,
        work_orders_repo=store.work_orders,
        projects_repo=store.projects,
        materials=store.materials,
        offers=store.offers,
        snapshots_repo=store.snapshots,
        settings=settings,
        clock=lambda: fixed_now,
    )

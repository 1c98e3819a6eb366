from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceLedger
from .catalog.mysql_catalog_repository import MySQLAcceptedOfferLookup, MySQLMaterialCostProvider
from .catalog.repository import AcceptedOfferLookup, MaterialCostProvider
from .core.settings import EngineSettings
from .costing.mysql_snapshot_repository import MySQLSnapshotRepository
from .costing.repository import SnapshotRepository
from .costing.service import CostAggregator
from .database.connection import DBConfig, DatabaseConnection
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.repository import ProjectRepository
from .status.hierarchy import build_hierarchy
from .status.service import StatusPropagator
from .sync.jobs import ReconciliationJobs
from .sync.pipeline import ProductionSync
from .worklogs.mysql_worklog_repository import MySQLWorkLogRepository
from .worklogs.repository import WorkLogRepository
from .worklogs.service import WorkLogDeriver
from .work_orders.mysql_work_order_repository import MySQLWorkOrderRepository
from .work_orders.repository import WorkOrderRepository
from .work_orders.service import TaskService
from .workers.mysql_worker_repository import MySQLWorkerRepository
from .workers.repository import WorkerRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    workers_repo: WorkerRepository
    attendance_repo: AttendanceRepository
    worklogs_repo: WorkLogRepository
    work_orders_repo: WorkOrderRepository
    projects_repo: ProjectRepository
    materials: MaterialCostProvider
    offers: AcceptedOfferLookup
    snapshots_repo: SnapshotRepository

    deriver: WorkLogDeriver
    ledger: AttendanceLedger
    task_service: TaskService
    propagator: StatusPropagator
    aggregator: CostAggregator
    sync: ProductionSync
    jobs: ReconciliationJobs


def build_services(
    *,
    workers_repo: WorkerRepository,
    attendance_repo: AttendanceRepository,
    worklogs_repo: WorkLogRepository,
    work_orders_repo: WorkOrderRepository,
    projects_repo: ProjectRepository,
    materials: MaterialCostProvider,
    offers: AcceptedOfferLookup,
    snapshots_repo: SnapshotRepository,
    settings: Optional[EngineSettings] = None,
    conn: Optional[DatabaseConnection] = None,
    clock=None,
) -> Container:
    settings = settings or EngineSettings()

    deriver = WorkLogDeriver(worklogs_repo, work_orders_repo, split_tolerance=settings.split_tolerance, clock=clock)
    ledger = AttendanceLedger(attendance_repo, workers_repo, work_orders_repo, deriver, clock=clock)
    task_service = TaskService(work_orders_repo, clock=clock)
    propagator = StatusPropagator(
        projects_repo,
        work_orders_repo,
        hierarchy=build_hierarchy(settings.product_status_order),
    )
    aggregator = CostAggregator(
        work_orders_repo,
        worklogs_repo,
        materials,
        offers,
        propagator,
        snapshots_repo,
        backfill=settings.offer_backfill_policy,
        clock=clock,
    )
    sync = ProductionSync(
        ledger,
        deriver,
        task_service,
        aggregator,
        attendance_repo,
        workers_repo,
        work_orders_repo,
        parallelism=settings.recalc_parallelism,
        clock=clock,
    )
    jobs = ReconciliationJobs(
        sync,
        attendance_repo,
        workers_repo,
        work_orders_repo,
        projects_repo,
        deriver,
        task_service,
        propagator,
        write_batch_limit=settings.write_batch_limit,
        schedule_days=settings.default_schedule_days,
        clock=clock,
    )

    return Container(
        conn=conn,
        workers_repo=workers_repo,
        attendance_repo=attendance_repo,
        worklogs_repo=worklogs_repo,
        work_orders_repo=work_orders_repo,
        projects_repo=projects_repo,
        materials=materials,
        offers=offers,
        snapshots_repo=snapshots_repo,
        deriver=deriver,
        ledger=ledger,
        task_service=task_service,
        propagator=propagator,
        aggregator=aggregator,
        sync=sync,
        jobs=jobs,
    )


def build_container(*, db_config: dict, settings: Optional[EngineSettings] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    return build_services(
        workers_repo=MySQLWorkerRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        worklogs_repo=MySQLWorkLogRepository(conn),
        work_orders_repo=MySQLWorkOrderRepository(conn),
        projects_repo=MySQLProjectRepository(conn),
        materials=MySQLMaterialCostProvider(conn),
        offers=MySQLAcceptedOfferLookup(conn),
        snapshots_repo=MySQLSnapshotRepository(conn),
        settings=settings,
        conn=conn,
    )

"""Run schema setup and reconciliation jobs from the command line (cron, deploy hooks)."""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.furniture_production.furniture_production.common.app_logging import configure_logging
from src.furniture_production.furniture_production.common.datetime_utils import parse_iso_date
from src.furniture_production.furniture_production.container import build_container
from src.furniture_production.furniture_production.core.settings import EngineSettings
from src.furniture_production.furniture_production.database.bootstrap import apply_schema, list_tables
from src.furniture_production.furniture_production.sync.model import JobProgress

logger = logging.getLogger("run_sync")


def _log_progress(event: JobProgress) -> None:
    logger.info("%s %d/%d %s", event.job, event.done, event.total, event.item or "")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Labor costing reconciliation jobs")
    parser.add_argument("--org", help="Organization id (required by every job)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Apply database/schema.sql to the configured database")

    sub.add_parser("startup", help="Schedule orphaned orders, recalculate active ones, resync projects")
    sub.add_parser("recalculate", help="Recalculate every active work order")

    repair = sub.add_parser("repair", help="Fix task statuses that disagree with their stages")
    repair.add_argument("--all-orgs", action="store_true", help="Repair every organization")

    backfill = sub.add_parser("backfill", help="Replay work-log derivation from attendance")
    backfill.add_argument("--from", dest="date_from", required=True, type=parse_iso_date)
    backfill.add_argument("--to", dest="date_to", required=True, type=parse_iso_date)

    weekends = sub.add_parser("weekends", help="Mark Saturdays and Sundays as Weekend for all workers")
    weekends.add_argument("--year", required=True, type=int)
    weekends.add_argument("--month", required=True, type=int)
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv(override=False)
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), log_file=getattr(settings, "LOG_FILE", None))

    if args.command == "init-db":
        db_config = dict(settings.DB_CONFIG)
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        tables = list_tables(db_config)
        logger.info("Applied schema.sql to %s@%s/%s", db_config.get("user"), db_config.get("host"), db_config.get("database"))
        print(json.dumps({"database": db_config.get("database"), "tables": len(tables)}, indent=2))
        return 0
    if not args.org and not getattr(args, "all_orgs", False):
        parser.error(f"--org is required for {args.command}")

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=EngineSettings.from_module(settings))

    if args.command == "startup":
        result = container.jobs.run_startup_sync(args.org, progress=_log_progress).as_dict()
    elif args.command == "recalculate":
        result = container.sync.recalculate_all_active(args.org, progress=_log_progress).as_dict()
    elif args.command == "repair":
        org = None if args.all_orgs else args.org
        result = container.jobs.repair_all_statuses(org, progress=_log_progress).as_dict()
    elif args.command == "backfill":
        result = container.jobs.backfill_from_attendance(
            args.org, args.date_from, args.date_to, progress=_log_progress
        ).as_dict()
    else:
        result = container.jobs.auto_populate_weekends(
            args.org, None, args.year, args.month, progress=_log_progress
        ).as_dict()

    print(json.dumps(result, indent=2, default=str))
    return 1 if result.get("failed") else 0


if __name__ == "__main__":
    raise SystemExit(main())

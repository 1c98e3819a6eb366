"""Example: drive the service layer directly (no Flask).

Controllers are thin; recording attendance already cascades into work logs,
work-order costs and product/project statuses.
"""

import importlib
from datetime import date

from config import get_settings_module

from src.furniture_production.furniture_production.container import build_container
from src.furniture_production.furniture_production.core.enums import AttendanceStatus
from src.furniture_production.furniture_production.core.settings import EngineSettings


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=EngineSettings.from_module(settings))

    org = "org-demo"
    container.sync.record_attendance(org, "w-1", date.today(), AttendanceStatus.PRESENT)
    for warning in container.sync.missing_attendance_warnings(org, date.today()):
        print("missing attendance:", warning.worker_name, warning.work_order_name, warning.item_name)


if __name__ == "__main__":
    main()

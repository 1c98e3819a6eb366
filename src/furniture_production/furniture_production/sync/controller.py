from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body, organization_id
from ..common.validators import require_date, require_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sync/recalculate-active", methods=["POST"], endpoint="recalculate_all_active")
    def recalculate_all_active():
        report = container.sync.recalculate_all_active(organization_id())
        return jsonify({"success": True, "report": report.as_dict()})

    @app.route("/api/sync/backfill", methods=["POST"], endpoint="backfill_from_attendance")
    def backfill_from_attendance():
        data = json_body()
        report = container.jobs.backfill_from_attendance(
            organization_id(),
            require_date(data.get("date_from", ""), "date_from"),
            require_date(data.get("date_to", ""), "date_to"),
        )
        return jsonify({"success": True, "report": report.as_dict()})

    @app.route("/api/sync/weekends", methods=["POST"], endpoint="auto_populate_weekends")
    def auto_populate_weekends():
        data = json_body()
        report = container.jobs.auto_populate_weekends(
            organization_id(),
            None,
            require_int(data.get("year"), "year"),
            require_int(data.get("month"), "month"),
        )
        return jsonify({"success": True, "report": report.as_dict()})

    @app.route("/api/sync/startup", methods=["POST"], endpoint="run_startup_sync")
    def run_startup_sync():
        report = container.jobs.run_startup_sync(organization_id())
        return jsonify({"success": True, "report": report.as_dict()})

    @app.route("/api/sync/repair", methods=["POST"], endpoint="repair_all_statuses")
    def repair_all_statuses():
        report = container.jobs.repair_all_statuses(organization_id())
        return jsonify({"success": True, "report": report.as_dict()})

from __future__ import annotations

from dataclasses import asdict

from flask import Flask, jsonify, request

from ..common.http import json_body, organization_id
from ..common.validators import require_date, require_non_empty
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance", methods=["POST"], endpoint="record_attendance")
    def record_attendance():
        data = json_body()
        try:
            status = AttendanceStatus(data.get("status"))
        except ValueError:
            raise ValidationError(f"Unknown attendance status: {data.get('status')!r}")

        attendance_id = container.sync.record_attendance(
            organization_id(),
            require_non_empty(data.get("worker_id"), "worker_id"),
            require_date(data.get("date"), "date"),
            status,
            data.get("notes"),
            skip_recalculation=bool(data.get("skip_recalculation", False)),
        )
        return jsonify({"success": True, "attendance_id": attendance_id})

    @app.route("/api/attendance/warnings", methods=["GET"], endpoint="missing_attendance_warnings")
    def missing_attendance_warnings():
        work_date = require_date(request.args.get("date", ""), "date")
        warnings = container.sync.missing_attendance_warnings(organization_id(), work_date)
        return jsonify(
            {
                "success": True,
                "warnings": [dict(asdict(w), work_date=w.work_date.isoformat()) for w in warnings],
            }
        )

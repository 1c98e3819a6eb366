from __future__ import annotations

from dataclasses import asdict

from flask import Flask, jsonify

from ..common.http import json_body, organization_id
from ..common.validators import optional_datetime, require_int, require_non_empty
from ..core.enums import WorkStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .decomposition import Process, SubTask
from .model import WorkOrderTask


def _status(value) -> WorkStatus:
    try:
        return WorkStatus(value or WorkStatus.WAITING.value)
    except ValueError:
        raise ValidationError(f"Unknown status: {value!r}")


def _process(raw: dict) -> Process:
    return Process(
        process_name=require_non_empty(raw.get("process_name", ""), "process_name"),
        status=_status(raw.get("status")),
        worker_id=raw.get("worker_id"),
        worker_name=raw.get("worker_name"),
        helpers=tuple(raw.get("helpers") or ()),
        started_at=optional_datetime(raw.get("started_at"), "started_at"),
        completed_at=optional_datetime(raw.get("completed_at"), "completed_at"),
    )


def _subtask(raw: dict) -> SubTask:
    return SubTask(
        subtask_id=raw.get("subtask_id") or "",
        quantity=require_int(raw.get("quantity") or 0, "quantity"),
        current_stage=raw.get("current_stage"),
        status=_status(raw.get("status")),
        worker_id=raw.get("worker_id"),
        worker_name=raw.get("worker_name"),
        helpers=tuple(raw.get("helpers") or ()),
    )


def _task_json(task: WorkOrderTask) -> dict:
    return {
        "task_id": task.task_id,
        "work_order_id": task.work_order_id,
        "status": task.status.value,
        "is_paused": task.is_paused,
        "started_at": task.started_at.isoformat() if task.started_at else None,
        "completed_at": task.completed_at.isoformat() if task.completed_at else None,
        "subtasks": [
            {"subtask_id": s.subtask_id, "quantity": s.quantity, "current_stage": s.current_stage, "status": s.status.value}
            for s in task.subtasks
        ],
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/tasks/<task_id>/pause", methods=["POST"], endpoint="toggle_pause")
    def toggle_pause(task_id: str):
        data = json_body()
        task = container.sync.toggle_pause(
            organization_id(),
            task_id,
            bool(data.get("paused", True)),
            subtask_id=data.get("subtask_id"),
        )
        return jsonify({"success": True, "task": _task_json(task)})

    @app.route("/api/tasks/<task_id>/processes", methods=["PUT"], endpoint="update_task_processes")
    def update_task_processes(task_id: str):
        processes = [_process(p) for p in json_body().get("processes") or []]
        task = container.sync.update_task_processes(organization_id(), task_id, processes)
        return jsonify({"success": True, "task": _task_json(task)})

    @app.route("/api/tasks/<task_id>/subtasks", methods=["PUT"], endpoint="create_or_update_subtasks")
    def create_or_update_subtasks(task_id: str):
        subtasks = [_subtask(s) for s in json_body().get("subtasks") or []]
        task = container.sync.create_or_update_subtasks(organization_id(), task_id, subtasks)
        return jsonify({"success": True, "task": _task_json(task)})

    @app.route("/api/tasks/<task_id>/subtasks/<subtask_id>/move", methods=["POST"], endpoint="move_subtask")
    def move_subtask(task_id: str, subtask_id: str):
        target = json_body().get("target_stage", "")
        task = container.sync.move_subtask(organization_id(), task_id, subtask_id, target)
        return jsonify({"success": True, "task": _task_json(task)})

    @app.route("/api/work-orders/<work_order_id>/recalculate", methods=["POST"], endpoint="recalculate_work_order")
    def recalculate_work_order(work_order_id: str):
        result = container.sync.recalculate_work_order(organization_id(), work_order_id)
        order = result.work_order
        return jsonify(
            {
                "success": True,
                "work_order_id": order.work_order_id,
                "status": order.status.value,
                "total_value": order.total_value,
                "material_cost": order.material_cost,
                "actual_labor_cost": order.actual_labor_cost,
                "gross_profit": order.gross_profit,
                "profit": order.profit,
                "profit_margin": order.profit_margin,
                "labor_cost_variance": order.labor_cost_variance,
                "snapshot_id": result.snapshot_id,
            }
        )

    @app.route("/api/work-orders/<work_order_id>/profit-warnings", methods=["GET"], endpoint="profit_warnings")
    def profit_warnings(work_order_id: str):
        warnings = container.sync.validate_work_order_profit_warnings(organization_id(), work_order_id)
        return jsonify({"success": True, "warnings": [asdict(w) for w in warnings]})

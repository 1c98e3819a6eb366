from __future__ import annotations

from flask import Flask, jsonify, request

from ..core.constants import ORGANIZATION_HEADER
from ..core.exceptions import NotFoundError, ValidationError


def organization_id() -> str:
    value = (request.headers.get(ORGANIZATION_HEADER) or "").strip()
    if not value:
        raise ValidationError(f"Missing {ORGANIZATION_HEADER} header")
    return value


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation_error(e: ValidationError):
        return jsonify({"success": False, "message": str(e)}), 400

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return jsonify({"success": False, "message": str(e)}), 404

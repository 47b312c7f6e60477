from __future__ import annotations

import dataclasses
from datetime import date, datetime
from enum import Enum
from functools import wraps

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..access.model import Principal
from ..app_logger import get_logger
from ..core.enums import Role
from ..core.exceptions import (
    ConflictRetryable,
    DomainError,
    Forbidden,
    InvalidTransition,
    NotFound,
    ValidationError,
)

log = get_logger("http")

# Most specific first.
STATUS_BY_ERROR = (
    (ValidationError, 400),
    (Forbidden, 403),
    (NotFound, 404),
    (InvalidTransition, 409),
    (ConflictRetryable, 503),
)


def status_for(exc: DomainError) -> int:
    for kind, status in STATUS_BY_ERROR:
        if isinstance(exc, kind):
            return status
    return 400


def to_payload(value):
    """Turn service results into JSON-friendly structures."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_payload(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(to_payload(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    return value


def ok(data=None, status: int = 200):
    return jsonify({"success": True, "data": to_payload(data)}), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def int_field(data: dict, name: str) -> int:
    try:
        return int(data.get(name))
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "kind": "Unauthenticated", "message": "Please log in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def principal_from_session() -> Principal:
    """Build the acting principal from what the login layer stored in the session."""
    try:
        role = Role(str(session.get("role") or ""))
    except ValueError:
        raise Forbidden("Unknown role")

    linkage = session.get("linkage_id")
    return Principal(
        role=role,
        user_id=int(session["user_id"]),
        linkage_id=int(linkage) if linkage is not None else None,
    )


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = status_for(exc)
        if status == 503:
            log.warning("transient failure in %s #%s: %s", exc.operation, exc.entity_id, exc)
        return (
            jsonify(
                {
                    "success": False,
                    "kind": type(exc).__name__,
                    "message": str(exc) or type(exc).__name__,
                    "operation": exc.operation,
                    "entity_id": exc.entity_id,
                }
            ),
            status,
        )

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"success": False, "kind": exc.name, "message": exc.description}), exc.code
        log.exception("unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "kind": "InternalError", "message": "Internal server error"}), 500

from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..core.exceptions import (
    AuthorizationError,
    DebtNotFound,
    DomainError,
    InvalidStageTransition,
    RequestNotFound,
    StaleState,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)

STAFF_HEADER = "X-Staff-Id"
STUDENT_HEADER = "X-Student-Id"

_STATUS_CODES = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (RequestNotFound, 404),
    (DebtNotFound, 404),
    (InvalidStageTransition, 409),
    (StaleState, 409),
)


def to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


def status_code_for(error: DomainError) -> int:
    for error_type, code in _STATUS_CODES:
        if isinstance(error, error_type):
            return code
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        code = status_code_for(error)
        logger.info("%s %s -> %s %s: %s", request.method, request.path, code, type(error).__name__, error)
        return jsonify({"error": type(error).__name__, "message": str(error)}), code


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def header_id(name: str, *, required: bool = True) -> Optional[int]:
    raw = (request.headers.get(name) or "").strip()
    if not raw:
        if required:
            raise AuthorizationError(f"Missing {name} header")
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Invalid {name} header")


def body_date(body: dict, key: str, label: str) -> date:
    raw = body.get(key)
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError(f"{label} is required")
    try:
        return parse_iso_date(raw.strip())
    except ValueError:
        raise ValidationError(f"{label} must be YYYY-MM-DD")


def parse_enum(enum_type, raw, label: str):
    try:
        return enum_type((raw or "").strip().lower())
    except (ValueError, AttributeError):
        raise ValidationError(f"Invalid {label}: {raw!r}")

from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any

from flask import g, jsonify, request

from ..core.context import ActorContext
from ..core.exceptions import (
    AuthorizationError,
    CreditExpired,
    DomainError,
    InsufficientCredits,
    NotFound,
    TransactionConflict,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (NotFound, 404),
    (AuthorizationError, 401),
    (TransactionConflict, 409),
    (InsufficientCredits, 409),
    (CreditExpired, 409),
)


def to_json(value: Any) -> Any:
    """Dataclasses, dates, Decimals and enums into plain JSON values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": to_json(data)}), status


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def current_actor() -> ActorContext:
    return g.actor


def actor_required(view):
    """Read the actor supplied by the upstream auth layer; no authorization decision here."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        school_id = (request.headers.get("X-School-Id") or "").strip()
        user_id = (request.headers.get("X-User-Id") or "").strip()
        if not school_id.isdigit() or not user_id:
            return fail("Missing actor context", 401)
        g.actor = ActorContext(
            school_id=int(school_id),
            user_id=user_id,
            user_name=(request.headers.get("X-User-Name") or "").strip() or user_id,
            user_role=(request.headers.get("X-User-Role") or "").strip() or "staff",
        )
        return view(*args, **kwargs)

    return wrapper


def domain_errors(view):
    """Operation boundary: every failure becomes one human-readable message."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            for error_type, status in _STATUS_BY_ERROR:
                if isinstance(e, error_type):
                    return fail(str(e), status)
            return fail(str(e), 400)
        except (KeyError, ValueError, TypeError) as e:
            return fail(f"Invalid request: {e}", 400)
        except Exception:
            logger.exception("Unhandled error in %s", request.path)
            return fail("Internal error, nothing was changed", 500)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def optional_int(value: Any):
    if value is None or value == "":
        return None
    return int(value)

from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session

from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type, int] = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    TransportError: 503,
}


def error_response(exc: DomainError):
    status = next((code for cls, code in STATUS_BY_ERROR.items() if isinstance(exc, cls)), 400)
    if status >= 500:
        logger.warning("Request failed: %s", exc)
    return jsonify({"success": False, "error": type(exc).__name__, "message": str(exc)}), status


def actor_is_admin() -> bool:
    """Privileged flag placed in the Flask session by the external login."""
    return bool(session.get("is_admin", False))


def admin_required(view):
    @wraps(view)
    async def wrapper(*args, **kwargs):
        if not actor_is_admin():
            return error_response(AuthorizationError("Administrator access required"))
        return await view(*args, **kwargs)

    return wrapper

"""Helpers shared by the Flask controllers.

Every API response has the shape ``{"success": true, "data": ...}`` or
``{"success": false, "error": message, "code": CODE}``.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import current_app, jsonify, request, session

from ..core.constants import DEFAULT_RATE_LIMIT_MAX, DEFAULT_RATE_LIMIT_WINDOW_SECONDS
from ..core.exceptions import (
    AuthenticationError,
    ConflictError,
    DomainError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from ..core.logging import get_logger

logger = get_logger(__name__)

WORKSPACE_HEADER = "X-Workspace-Id"

_STATUS_BY_ERROR = (
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (ValidationError, 400),
    (ConflictError, 409),
    (InternalError, 500),
)


def json_ok(data: Any = None, *, message: Optional[str] = None, status: int = 200):
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status


def json_error(message: str, *, code: str, status: int):
    return jsonify({"success": False, "error": message, "code": code}), status


def error_response(exc: DomainError):
    for exc_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, exc_type):
            if status >= 500:
                return json_error("Internal server error", code=exc.code, status=status)
            return json_error(str(exc), code=exc.code, status=status)
    return json_error(str(exc), code=exc.code, status=400)


def current_user_id() -> str:
    user_id = session.get("user_id")
    if not user_id:
        raise AuthenticationError("Not authenticated")
    return str(user_id)


def current_workspace_id(*, required: bool = True) -> Optional[str]:
    workspace_id = request.headers.get(WORKSPACE_HEADER) or session.get("workspace_id")
    if not workspace_id:
        if required:
            raise NotFoundError("No workspace found for user")
        return None
    return str(workspace_id)


def request_json() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def api_view(view):
    """Translate domain errors into JSON failures; anything else is a 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return json_error("Internal server error", code=InternalError.code, status=500)

    return wrapper


def rate_limited(scope: str):
    """Throttle a view per authenticated user with the app's rate limiter."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            limiter = current_app.extensions["worktrack"].rate_limiter
            key = f"{scope}:{current_user_id()}"
            allowed = limiter.check(
                key,
                int(current_app.config.get("RATE_LIMIT_MAX", DEFAULT_RATE_LIMIT_MAX)),
                float(current_app.config.get("RATE_LIMIT_WINDOW_SECONDS", DEFAULT_RATE_LIMIT_WINDOW_SECONDS)),
            )
            if not allowed:
                return json_error("Too many requests", code="RATE_LIMITED", status=429)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not session.get("user_id"):
            return json_error("Not authenticated", code=AuthenticationError.code, status=401)
        return view(*args, **kwargs)

    return wrapper

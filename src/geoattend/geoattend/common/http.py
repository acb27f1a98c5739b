from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Optional

from flask import Flask, jsonify, request, session

from ..core.enums import RateLimitPolicy, Role
from ..core.exceptions import (
    AlreadyVerifiedError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    RateLimitExceeded,
    ValidationError,
)
from ..users.model import Principal
from .datetime_utils import now_local, to_epoch_ms
from .logging import get_logger

logger = get_logger(__name__)


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def current_principal() -> Optional[Principal]:
    """Principal from the session written by the login flow."""

    if "user_id" not in session:
        return None
    try:
        role = Role(session.get("role"))
    except ValueError:
        return None
    return Principal(user_id=int(session["user_id"]), role=role)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_principal() is None:
            return fail("Authentication required", 401)
        return view(*args, **kwargs)

    return wrapper


def client_ip() -> str:
    return request.remote_addr or "unknown"


def rate_limited(rate_limits, policy: RateLimitPolicy, identifier: Callable[[], Optional[str]]):
    """Guard a view with a RateLimitService; denial surfaces as RateLimitExceeded."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            rate_limits.enforce(identifier(), policy)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(e: RateLimitExceeded):
        resp, status = fail(str(e), 429)
        resp.headers["Retry-After"] = str(e.retry_after_seconds(now_local()))
        resp.headers["X-RateLimit-Remaining"] = str(e.remaining)
        resp.headers["X-RateLimit-Reset"] = str(to_epoch_ms(e.reset_at))
        return resp, status

    @app.errorhandler(ValidationError)
    def handle_validation(e: ValidationError):
        logger.warning("Validation failed on %s: %s", request.path, e)
        return fail(str(e), 400)

    @app.errorhandler(NotFoundError)
    def handle_not_found(e: NotFoundError):
        logger.warning("Not found on %s: %s", request.path, e)
        return fail(str(e), 404)

    @app.errorhandler(AuthorizationError)
    def handle_forbidden(e: AuthorizationError):
        return fail(str(e), 403)

    @app.errorhandler(AlreadyVerifiedError)
    @app.errorhandler(ConflictError)
    def handle_conflict(e: DomainError):
        return fail(str(e), 409)

    @app.errorhandler(DomainError)
    def handle_domain(e: DomainError):
        logger.warning("Unhandled domain error on %s: %s", request.path, e)
        return fail(str(e), 400)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        # HTTPException subclasses (404 routing, 405) keep their own status.
        code = getattr(e, "code", None)
        if isinstance(code, int) and 400 <= code < 500:
            return fail(getattr(e, "description", str(e)), code)
        logger.exception("Unhandled error on %s", request.path)
        return fail("Internal server error", 500)

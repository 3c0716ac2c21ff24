import logging
from flask import request, current_app
from werkzeug.exceptions import (
    HTTPException, BadRequest, BadGateway, Conflict, NotFound,
    UnsupportedMediaType, Unauthorized, Forbidden,
)
from typing import Any, Dict, Tuple
from functools import wraps

from models import WatchlistStatus

logger = logging.getLogger(__name__)

# -----------------------------
# Domain errors
# -----------------------------

class WatchlistError(Exception):
    """Base class for errors raised by the domain services."""


class ValidationError(WatchlistError, BadRequest):
    """A required field is missing or malformed."""


class ConflictError(WatchlistError, Conflict):
    """A uniqueness rule would be broken (name, username, email, movie id)."""


class NotFoundError(WatchlistError, NotFound):
    """The referenced id does not exist."""


class UpstreamError(WatchlistError, BadGateway):
    """TMDB could not be reached or answered with an error status."""


class MalformedPayloadError(UpstreamError):
    """TMDB answered, but the body was not the JSON we expect."""


# -----------------------------
# JSON error handlers
# -----------------------------

def install_json_error_handlers(app):
    @app.errorhandler(HTTPException)
    def handle_http(e: HTTPException):
        return {
            "error": {
                "status": e.code,
                "code": e.name.replace(" ", "_").upper(),
                "message": e.description
            }
        }, e.code

    @app.errorhandler(Exception)
    def handle_generic(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        # Avoid leaking details in production responses
        return {
            "error": {
                "status": 500,
                "code": "INTERNAL_SERVER_ERROR",
                "message": "Internal Server Error"
            }
        }, 500


# -----------------------------
# Validators & helpers
# -----------------------------

ALLOWED_ORDERS = {"id", "-id", "title", "-title", "release_date", "-release_date"}

def expect_json():
    if request.method in {"POST", "PUT", "PATCH"}:
        ctype = request.headers.get("Content-Type", "")
        if "application/json" not in ctype:
            raise UnsupportedMediaType("Use Content-Type: application/json")

def read_json() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        raise BadRequest("Invalid or missing JSON body")
    if not isinstance(data, dict):
        raise BadRequest("JSON body must be an object")
    return data

def require_text(v: Any, field: str, max_len: int = 255) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValidationError(f"{field} is required")
    if len(v) > max_len:
        raise ValidationError(f"{field} must be ≤ {max_len} chars")
    return v

def optional_text(v: Any, field: str) -> str | None:
    if v is None:
        return None
    if not isinstance(v, str):
        raise ValidationError(f"{field} must be a string")
    return v

def parse_int(v: Any, field: str) -> int:
    if isinstance(v, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")

def parse_rating(v: Any) -> int | None:
    if v is None or v == "":
        return None
    if isinstance(v, bool):
        raise ValidationError("rating must be an integer 0–10")
    if isinstance(v, float):
        if not v.is_integer():
            raise ValidationError("rating must be an integer 0–10")
    try:
        r = int(v)
    except (TypeError, ValueError):
        raise ValidationError("rating must be an integer 0–10")
    if not (0 <= r <= 10):
        raise ValidationError("rating must be between 0 and 10")
    return r

def parse_status(v: Any) -> WatchlistStatus:
    try:
        return WatchlistStatus.parse(v)
    except ValueError:
        raise BadRequest(f"Invalid status: {v}")

def validate_pagination() -> Tuple[int, int]:
    try:
        page = max(int(request.args.get("page", 1)), 1)
        size = int(request.args.get("page_size", 20))
    except (TypeError, ValueError):
        raise BadRequest("page and page_size must be integers")
    page_size = max(min(size, 100), 1)
    return page, page_size

def validate_order_param() -> str:
    order = request.args.get("order", "id")
    if order not in ALLOWED_ORDERS:
        raise BadRequest(f"order must be one of {sorted(ALLOWED_ORDERS)}")
    return order


# -----------------------------
# Auth decorator
# -----------------------------

def require_auth(fn):
    """
    If API_TOKEN is configured on the app, require a Bearer token on mutating requests.
    When API_TOKEN is not set, auth is effectively disabled (everything allowed).
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = current_app.config.get("API_TOKEN")
        if not token:
            return fn(*args, **kwargs)

        hdr = request.headers.get("Authorization", "")
        parts = hdr.split(" ", 1)
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise Unauthorized("Missing or invalid Authorization header")
        if parts[1] != token:
            raise Forbidden("Invalid token")
        return fn(*args, **kwargs)
    return wrapper

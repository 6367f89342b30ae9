"""JSON plumbing shared by the API blueprints.

Error responses, request body decoding, bearer-token authentication and
request logging live here so the route modules stay small.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Type, TypeVar

from flask import Flask, g, jsonify, request
from pydantic import BaseModel, ValidationError

from .errors import AuthenticationError, HabitlineError, InvalidRequestFormatError
from .extensions import get_state
from .logging_config import get_logger
from .services.tokens import decode_access_token

logger = get_logger("web")

FormT = TypeVar("FormT", bound=BaseModel)

STATUS_BY_CODE = {
    "not_found": 404,
    "forbidden": 403,
    "invalid_input": 400,
    "invalid_request_format": 400,
    "already_exists": 409,
    "unauthorized": 401,
    "persistence_failure": 500,
    "deadline_exceeded": 503,
}


def validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by top-level field name."""

    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = str(loc[0]) if loc else "__root__"
        structured.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return structured


def parse_body(form_cls: Type[FormT]) -> FormT:
    """Decode the JSON request body into ``form_cls``."""

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise InvalidRequestFormatError()
    return form_cls.model_validate(payload)


def parse_query(form_cls: Type[FormT]) -> FormT:
    """Decode query-string arguments into ``form_cls``."""

    return form_cls.model_validate(request.args.to_dict())


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("missing bearer token")
    return token.strip()


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """Require a valid access token and expose its user as ``g.user_id``."""

    @wraps(view)
    def wrapped(*args: Any, **kwargs: Any) -> Any:
        g.user_id = decode_access_token(bearer_token(), get_state().config.JWT)
        return view(*args, **kwargs)

    return wrapped


def register_error_handlers(app: Flask) -> None:
    """Translate service errors into JSON responses."""

    @app.errorhandler(HabitlineError)
    def _handle_habitline_error(exc: HabitlineError):
        status = STATUS_BY_CODE.get(exc.code, 500)
        if status >= 500:
            logger.error("Request failed", extra={"code": exc.code, "path": request.path})
        return jsonify({"error": exc.code, "message": exc.message}), status

    @app.errorhandler(ValidationError)
    def _handle_validation_error(exc: ValidationError):
        return jsonify({"error": "validation_failed", "details": validation_errors(exc)}), 400

    @app.errorhandler(404)
    def _handle_not_found(_exc):
        return jsonify({"error": "not_found", "message": "resource not found"}), 404

    @app.errorhandler(405)
    def _handle_method_not_allowed(_exc):
        return jsonify({"error": "method_not_allowed", "message": "method not allowed"}), 405


def register_request_logging(app: Flask) -> None:
    """Log every inbound request."""

    @app.before_request
    def _log_request() -> None:
        logger.info(
            "Request received",
            extra={
                "method": request.method,
                "path": request.path,
                "remote_addr": request.remote_addr,
            },
        )


__all__ = [
    "login_required",
    "parse_body",
    "parse_query",
    "register_error_handlers",
    "register_request_logging",
    "validation_errors",
]

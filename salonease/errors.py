"""Error taxonomy and the Flask handlers that render it."""
from __future__ import annotations

import traceback

from flask import Flask, current_app, jsonify
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .extensions import db


class ApiError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    error = "server_error"

    def __init__(self, message: str, *, error: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error

    def to_dict(self) -> dict[str, object]:
        return {"success": False, "error": self.error, "message": self.message}


class ValidationError(ApiError):
    status_code = 400
    error = "invalid_payload"


class AuthenticationError(ApiError):
    status_code = 401
    error = "unauthorized"


class AuthorizationError(ApiError):
    status_code = 403
    error = "forbidden"


class NotFoundError(ApiError):
    status_code = 404
    error = "not_found"


class ConflictError(ApiError):
    # Conflicts share 400 with validation failures.
    status_code = 400
    error = "conflict"


def _error_response(status: int, error: str, message: str, **extra: object):
    body: dict[str, object] = {"success": False, "error": error, "message": message}
    body.update(extra)
    return jsonify(body), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def handle_api_error(exc: ApiError):
        # Drop any half-applied changes from the rejected request.
        db.session.rollback()
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc: IntegrityError):
        db.session.rollback()
        current_app.logger.warning("Integrity constraint rejected write: %s", exc.orig)
        return _error_response(400, "conflict", "Resource conflicts with an existing record")

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(exc: SQLAlchemyError):
        db.session.rollback()
        current_app.logger.exception("Database operation failed", exc_info=exc)
        return _error_response(500, "database_error", "Database operation failed")

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        error = (exc.name or "error").lower().replace(" ", "_")
        return _error_response(exc.code or 500, error, exc.description or exc.name)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        current_app.logger.exception("Unhandled error", exc_info=exc)
        settings = current_app.config["SETTINGS"]
        if settings.is_production:
            return _error_response(500, "server_error", "Server Error")
        return _error_response(
            500,
            "server_error",
            str(exc) or "Server Error",
            stack=traceback.format_exception(type(exc), exc, exc.__traceback__),
        )

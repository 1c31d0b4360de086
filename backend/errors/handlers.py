# backend/errors/handlers.py
"""Centralized JSON error handling for the feature rules backend.

Defines the HTTP-facing exceptions raised by blueprints and registers Flask
error handlers so that errors are returned as consistent JSON payloads
instead of HTML pages.
"""


from __future__ import annotations

from typing import Any

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from observability.logging import get_logger


logger = get_logger("errors")


class ApiError(Exception):
    """Base class for errors rendered as ``{"error", "detail"}``.

    Attributes:
        detail: Human-readable description of the error.
    """

    status_code = 500
    error_name = "InternalServerError"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class BadRequest(ApiError):
    """Exception raised for malformed requests (HTTP 400)."""

    status_code = 400
    error_name = "BadRequest"


class ServiceUnavailable(ApiError):
    """Exception raised while no rule configuration is loaded (HTTP 503)."""

    status_code = 503
    error_name = "ServiceUnavailable"


def register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers for domain and HTTP errors.

    Args:
        app: The Flask application instance to configure.
    """

    @app.errorhandler(ApiError)
    def _on_api_error(err: ApiError) -> tuple[Any, int]:
        """Render BadRequest / ServiceUnavailable."""
        return (
            jsonify({"error": err.error_name, "detail": err.detail}),
            err.status_code,
        )

    @app.errorhandler(HTTPException)
    def _on_http_exception(err: HTTPException) -> tuple[Any, int]:
        """Fallback for other HTTP errors (for example 404, 405)."""
        code = err.code or 500
        name = err.name or "HTTPException"
        return jsonify({"error": name, "detail": err.description}), code

    @app.errorhandler(Exception)
    def _on_unexpected(err: Exception) -> tuple[Any, int]:
        """Last-resort handler to avoid HTML stack traces."""
        logger.exception("unhandled_exception", error=str(err))
        return (
            jsonify(
                {
                    "error": "InternalServerError",
                    "detail": "An unexpected error occurred.",
                }
            ),
            500,
        )

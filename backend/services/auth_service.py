# backend/services/auth_service.py

"""
Authentication helpers and decorators.

Administrative routes (configuration validation and reload) are protected by
a static API key:
    - Header: ``X-Api-Key``
    - Expected value: ``ADMIN_API_KEY`` from the app config / environment.

When no admin key is configured every admin request is rejected.
"""

from __future__ import annotations

import hmac
from functools import wraps
from typing import Callable, TypeVar, cast

from flask import current_app, jsonify, request

from observability.logging import get_logger


F = TypeVar("F", bound=Callable[..., object])

logger = get_logger("auth")


def is_valid_admin_key(api_key: str, expected: str) -> bool:
    """Constant-time comparison of a presented key with the configured one.

    Args:
        api_key: Key presented by the caller.
        expected: Configured admin key; empty means admin access is disabled.

    Returns:
        bool: True if both are non-empty and equal.
    """
    if not api_key or not expected:
        return False
    return hmac.compare_digest(api_key.encode("utf-8"), expected.encode("utf-8"))


def require_api_key(func: F) -> F:
    """Flask view decorator that enforces admin API key authentication.

    Behaviour:
        - Reads the ``X-Api-Key`` header from the request.
        - Compares it with ``current_app.config["ADMIN_API_KEY"]``.
        - If invalid or missing -> returns ``401`` with a JSON error.
        - If valid -> calls the wrapped view.

    Args:
        func: The view function to wrap.

    Returns:
        F: The wrapped view function that enforces API key authentication.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        api_key = request.headers.get("X-Api-Key", "").strip()
        expected = current_app.config.get("ADMIN_API_KEY") or ""

        if not is_valid_admin_key(api_key, expected):
            logger.warning("admin_auth_rejected", path=request.path)
            response = jsonify(
                {
                    "error": "Invalid or missing API key",
                    "code": "auth.api_key_invalid",
                }
            )
            return response, 401

        return func(*args, **kwargs)

    return cast(F, wrapper)

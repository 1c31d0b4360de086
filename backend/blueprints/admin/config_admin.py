"""Admin-facing configuration endpoints.

Provides dry-run validation of rule documents and reloading of the active
configuration from the configured file.
"""


from __future__ import annotations

from typing import Any

from flask import Blueprint, current_app, jsonify, request

from errors.handlers import BadRequest
from services.auth_service import require_api_key
from services.flag_service import EVALUATOR_EXTENSION, FeatureFlagEvaluator
from validators.configuration_validator import validate_configuration


config_admin_bp = Blueprint("config_admin", __name__, url_prefix="/admin/config")


@config_admin_bp.post("/validate")
@require_api_key
def post_validate_config() -> tuple[Any, int]:
    """Validate a configuration document without applying it.

    - Requires a valid X-Api-Key header.
    - The body is the raw document (same shape as the YAML file).

    Returns:
        tuple: ({"isValid": bool, "errors": [...]}, 200).
    """
    payload = request.get_json(silent=True)
    if payload is None:
        raise BadRequest("Body must be JSON.")

    result = validate_configuration(payload)

    return jsonify(result.to_dict()), 200


@config_admin_bp.post("/reload")
@require_api_key
def post_reload_config() -> tuple[Any, int]:
    """Reload the active configuration from ``FEATURE_CONFIG_PATH``.

    Behaviour:
        - On success the new rule set replaces the old one atomically.
        - On failure the previous configuration stays active and 422 is
          returned with the loader's error message.

    Returns:
        tuple: (JSON summary or error, HTTP status code).
    """
    path = current_app.config.get("FEATURE_CONFIG_PATH")
    if not path:
        raise BadRequest("FEATURE_CONFIG_PATH is not set.")

    evaluator: FeatureFlagEvaluator = current_app.extensions[EVALUATOR_EXTENSION]
    result = evaluator.load_configuration(path)

    if not result.success:
        return (
            jsonify(
                {
                    "success": False,
                    "error": result.error,
                    "configured": evaluator.is_configured,
                }
            ),
            422,
        )

    configuration = result.configuration
    return (
        jsonify(
            {
                "success": True,
                "plans": list(configuration.supported_plans),
                "regions": list(configuration.supported_regions),
                "featureCount": len(configuration.features),
                "ruleCount": len(configuration.rules),
            }
        ),
        200,
    )

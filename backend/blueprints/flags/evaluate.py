"""Runtime evaluation endpoint for feature rules.

This blueprint exposes the public `/evaluate/` API used by client
applications to get the features enabled for a given user context.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, current_app, jsonify, request

from services.flag_service import EVALUATOR_EXTENSION, FeatureFlagEvaluator
from validators.evaluate_validator import validate_eval_payload


evaluate_bp = Blueprint("evaluate_bp", __name__, url_prefix="/evaluate")


@evaluate_bp.post("/")
def post_evaluate() -> tuple[Any, int]:
    """Evaluate the enabled features for a user (public API).

    Request JSON body (EvaluateRequest):
        {
            "userId": "string",
            "region": "string",
            "plan": "string"
        }

    Behaviour:
        - Returns 400 with {"error": "BadRequest"} if the body does not match
          the EvaluateRequest schema.
        - Returns 503 with {"success": false, "error": ...} while no rule
          configuration is loaded.
        - Returns 400 with {"success": false, "error": ...} if the user
          context is rejected (blank userId, unsupported region or plan).
        - Otherwise returns 200 with {"success": true, "features": [...]}.

    Returns:
        A tuple ``(response, status_code)``.
    """
    payload = request.get_json(silent=True)
    validate_eval_payload(payload)

    evaluator: FeatureFlagEvaluator = current_app.extensions[EVALUATOR_EXTENSION]
    result = evaluator.evaluate(payload)

    if result.success:
        status = 200
    elif not evaluator.is_configured:
        status = 503
    else:
        status = 400
    return jsonify(result.to_dict()), status

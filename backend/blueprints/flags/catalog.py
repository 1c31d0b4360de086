"""Read-only catalog endpoints.

Expose what the loaded configuration knows about: feature ids, supported
plans and supported regions.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, current_app, jsonify

from errors.handlers import ServiceUnavailable
from services.flag_service import EVALUATOR_EXTENSION, FeatureFlagEvaluator


catalog_bp = Blueprint("catalog_bp", __name__, url_prefix="/features")


def _configured_evaluator() -> FeatureFlagEvaluator:
    evaluator: FeatureFlagEvaluator = current_app.extensions[EVALUATOR_EXTENSION]
    if not evaluator.is_configured:
        raise ServiceUnavailable("Feature rule configuration is not loaded.")
    return evaluator


@catalog_bp.get("/")
def list_features() -> tuple[Any, int]:
    """List every feature of the catalog.

    Returns:
        {"features": [{"id", "name", "description"}...]} sorted by id.
    """
    evaluator = _configured_evaluator()
    features = sorted(evaluator.configuration.features, key=lambda f: f.id)

    return (
        jsonify(
            {
                "features": [
                    {
                        "id": f.id,
                        "name": f.name,
                        "description": f.description,
                    }
                    for f in features
                ]
            }
        ),
        200,
    )


@catalog_bp.get("/plans")
def list_plans() -> tuple[Any, int]:
    """Supported plans, in configuration order."""
    evaluator = _configured_evaluator()
    return jsonify({"plans": evaluator.get_supported_plans()}), 200


@catalog_bp.get("/regions")
def list_regions() -> tuple[Any, int]:
    """Supported regions, in configuration order."""
    evaluator = _configured_evaluator()
    return jsonify({"regions": evaluator.get_supported_regions()}), 200

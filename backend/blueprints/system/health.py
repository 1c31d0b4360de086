from flask import Blueprint, current_app, jsonify

from services.flag_service import EVALUATOR_EXTENSION

health_bp = Blueprint("health_bp", __name__, url_prefix="/health")

@health_bp.get("/")
def health() -> jsonify:
    """
    Health probe.

    Returns:
        {"status": "ok", "configured": <bool>}
    """
    evaluator = current_app.extensions[EVALUATOR_EXTENSION]
    return jsonify({"status": "ok", "configured": evaluator.is_configured})

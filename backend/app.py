# backend/app.py

"""Feature rules backend application entrypoint.

This module creates and configures the Flask application, loads the feature
rule document named by ``FEATURE_CONFIG_PATH`` and applies development-time
CORS settings for local frontends. It then starts the HTTP server using
environment-based configuration.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from blueprints.admin.config_admin import config_admin_bp
from blueprints.flags.catalog import catalog_bp
from blueprints.flags.evaluate import evaluate_bp
from blueprints.system.health import health_bp
from errors.handlers import register_error_handlers
from observability.logging import configure_logging, get_logger, parse_level
from services.flag_service import (
    EVALUATOR_EXTENSION,
    FeatureFlagEvaluator,
    create_evaluator,
)


logger = get_logger("app")


def create_app(
    config: Optional[Mapping[str, Any]] = None,
    evaluator: Optional[FeatureFlagEvaluator] = None,
) -> Flask:
    """Create and configure the Flask application instance.

    This factory loads environment variables, builds the evaluator,
    registers blueprints and applies global error handlers.

    Args:
        config: Optional overrides for the Flask config (mainly for tests).
            Recognized keys: ``FEATURE_CONFIG_PATH``, ``ADMIN_API_KEY``,
            ``LOG_LEVEL``, ``LOG_JSON``.
        evaluator: Optional pre-built evaluator; when omitted one is created
            from ``FEATURE_CONFIG_PATH``.

    Returns:
        Flask: A configured Flask application instance.
    """
    load_dotenv()
    app = Flask(__name__)

    app.config.update(
        FEATURE_CONFIG_PATH=os.getenv("FEATURE_CONFIG_PATH"),
        ADMIN_API_KEY=os.getenv("ADMIN_API_KEY"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        LOG_JSON=os.getenv("LOG_JSON", "true").lower() == "true",
    )
    if config:
        app.config.update(config)

    configure_logging(
        level=parse_level(app.config["LOG_LEVEL"]),
        json_format=app.config["LOG_JSON"],
    )

    if evaluator is None:
        evaluator = create_evaluator(app.config["FEATURE_CONFIG_PATH"])
    app.extensions[EVALUATOR_EXTENSION] = evaluator

    if not evaluator.is_configured:
        # The app still starts: /health/ reports it and /evaluate/ answers 503
        # until a reload succeeds.
        logger.warning(
            "app_started_without_configuration",
            config_path=app.config["FEATURE_CONFIG_PATH"],
        )

    # Register JSON error handlers (400/404/503/500, etc.).
    register_error_handlers(app)

    # System & health
    app.register_blueprint(health_bp)         # /health/

    # Public evaluation and catalog endpoints
    app.register_blueprint(evaluate_bp)       # /evaluate/
    app.register_blueprint(catalog_bp)        # /features/

    # Admin configuration management
    app.register_blueprint(config_admin_bp)   # /admin/config/*

    return app


if __name__ == "__main__":
    app = create_app()

    # Allow local frontend development servers to call this API directly.
    # In production, CORS should be enforced at the reverse proxy layer.
    CORS(
        app,
        resources={
            r"/*": {
                "origins": [
                    "http://localhost:3000",
                    "http://localhost:5173",
                ],
            },
        },
        supports_credentials=False,
        allow_headers=["Content-Type", "X-Api-Key"],
        methods=["GET", "POST", "OPTIONS"],
    )

    # HTTP server configuration derived from environment variables.
    port = int(os.getenv("BACKEND_PORT", "8000"))
    debug = os.getenv("DEBUG", "false").lower() == "true"

    app.run(
        host="0.0.0.0",
        port=port,
        debug=debug,
    )

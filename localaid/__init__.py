"""
Application factory for the LOCALAID API.

This module provides a function to create and configure the Flask
application. All extensions (SQLAlchemy, Migrate, JWT) are initialised
here, and the blueprints for users, authentication and service listings
are registered under ``/api``.

Configuration comes from ``localaid.config.Config`` (environment
variables). Tests and scripts can override any key by passing a
``test_config`` mapping.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import Flask, request
from flask_migrate import Migrate

# Extensions are instantiated without an app and bound in create_app().
# This pattern avoids circular imports and makes testing easier.
from .db import db
from .security import jwt
from .config import Config
from .logging_config import setup_logging

__version__ = "1.0.0"

migrate = Migrate()
logger = logging.getLogger(__name__)


def create_app(test_config: dict | None = None) -> Flask:
    """Create and configure a Flask application.

    Parameters
    ----------
    test_config: dict | None, optional
        Optional configuration overrides used when running tests.

    Returns
    -------
    Flask
        A configured Flask application instance.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    setup_logging(app.config["LOG_LEVEL"])
    app.json.ensure_ascii = False

    # Initialise extensions with the app
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    # Register custom error handlers
    from .errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints. Importing here avoids circular imports.
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.services import services_bp

    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(users_bp, url_prefix="/api")
    app.register_blueprint(services_bp, url_prefix="/api")

    @app.before_request
    def log_request() -> None:
        logger.info("%s %s", request.method, request.path)

    @app.route("/")
    def index() -> dict:
        """Describe the API and its entry points."""
        return {
            "success": True,
            "message": "¡Bienvenido a LOCALAID API!",
            "version": __version__,
            "endpoints": {
                "users": "/api/users",
                "auth": "/api/auth",
                "services": "/api/services",
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # Provide a simple health check route
    @app.route("/api/health")
    def health_check() -> dict[str, str]:
        """Return a simple health check response.

        This endpoint can be used by deployment platforms to verify
        that the application has started correctly.
        """
        return {"status": "ok"}

    return app

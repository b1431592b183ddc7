"""Application settings.

Values are read from environment variables when this module is
imported and loaded into the Flask config by the application factory
with ``app.config.from_object``. Tests override individual keys by
passing a mapping to ``create_app``.

In production set ``DATABASE_URL``, ``JWT_SECRET_KEY`` and
``APP_ENV=production``. Without a database URL a local SQLite file is
used.
"""
from __future__ import annotations

import os
from datetime import timedelta


class Config:
    """Default configuration, overridable through the environment."""

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///localaid.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "localaid-dev-secret-please-change-in-production")
    # Tokens are valid for seven days from issuance
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)

    # ``production`` hides internal error details from API responses
    APP_ENV = os.environ.get("APP_ENV", "development")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    DEFAULT_PAGE_SIZE = int(os.environ.get("DEFAULT_PAGE_SIZE", "10"))
    MAX_PAGE_SIZE = int(os.environ.get("MAX_PAGE_SIZE", "100"))
    DEFAULT_RADIUS_KM = float(os.environ.get("DEFAULT_RADIUS_KM", "10"))

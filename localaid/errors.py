"""Centralised error handling and custom exceptions.

Route handlers and services raise the exceptions defined here instead
of building HTTP responses themselves. The handlers registered by
``register_error_handlers`` turn them into the API's standard envelope::

    {"success": false, "message": "...", "errors": [...]}

Anything unexpected becomes a 500 whose ``error`` detail is only shown
outside production.
"""
from __future__ import annotations

import logging

from flask import current_app, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)

AVAILABLE_ROUTES = [
    "GET /",
    "GET /api/health",
    "POST /api/users",
    "GET /api/users",
    "GET /api/users/:id",
    "PUT /api/users/:id",
    "PUT /api/users/:id/password",
    "POST /api/auth/login",
    "GET /api/auth/me",
    "POST /api/services",
    "GET /api/services",
    "GET /api/services/:id",
    "PUT /api/services/:id",
    "PATCH /api/services/:id/estado",
]


class APIError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code = 500

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_response(self, status_code: int | None = None):
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return jsonify(body), status_code or self.status_code


class ValidationError(APIError):
    """Raised when input is missing, malformed or violates the schema."""

    status_code = 400


class ConflictError(APIError):
    """Raised when a request is valid but the resource's state forbids it.

    The public contract only distinguishes 400/401/403/404/500, so
    conflicts are reported as 400.
    """

    status_code = 400


class AuthenticationError(APIError):
    """Raised when the caller cannot be identified."""

    status_code = 401


class AuthorizationError(APIError):
    """Raised when an identified caller may not act on a resource."""

    status_code = 403


class NotFoundError(APIError):
    """Raised when a requested resource cannot be found."""

    status_code = 404


def flatten_messages(messages) -> list[str]:
    """Flatten marshmallow's nested error messages into a list of strings."""
    if isinstance(messages, str):
        return [messages]
    if isinstance(messages, dict):
        return [msg for value in messages.values() for msg in flatten_messages(value)]
    if isinstance(messages, (list, tuple)):
        return [msg for value in messages for msg in flatten_messages(value)]
    return [str(messages)]


def _show_details() -> bool:
    return current_app.config.get("APP_ENV") != "production"


def register_error_handlers(app) -> None:
    """Register custom error handlers on the given Flask app."""
    from .db import db

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return err.to_response()

    @app.errorhandler(MarshmallowValidationError)
    def handle_schema_error(err: MarshmallowValidationError):
        return ValidationError("Datos inválidos", flatten_messages(err.messages)).to_response()

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        db.session.rollback()
        logger.warning("Integrity error on %s %s: %s", request.method, request.path, err.orig)
        return ValidationError("Los datos entran en conflicto con un registro existente").to_response()

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        if err.code == 404:
            body = {
                "success": False,
                "message": f"Ruta {request.path} no encontrada",
                "availableRoutes": AVAILABLE_ROUTES,
            }
        else:
            body = {"success": False, "message": err.description}
        return jsonify(body), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        db.session.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        body = {"success": False, "message": "Error interno del servidor"}
        if _show_details():
            body["error"] = str(err)
        return jsonify(body), 500

"""Token issuance and the authorization gate.

Tokens are JWTs signed with ``JWT_SECRET_KEY`` whose subject is the
user id. Routes protected with ``@jwt_required()`` only run once the
token is verified and its subject resolves to an existing ``User``,
which is then available as ``flask_jwt_extended.current_user``.

Every failure is answered with a 401 in the API's standard envelope
before the route handler runs.
"""
from __future__ import annotations

import logging

from flask import jsonify
from flask_jwt_extended import JWTManager, create_access_token

from .db import db
from .models import User

logger = logging.getLogger(__name__)

jwt = JWTManager()


def issue_token(user: User) -> str:
    """Return a signed access token for ``user``.

    The lifetime comes from ``JWT_ACCESS_TOKEN_EXPIRES`` (seven days).
    """
    return create_access_token(identity=str(user.id))


def _unauthorized(message: str):
    return jsonify({"success": False, "message": message}), 401


@jwt.user_lookup_loader
def load_user(_jwt_header, jwt_data):
    try:
        user_id = int(jwt_data["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


@jwt.user_lookup_error_loader
def user_not_found(_jwt_header, jwt_data):
    logger.warning("Token subject %s does not match any user", jwt_data.get("sub"))
    return _unauthorized("Token inválido. Usuario no encontrado")


@jwt.unauthorized_loader
def missing_token(reason: str):
    logger.info("Rejected request without token: %s", reason)
    return _unauthorized("Acceso denegado. Token no proporcionado")


@jwt.invalid_token_loader
def invalid_token(reason: str):
    logger.info("Rejected invalid token: %s", reason)
    return _unauthorized("Token inválido")


@jwt.expired_token_loader
def expired_token(_jwt_header, _jwt_data):
    return _unauthorized("Token expirado")

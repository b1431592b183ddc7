"""
Authentication routes.

``POST /auth/login`` exchanges an email and password for a bearer
token valid for seven days. ``GET /auth/me`` returns the account the
presented token belongs to.
"""

from __future__ import annotations

import logging

from flask import Blueprint
from flask_jwt_extended import current_user, jwt_required

from ..errors import AuthenticationError, ValidationError
from ..models import User
from ..schemas import UserSchema
from ..security import issue_token
from ..util.payload import json_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/auth/login", methods=["POST"])
def login() -> tuple[dict, int]:
    """Authenticate a user and return a JWT.

    Expects JSON with ``email`` and ``password``. Unknown emails and
    wrong passwords get the same 401 so the response does not reveal
    whether the account exists.
    """
    data = json_body()
    email = data.get("email")
    password = data.get("password")
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise ValidationError("Email y contraseña son obligatorios")

    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user or not user.check_password(password):
        logger.info("Failed login for %s", email.strip().lower())
        raise AuthenticationError("Credenciales inválidas")

    logger.info("User %s logged in", user.id)
    return {
        "success": True,
        "message": "Inicio de sesión exitoso",
        "data": {"user": UserSchema().dump(user), "token": issue_token(user)},
    }, 200


@auth_bp.route("/auth/me", methods=["GET"])
@jwt_required()
def me() -> tuple[dict, int]:
    """Return the authenticated user."""
    return {"success": True, "data": {"user": UserSchema().dump(current_user)}}, 200

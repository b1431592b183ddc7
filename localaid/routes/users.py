"""
Routes for managing user accounts.

Registration, listing and profile lookup are public. Profile updates
and password changes require a token and may only be performed by the
account owner.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, request
from flask_jwt_extended import current_user, jwt_required
from sqlalchemy.exc import IntegrityError

from .. import db
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models import User, Rol
from ..schemas import UserInputSchema, UserSchema, MIN_PASSWORD_LENGTH
from ..services import paginate, parse_pagination, parse_radius
from ..util.geo import parse_location, parse_point_query, within_radius
from ..util.payload import json_body, load_or_raise

logger = logging.getLogger(__name__)

users_bp = Blueprint("users", __name__)

REQUIRED_FIELDS = ("nombre", "email", "password", "rol")
INVALID_USER_DATA = "Datos de usuario inválidos"


def _get_user_or_404(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("Usuario no encontrado")
    return user


def _ensure_self(user_id: int) -> None:
    if current_user.id != user_id:
        logger.warning("User %s tried to modify user %s", current_user.id, user_id)
        raise AuthorizationError("No tienes permisos para modificar este usuario")


def _commit() -> None:
    # email is the only unique column on users
    try:
        db.session.commit()
    except IntegrityError as err:
        db.session.rollback()
        raise ValidationError("El email ya está registrado") from err


@users_bp.route("/users", methods=["POST"])
def create_user() -> tuple[dict, int]:
    """Register a new user.

    Expects JSON with ``nombre``, ``email``, ``password`` and ``rol``
    (``oferente`` or ``solicitante``), plus optional ``telefono``,
    ``skills`` and ``ubicacion``. Emails are stored lower-cased and
    must be unique.
    """
    data = json_body()
    if not all(data.get(field) for field in REQUIRED_FIELDS):
        raise ValidationError("Nombre, email, contraseña y rol son obligatorios")

    ubicacion = parse_location(data.get("ubicacion"))
    fields = load_or_raise(UserInputSchema(), data, INVALID_USER_DATA)

    user = User(
        nombre=fields["nombre"],
        email=fields["email"],
        telefono=fields.get("telefono"),
        rol=fields["rol"],
        skills=fields.get("skills") or [],
    )
    user.set_password(fields["password"])
    user.ubicacion = ubicacion
    db.session.add(user)
    _commit()

    logger.info("Registered user %s (%s)", user.id, user.rol.value)
    return {
        "success": True,
        "message": "Usuario creado exitosamente",
        "data": {"user": UserSchema().dump(user)},
    }, 201


@users_bp.route("/users", methods=["GET"])
def list_users() -> tuple[dict, int]:
    """Return a page of users, newest registrations first.

    Optional query arguments: ``rol`` (unknown values are ignored),
    ``ubicacion=lon,lat`` with ``radio`` in kilometres, ``page`` and
    ``limit``.
    """
    config = current_app.config
    page, limit = parse_pagination(request.args, config["DEFAULT_PAGE_SIZE"], config["MAX_PAGE_SIZE"])

    query = User.query
    rol = request.args.get("rol")
    if rol in {r.value for r in Rol}:
        query = query.filter(User.rol == Rol(rol))

    ubicacion = request.args.get("ubicacion")
    if ubicacion:
        origin = parse_point_query(ubicacion)
        radius = parse_radius(request.args.get("radio"), config["DEFAULT_RADIUS_KM"])
        query = query.filter(within_radius(User.longitud, User.latitud, origin, radius))

    result = paginate(query.order_by(User.fecha_registro.desc(), User.id.desc()), page, limit)
    return {
        "success": True,
        "message": "Usuarios obtenidos exitosamente",
        "data": {
            "users": UserSchema(many=True).dump(result.items),
            "pagination": result.metadata("totalUsers"),
        },
    }, 200


@users_bp.route("/users/<int:user_id>", methods=["GET"])
def get_user(user_id: int) -> tuple[dict, int]:
    """Retrieve a single user's public profile."""
    user = _get_user_or_404(user_id)
    return {
        "success": True,
        "message": "Usuario obtenido exitosamente",
        "data": {"user": UserSchema().dump(user)},
    }, 200


@users_bp.route("/users/<int:user_id>", methods=["PUT"])
@jwt_required()
def update_user(user_id: int) -> tuple[dict, int]:
    """Update profile fields of the authenticated user.

    ``password`` is ignored here; use the password route instead.
    ``ubicacion`` with absent, empty or null coordinates removes the
    stored location.
    """
    user = _get_user_or_404(user_id)
    _ensure_self(user_id)

    data = json_body()
    data.pop("password", None)
    if "nombre" in data:
        nombre = data["nombre"]
        if nombre is None or (isinstance(nombre, str) and not nombre.strip()):
            raise ValidationError("El nombre no puede estar vacío")

    ubicacion_sent = "ubicacion" in data
    ubicacion = parse_location(data.get("ubicacion"), allow_clear=True) if ubicacion_sent else None
    changes = load_or_raise(UserInputSchema(partial=True), data, INVALID_USER_DATA)

    for key, value in changes.items():
        setattr(user, key, value)
    if ubicacion_sent:
        user.ubicacion = ubicacion
    _commit()

    return {
        "success": True,
        "message": "Usuario actualizado exitosamente",
        "data": {"user": UserSchema().dump(user)},
    }, 200


@users_bp.route("/users/<int:user_id>/password", methods=["PUT"])
@jwt_required()
def change_password(user_id: int) -> tuple[dict, int]:
    """Change the authenticated user's password.

    Requires ``currentPassword`` and ``newPassword``. A wrong current
    password is a validation error (400): the caller is already
    authenticated and this is only a re-confirmation.
    """
    data = json_body()
    current_password = data.get("currentPassword")
    new_password = data.get("newPassword")
    if not current_password or not new_password:
        raise ValidationError("Contraseña actual y nueva contraseña son requeridas")
    if not isinstance(new_password, str) or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("La nueva contraseña debe tener al menos 6 caracteres")

    user = _get_user_or_404(user_id)
    _ensure_self(user_id)

    if not isinstance(current_password, str) or not user.check_password(current_password):
        raise ValidationError("La contraseña actual es incorrecta")

    user.set_password(new_password)
    db.session.commit()
    logger.info("User %s changed their password", user.id)
    return {"success": True, "message": "Contraseña actualizada exitosamente"}, 200

"""
Routes for service listings.

Anyone may browse listings. Creating one requires a token, and the
authenticated user becomes its permanent owner. Only the owner may edit
a listing (while it is still ``pendiente``) or move it through its
lifecycle via ``PATCH /services/<id>/estado``.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, request
from flask_jwt_extended import current_user, jwt_required
from sqlalchemy import false

from .. import db
from ..errors import NotFoundError, ValidationError
from ..models import Service, Categoria, Estado
from ..schemas import ServiceInputSchema, ServiceSchema
from ..services import (
    change_status,
    ensure_editable,
    ensure_owner,
    paginate,
    parse_estado,
    parse_pagination,
    parse_radius,
)
from ..util.geo import parse_location, parse_point_query, within_radius
from ..util.payload import json_body, load_or_raise

logger = logging.getLogger(__name__)

services_bp = Blueprint("services", __name__)

REQUIRED_FIELDS = ("titulo", "descripcion", "categoria")
INVALID_SERVICE_DATA = "Datos de servicio inválidos"

DEFAULT_SORT = "fechaPublicacion"
# ``ordenarPor`` values accepted by the list endpoint; anything else sorts by DEFAULT_SORT
SORTABLE_COLUMNS = {
    "fechaPublicacion": Service.fecha_publicacion,
    "precio": Service.precio,
    "titulo": Service.titulo,
    "categoria": Service.categoria,
    "estado": Service.estado,
    "duracionEstimada": Service.duracion_estimada,
    "createdAt": Service.created_at,
    "updatedAt": Service.updated_at,
}


def _get_service_or_404(service_id: int) -> Service:
    service = db.session.get(Service, service_id)
    if service is None:
        raise NotFoundError("Servicio no encontrado")
    return service


@services_bp.route("/services", methods=["POST"])
@jwt_required()
def create_service() -> tuple[dict, int]:
    """Publish a new listing owned by the authenticated user.

    Requires ``titulo``, ``descripcion`` and ``categoria``. ``precio``,
    ``moneda``, ``duracionEstimada`` and ``unidadDuracion`` default to
    ``0``, ``MXN``, ``1`` and ``horas``. Any owner sent by the client is
    ignored.
    """
    data = json_body()
    if not all(data.get(field) for field in REQUIRED_FIELDS):
        raise ValidationError("Título, descripción y categoría son obligatorios")

    ubicacion = parse_location(data.get("ubicacion"))
    fields = load_or_raise(ServiceInputSchema(), data, INVALID_SERVICE_DATA)

    service = Service(**fields, creado_por_id=current_user.id)
    service.ubicacion = ubicacion
    db.session.add(service)
    db.session.commit()

    logger.info("User %s published service %s", current_user.id, service.id)
    return {
        "success": True,
        "message": "Servicio creado exitosamente",
        "data": {"service": ServiceSchema().dump(service)},
    }, 201


@services_bp.route("/services", methods=["GET"])
def list_services() -> tuple[dict, int]:
    """Return a page of listings.

    Optional query arguments: ``categoria`` (unknown values match
    nothing), ``estado`` (unknown values are ignored),
    ``ubicacion=lon,lat`` with ``radio`` in kilometres, ``ordenarPor``
    (unknown fields fall back to ``fechaPublicacion``), ``orden``
    (``desc`` by default, anything else sorts ascending), ``page`` and
    ``limit``. The applied filters are echoed back under ``filters``.
    """
    config = current_app.config
    page, limit = parse_pagination(request.args, config["DEFAULT_PAGE_SIZE"], config["MAX_PAGE_SIZE"])
    radius = float(config["DEFAULT_RADIUS_KM"])

    query = Service.query

    categoria = request.args.get("categoria")
    if categoria:
        if categoria in {c.value for c in Categoria}:
            query = query.filter(Service.categoria == Categoria(categoria))
        else:
            query = query.filter(false())

    estado = request.args.get("estado")
    if estado in {e.value for e in Estado}:
        query = query.filter(Service.estado == Estado(estado))

    ubicacion = request.args.get("ubicacion")
    if ubicacion:
        origin = parse_point_query(ubicacion)
        radius = parse_radius(request.args.get("radio"), radius)
        query = query.filter(within_radius(Service.longitud, Service.latitud, origin, radius))

    ordenar_por = request.args.get("ordenarPor", DEFAULT_SORT)
    column = SORTABLE_COLUMNS.get(ordenar_por, SORTABLE_COLUMNS[DEFAULT_SORT])
    if request.args.get("orden", "desc") == "desc":
        query = query.order_by(column.desc(), Service.id.desc())
    else:
        query = query.order_by(column.asc(), Service.id.asc())

    result = paginate(query, page, limit)
    return {
        "success": True,
        "message": "Servicios obtenidos exitosamente",
        "data": {
            "services": ServiceSchema(many=True).dump(result.items),
            "pagination": result.metadata("totalServices"),
            "filters": {
                "categoria": categoria,
                "estado": estado,
                "ubicacion": ubicacion,
                "radio": int(radius) if radius.is_integer() else radius,
            },
        },
    }, 200


@services_bp.route("/services/<int:service_id>", methods=["GET"])
def get_service(service_id: int) -> tuple[dict, int]:
    """Retrieve a listing together with its owner's public details."""
    service = _get_service_or_404(service_id)
    return {
        "success": True,
        "message": "Servicio obtenido exitosamente",
        "data": {"service": ServiceSchema().dump(service)},
    }, 200


@services_bp.route("/services/<int:service_id>", methods=["PUT"])
@jwt_required()
def update_service(service_id: int) -> tuple[dict, int]:
    """Edit a listing's content.

    Only the owner may edit, and only while the listing is
    ``pendiente``. ``estado`` and the owner cannot be changed here.
    """
    service = _get_service_or_404(service_id)
    ensure_owner(service, current_user, "No tienes permisos para editar este servicio")
    ensure_editable(service)

    data = json_body()
    ubicacion_sent = "ubicacion" in data
    ubicacion = parse_location(data.get("ubicacion"), allow_clear=True) if ubicacion_sent else None
    changes = load_or_raise(ServiceInputSchema(partial=True), data, INVALID_SERVICE_DATA)

    for key, value in changes.items():
        setattr(service, key, value)
    if ubicacion_sent:
        service.ubicacion = ubicacion
    db.session.commit()

    return {
        "success": True,
        "message": "Servicio actualizado exitosamente",
        "data": {"service": ServiceSchema().dump(service)},
    }, 200


@services_bp.route("/services/<int:service_id>/estado", methods=["PATCH"])
@jwt_required()
def update_service_status(service_id: int) -> tuple[dict, int]:
    """Move a listing to ``nuevoEstado`` following the lifecycle rules."""
    data = json_body()
    nuevo = parse_estado(data.get("nuevoEstado"))

    service = _get_service_or_404(service_id)
    change_status(service, current_user, nuevo)
    db.session.commit()

    return {
        "success": True,
        "message": f'Estado del servicio cambiado a "{nuevo.value}"',
        "data": {"service": ServiceSchema().dump(service)},
    }, 200

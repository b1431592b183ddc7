"""Service listing lifecycle.

A listing moves through three states::

    pendiente -> en progreso -> completado
                 en progreso -> pendiente

Only the listing's creator may edit it or change its state, content
is frozen once work has started, and ``completado`` is terminal.
Requesting the current state again is rejected like any other
transition missing from ``ALLOWED_TRANSITIONS``.
"""
from __future__ import annotations

import logging

from ..errors import AuthorizationError, ConflictError, ValidationError
from ..models import Estado, Service, User

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: frozenset[tuple[Estado, Estado]] = frozenset(
    {
        (Estado.PENDIENTE, Estado.EN_PROGRESO),
        (Estado.EN_PROGRESO, Estado.COMPLETADO),
        (Estado.EN_PROGRESO, Estado.PENDIENTE),
    }
)


def parse_estado(value) -> Estado:
    """Convert a requested status string into an ``Estado``."""
    try:
        return Estado(value)
    except (TypeError, ValueError):
        raise ValidationError(
            "Estado inválido. Debe ser: pendiente, en progreso o completado"
        ) from None


def can_transition(actual: Estado, nuevo: Estado) -> bool:
    return (actual, nuevo) in ALLOWED_TRANSITIONS


def ensure_owner(service: Service, user: User, message: str) -> None:
    """Raise ``AuthorizationError`` unless ``user`` created ``service``."""
    if service.creado_por_id != user.id:
        logger.warning("User %s is not the owner of service %s", user.id, service.id)
        raise AuthorizationError(message)


def ensure_editable(service: Service) -> None:
    if not service.puede_ser_editado():
        raise ConflictError("Solo se pueden editar servicios en estado pendiente")


def change_status(service: Service, user: User, nuevo: Estado) -> Service:
    """Apply a status transition requested by ``user``.

    Ownership is checked before the transition table. The caller is
    responsible for committing the session.
    """
    ensure_owner(service, user, "No tienes permisos para cambiar el estado de este servicio")
    actual = service.estado
    if not can_transition(actual, nuevo):
        logger.warning(
            "Rejected transition of service %s from %r to %r", service.id, actual.value, nuevo.value
        )
        raise ConflictError(f'No se puede cambiar de estado "{actual.value}" a "{nuevo.value}"')
    service.estado = nuevo
    logger.info("Service %s moved from %r to %r", service.id, actual.value, nuevo.value)
    return service

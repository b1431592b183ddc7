"""
Database models for the LOCALAID marketplace.

Two tables back the API: ``users`` (providers and requesters) and
``services`` (listings published by a user). Both carry an optional
geographic point stored as a nullable ``longitud``/``latitud`` pair and
exposed through the ``ubicacion`` property as a ``Point``.

Enumerations store their Spanish values (``"en progreso"``) rather than
member names so the database reads the same as the API.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import List, Optional

from werkzeug.security import generate_password_hash, check_password_hash

from .db import db
from .util.geo import Point


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Rol(enum.Enum):
    """Account roles."""
    OFERENTE = "oferente"
    SOLICITANTE = "solicitante"


class Estado(enum.Enum):
    """Lifecycle states of a service listing."""
    PENDIENTE = "pendiente"
    EN_PROGRESO = "en progreso"
    COMPLETADO = "completado"


class Categoria(enum.Enum):
    HOGAR = "hogar"
    JARDINERIA = "jardineria"
    LIMPIEZA = "limpieza"
    REPARACIONES = "reparaciones"
    TRANSPORTE = "transporte"
    TECNOLOGIA = "tecnologia"
    EDUCACION = "educacion"
    SALUD = "salud"
    DEPORTES = "deportes"
    EVENTOS = "eventos"
    OTRO = "otro"


class Moneda(enum.Enum):
    MXN = "MXN"
    USD = "USD"
    EUR = "EUR"


class UnidadDuracion(enum.Enum):
    HORAS = "horas"
    DIAS = "dias"
    SEMANAS = "semanas"


class LocatedMixin:
    """Optional geographic point shared by users and services."""

    longitud = db.Column(db.Float, nullable=True)
    latitud = db.Column(db.Float, nullable=True)

    @property
    def ubicacion(self) -> Optional[Point]:
        if self.longitud is None or self.latitud is None:
            return None
        return Point(self.longitud, self.latitud)

    @ubicacion.setter
    def ubicacion(self, point: Optional[Point]) -> None:
        if point is None:
            self.longitud = None
            self.latitud = None
        else:
            self.longitud = point.longitud
            self.latitud = point.latitud


class User(LocatedMixin, db.Model):
    __allow_unmapped__ = True  # allow unmapped type annotations for SQLAlchemy 2.0
    """A registered account.

    Passwords are stored as salted hashes and are hashed once, when
    ``set_password`` is called.
    """
    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    nombre: str = db.Column(db.String(50), nullable=False)
    email: str = db.Column(db.String(120), unique=True, nullable=False)
    password_hash: str = db.Column(db.String(256), nullable=False)
    telefono: Optional[str] = db.Column(db.String(30))
    rol: Rol = db.Column(db.Enum(Rol, values_callable=_enum_values, name="rol"), nullable=False)
    skills: List[str] = db.Column(db.JSON, nullable=False, default=list)

    fecha_registro: datetime = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    created_at: datetime = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at: datetime = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    services: List[Service] = db.relationship("Service", back_populates="creado_por")

    __table_args__ = (
        db.Index("ix_users_ubicacion", "longitud", "latitud"),
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.rol.value})>"


class Service(LocatedMixin, db.Model):
    __allow_unmapped__ = True
    """A service listing published by a user.

    The creator (``creado_por``) is fixed at creation. Content can only
    change while the listing is ``pendiente``; status transitions live
    in ``localaid.services.lifecycle``.
    """
    __tablename__ = "services"

    id: int = db.Column(db.Integer, primary_key=True)
    titulo: str = db.Column(db.String(100), nullable=False)
    descripcion: str = db.Column(db.String(1000), nullable=False)
    categoria: Categoria = db.Column(
        db.Enum(Categoria, values_callable=_enum_values, name="categoria"), nullable=False, index=True
    )
    estado: Estado = db.Column(
        db.Enum(Estado, values_callable=_enum_values, name="estado"),
        nullable=False,
        default=Estado.PENDIENTE,
        index=True,
    )
    creado_por_id: int = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    fecha_publicacion: datetime = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    precio: float = db.Column(db.Float, nullable=False, default=0)
    moneda: Moneda = db.Column(
        db.Enum(Moneda, values_callable=_enum_values, name="moneda"), nullable=False, default=Moneda.MXN
    )
    duracion_estimada: float = db.Column(db.Float, nullable=False, default=1)
    unidad_duracion: UnidadDuracion = db.Column(
        db.Enum(UnidadDuracion, values_callable=_enum_values, name="unidad_duracion"),
        nullable=False,
        default=UnidadDuracion.HORAS,
    )

    created_at: datetime = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at: datetime = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    creado_por: User = db.relationship("User", back_populates="services")

    __table_args__ = (
        db.Index("ix_services_ubicacion", "longitud", "latitud"),
    )

    def puede_ser_editado(self) -> bool:
        """Return True while the listing's content may still be edited."""
        return self.estado == Estado.PENDIENTE

    def __repr__(self) -> str:
        return f"<Service {self.id} {self.titulo!r} ({self.estado.value})>"

"""
Validation and serialization schemas using Marshmallow.

Two kinds of schema live here:

* ``*InputSchema`` classes validate and normalise request bodies. They
  ignore unknown keys, so clients cannot set fields such as the owner
  or the password hash through them. ``ubicacion`` is handled by
  ``localaid.util.geo`` and is not part of these schemas.
* ``UserSchema`` and ``ServiceSchema`` turn models into the API's JSON
  representation. Password hashes are never included and absent
  locations are left out entirely.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, post_dump, pre_load, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field

from .models import User, Service, Rol, Estado, Categoria, Moneda, UnidadDuracion
from .util.sanitization import strip_tags

PHONE_RE = r"^[0-9+\-\s()]+$"
MIN_PASSWORD_LENGTH = 6


class UserInputSchema(Schema):
    """Validates registration and profile update payloads."""

    class Meta:
        unknown = EXCLUDE

    nombre = fields.String(
        required=True,
        validate=[
            validate.Length(min=1, error="El nombre no puede estar vacío"),
            validate.Length(max=50, error="El nombre no puede exceder 50 caracteres"),
        ],
        error_messages={"null": "El nombre no puede estar vacío"},
    )
    email = fields.String(
        required=True,
        validate=validate.Email(error="Por favor ingresa un email válido"),
        error_messages={"null": "El email es obligatorio"},
    )
    password = fields.String(
        required=True,
        load_only=True,
        validate=validate.Length(
            min=MIN_PASSWORD_LENGTH, error="La contraseña debe tener al menos 6 caracteres"
        ),
    )
    telefono = fields.String(
        allow_none=True,
        validate=[
            validate.Regexp(PHONE_RE, error="Por favor ingresa un teléfono válido"),
            validate.Length(max=30, error="El teléfono no puede exceder 30 caracteres"),
        ],
    )
    rol = fields.Enum(
        Rol,
        by_value=True,
        required=True,
        error_messages={
            "unknown": 'El rol debe ser "oferente" o "solicitante"',
            "null": "El rol es obligatorio",
        },
    )
    skills = fields.List(fields.String())

    @pre_load
    def normalise(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("nombre", "email", "telefono"):
            if isinstance(data.get(key), str):
                data[key] = data[key].strip()
        if isinstance(data.get("email"), str):
            data["email"] = data["email"].lower()
        if data.get("telefono") == "":
            data["telefono"] = None
        if isinstance(data.get("skills"), list):
            skills = [s.strip() if isinstance(s, str) else s for s in data["skills"]]
            data["skills"] = [s for s in skills if s not in ("", None)]
        return data


class ServiceInputSchema(Schema):
    """Validates listing creation and update payloads."""

    class Meta:
        unknown = EXCLUDE

    titulo = fields.String(
        required=True,
        validate=[
            validate.Length(min=1, error="El título es obligatorio"),
            validate.Length(max=100, error="El título no puede exceder 100 caracteres"),
        ],
    )
    descripcion = fields.String(
        required=True,
        validate=[
            validate.Length(min=1, error="La descripción es obligatoria"),
            validate.Length(max=1000, error="La descripción no puede exceder 1000 caracteres"),
        ],
    )
    categoria = fields.Enum(
        Categoria, by_value=True, required=True, error_messages={"unknown": "Categoría no válida"}
    )
    precio = fields.Float(
        load_default=0.0, validate=validate.Range(min=0, error="El precio no puede ser negativo")
    )
    moneda = fields.Enum(
        Moneda,
        by_value=True,
        load_default=Moneda.MXN,
        error_messages={"unknown": "La moneda debe ser MXN, USD o EUR"},
    )
    duracion_estimada = fields.Float(
        data_key="duracionEstimada",
        load_default=1.0,
        validate=validate.Range(min=1, error="La duración debe ser al menos 1 hora"),
    )
    unidad_duracion = fields.Enum(
        UnidadDuracion,
        by_value=True,
        data_key="unidadDuracion",
        load_default=UnidadDuracion.HORAS,
        error_messages={"unknown": "La unidad de duración debe ser horas, dias o semanas"},
    )

    @pre_load
    def normalise(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("titulo", "descripcion"):
            if isinstance(data.get(key), str):
                data[key] = strip_tags(data[key])
        if isinstance(data.get("categoria"), str):
            data["categoria"] = data["categoria"].strip()
        # null commercial terms mean "use the default"
        for key in ("precio", "moneda", "duracionEstimada", "unidadDuracion"):
            if key in data and data[key] is None:
                del data[key]
        return data


class UserSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``User`` objects."""

    rol = fields.Enum(Rol, by_value=True)
    ubicacion = fields.Method("get_ubicacion")
    fecha_registro = auto_field(data_key="fechaRegistro")
    created_at = auto_field(data_key="createdAt")
    updated_at = auto_field(data_key="updatedAt")

    class Meta:
        model = User
        # Exclude the password hash and the raw coordinate columns
        exclude = ("password_hash", "longitud", "latitud")

    def get_ubicacion(self, obj):
        point = obj.ubicacion
        return point.to_geojson() if point else None

    @post_dump
    def drop_missing_location(self, data, **kwargs):
        if data.get("ubicacion") is None:
            data.pop("ubicacion", None)
        return data


class ServiceSchema(SQLAlchemyAutoSchema):
    """Schema for serialising ``Service`` objects with their owner joined."""

    categoria = fields.Enum(Categoria, by_value=True)
    estado = fields.Enum(Estado, by_value=True)
    moneda = fields.Enum(Moneda, by_value=True)
    unidad_duracion = fields.Enum(UnidadDuracion, by_value=True, data_key="unidadDuracion")
    duracion_estimada = auto_field(data_key="duracionEstimada")
    fecha_publicacion = auto_field(data_key="fechaPublicacion")
    created_at = auto_field(data_key="createdAt")
    updated_at = auto_field(data_key="updatedAt")
    ubicacion = fields.Method("get_ubicacion")
    creado_por = fields.Nested(
        UserSchema,
        only=("id", "nombre", "email", "telefono", "rol", "ubicacion"),
        data_key="creadoPor",
    )

    class Meta:
        model = Service
        exclude = ("longitud", "latitud")

    def get_ubicacion(self, obj):
        point = obj.ubicacion
        return point.to_geojson() if point else None

    @post_dump
    def drop_missing_location(self, data, **kwargs):
        if data.get("ubicacion") is None:
            data.pop("ubicacion", None)
        return data

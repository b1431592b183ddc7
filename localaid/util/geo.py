"""Geographic points and radius filtering.

Every place that accepts a location goes through ``parse_location`` (JSON
bodies) or ``parse_point_query`` (the ``ubicacion=lon,lat`` query
parameter), so coordinates are validated and normalised the same way
for users and services.

Locations are exposed in GeoJSON form::

    {"type": "Point", "coordinates": [longitud, latitud]}

Radius queries are evaluated by the database. ``within_radius`` builds a
haversine expression from ``radians``, ``sin``, ``cos``, ``asin`` and
``sqrt``; PostgreSQL provides these natively and SQLite connections get
them from ``register_sqlite_functions``.
"""
from __future__ import annotations

import math
from typing import NamedTuple, Optional

from sqlalchemy import Float, and_, func

from ..errors import ValidationError

EARTH_RADIUS_M = 6_371_000.0

SHAPE_MESSAGE = "Las coordenadas de ubicación deben ser [longitud, latitud]"
RANGE_MESSAGE = "Las coordenadas deben ser [longitud, latitud] válidas"
QUERY_MESSAGE = "Formato de ubicación inválido. Use: longitud,latitud"


class Point(NamedTuple):
    longitud: float
    latitud: float

    def to_geojson(self) -> dict:
        return {"type": "Point", "coordinates": [self.longitud, self.latitud]}


def _to_float(value) -> float:
    # bools are ints in Python but never valid coordinates
    if isinstance(value, bool) or value is None:
        raise ValidationError(RANGE_MESSAGE)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(RANGE_MESSAGE) from None
    if math.isnan(number):
        raise ValidationError(RANGE_MESSAGE)
    return number


def make_point(longitud, latitud) -> Point:
    """Build a ``Point`` after checking both coordinates are in range."""
    lon = _to_float(longitud)
    lat = _to_float(latitud)
    if not (-180 <= lon <= 180 and -90 <= lat <= 90):
        raise ValidationError(RANGE_MESSAGE)
    return Point(lon, lat)


def _is_empty(coordinates) -> bool:
    if coordinates is None:
        return True
    if isinstance(coordinates, (list, tuple)):
        return len(coordinates) == 0 or all(c is None for c in coordinates)
    return False


def parse_location(raw, allow_clear: bool = False) -> Optional[Point]:
    """Validate and normalise a ``ubicacion`` object from a request body.

    ``None`` always means "no location". With ``allow_clear`` (updates),
    absent, empty or all-null coordinates also mean "no location".
    Anything else must be exactly two in-range coordinates or a
    ``ValidationError`` is raised.
    """
    if raw is None:
        return None
    coordinates = raw.get("coordinates") if isinstance(raw, dict) else None
    if allow_clear and isinstance(raw, dict) and _is_empty(coordinates):
        return None
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
        raise ValidationError(SHAPE_MESSAGE)
    return make_point(coordinates[0], coordinates[1])


def parse_point_query(value: str) -> Point:
    """Parse the ``"longitud,latitud"`` query string format."""
    parts = value.split(",")
    if len(parts) != 2:
        raise ValidationError(QUERY_MESSAGE)
    try:
        lon, lat = (float(part.strip()) for part in parts)
    except ValueError:
        raise ValidationError(QUERY_MESSAGE) from None
    if math.isnan(lon) or math.isnan(lat):
        raise ValidationError(QUERY_MESSAGE)
    return make_point(lon, lat)


def distance_m(longitud_col, latitud_col, origin: Point):
    """SQL expression for the great-circle distance in metres to ``origin``."""
    lat1 = math.radians(origin.latitud)
    lon1 = math.radians(origin.longitud)
    lat2 = func.radians(latitud_col, type_=Float)
    lon2 = func.radians(longitud_col, type_=Float)

    sin_dlat = func.sin((lat2 - lat1) / 2, type_=Float)
    sin_dlon = func.sin((lon2 - lon1) / 2, type_=Float)
    a = sin_dlat * sin_dlat + math.cos(lat1) * func.cos(lat2, type_=Float) * sin_dlon * sin_dlon
    return 2 * EARTH_RADIUS_M * func.asin(func.sqrt(a, type_=Float), type_=Float)


def within_radius(longitud_col, latitud_col, origin: Point, radius_km: float):
    """Filter clause matching rows whose location lies within ``radius_km``.

    Rows without a location never match.
    """
    return and_(
        longitud_col.isnot(None),
        latitud_col.isnot(None),
        distance_m(longitud_col, latitud_col, origin) <= radius_km * 1000,
    )


def _null_safe(fn):
    def wrapper(value):
        if value is None:
            return None
        return fn(value)

    return wrapper


def register_sqlite_functions(dbapi_connection) -> None:
    """Register the math functions used by ``distance_m`` on a SQLite connection."""
    functions = {
        "radians": math.radians,
        "sin": math.sin,
        "cos": math.cos,
        "sqrt": lambda v: math.sqrt(max(v, 0.0)),
        "asin": lambda v: math.asin(min(1.0, max(-1.0, v))),
    }
    for name, fn in functions.items():
        dbapi_connection.create_function(name, 1, _null_safe(fn), deterministic=True)

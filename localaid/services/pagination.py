"""Offset pagination and list query parameters.

``paginate`` runs a count and a limited query against any
``Model.query`` and returns a ``Page``. ``Page.metadata`` renders the
pagination block of list responses; the name of the total counter
differs per resource (``totalUsers``, ``totalServices``).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from ..errors import ValidationError

# keeps the row offset well inside a 64-bit database integer
MAX_PAGE = 1_000_000_000


@dataclass
class Page:
    items: List[Any]
    page: int
    limit: int
    total: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def metadata(self, total_key: str) -> dict:
        return {
            "currentPage": self.page,
            "totalPages": math.ceil(self.total / self.limit),
            total_key: self.total,
            "hasNext": self.offset + self.limit < self.total,
            "hasPrev": self.page > 1,
        }


def parse_pagination(args: Mapping[str, str], default_limit: int, max_limit: int) -> tuple[int, int]:
    """Read ``page`` and ``limit`` from query arguments.

    ``page`` is at least 1 and ``limit`` is kept between 1 and
    ``max_limit``. Non-numeric values and pages beyond ``MAX_PAGE`` are
    rejected.
    """
    try:
        page = int(args.get("page", 1))
        limit = int(args.get("limit", default_limit))
    except (TypeError, ValueError):
        raise ValidationError("Parámetros de paginación inválidos") from None
    if page > MAX_PAGE:
        raise ValidationError("Parámetros de paginación inválidos")
    return max(page, 1), min(max(limit, 1), max_limit)


def parse_radius(value: Optional[str], default: float) -> float:
    """Read the ``radio`` query argument (kilometres)."""
    if value is None or value == "":
        return float(default)
    try:
        radius = float(value)
    except ValueError:
        raise ValidationError("El radio debe ser un número positivo") from None
    if math.isnan(radius) or math.isinf(radius) or radius <= 0:
        raise ValidationError("El radio debe ser un número positivo")
    return radius


def paginate(query, page: int, limit: int) -> Page:
    total = query.order_by(None).count()
    items = query.limit(limit).offset((page - 1) * limit).all()
    return Page(items=items, page=page, limit=limit, total=total)

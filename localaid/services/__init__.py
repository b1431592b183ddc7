"""Service layer for the LOCALAID API.

Business rules that sit between the Flask route handlers and the
models: the listing lifecycle (ownership and status transitions) and
list-query helpers (pagination, radius parameter).

Nothing in this package performs HTTP handling. Functions return
plain Python data or model objects and raise exceptions defined in
``localaid.errors`` when something goes wrong.
"""

from .lifecycle import (
    ALLOWED_TRANSITIONS,
    can_transition,
    change_status,
    ensure_editable,
    ensure_owner,
    parse_estado,
)
from .pagination import Page, paginate, parse_pagination, parse_radius

__all__ = [
    "ALLOWED_TRANSITIONS",
    "can_transition",
    "change_status",
    "ensure_editable",
    "ensure_owner",
    "parse_estado",
    "Page",
    "paginate",
    "parse_pagination",
    "parse_radius",
]

"""Request body helpers shared by the blueprints."""
from __future__ import annotations

from flask import request
from marshmallow import Schema, ValidationError as MarshmallowValidationError

from ..errors import ValidationError, flatten_messages


def json_body() -> dict:
    """Return the request's JSON object, or an empty dict for anything else."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def load_or_raise(schema: Schema, data: dict, message: str) -> dict:
    """Load ``data`` with ``schema``, raising the API's ``ValidationError``.

    ``message`` becomes the envelope message; the individual field
    messages are listed under ``errors``.
    """
    try:
        return schema.load(data)
    except MarshmallowValidationError as err:
        raise ValidationError(message, flatten_messages(err.messages)) from err

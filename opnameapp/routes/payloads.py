from __future__ import annotations

from flask import request

from opnameapp.exceptions import ValidationError


def json_object() -> dict:
    """Return the JSON request body; an absent or unparseable body reads as ``{}``."""

    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")
    return payload

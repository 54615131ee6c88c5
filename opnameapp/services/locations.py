from __future__ import annotations

import logging

from opnameapp.exceptions import LocationNotFoundError, ValidationError
from opnameapp.models import Location
from opnameapp.services.storage import CountStore, get_store

logger = logging.getLogger(__name__)


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def create_location(
    name: object,
    pic_name: object = None,
    description: object = None,
    store: CountStore | None = None,
) -> Location:
    store = store or get_store()
    clean_name = _optional_text(name)
    if not clean_name:
        raise ValidationError("Location name is required.", details={"field": "name"})

    location = store.insert_location(
        name=clean_name,
        description=_optional_text(description),
        pic_name=_optional_text(pic_name),
    )
    logger.info("Created count location %s (%s)", location.id, location.name)
    return location


def require_location(location_id: int, store: CountStore | None = None) -> Location:
    store = store or get_store()
    location = store.get_location(location_id)
    if location is None:
        raise LocationNotFoundError(
            "Location not found.", details={"location_id": location_id}
        )
    return location

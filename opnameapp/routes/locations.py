from __future__ import annotations

from flask import Blueprint, jsonify

from opnameapp.guards import database_guard
from opnameapp.routes.payloads import json_object
from opnameapp.services.locations import create_location, require_location
from opnameapp.services.storage import get_store

bp = Blueprint("locations", __name__, url_prefix="/locations")

bp.before_request(database_guard())


@bp.post("")
def add_location():
    payload = json_object()
    location = create_location(
        name=payload.get("name"),
        pic_name=payload.get("pic_name"),
        description=payload.get("description"),
    )
    return jsonify({"success": True, "data": location.to_dict()}), 201


@bp.get("")
def list_locations():
    results = []
    for entry in get_store().location_totals():
        payload = entry.location.to_dict()
        payload["total_products"] = entry.total_products
        payload["total_items"] = entry.total_items
        results.append(payload)
    return jsonify(results)


@bp.get("/<int:location_id>")
def get_location(location_id: int):
    return jsonify(require_location(location_id).to_dict())

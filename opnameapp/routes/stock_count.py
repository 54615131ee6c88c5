from __future__ import annotations

from flask import Blueprint, jsonify

from opnameapp.exceptions import ValidationError
from opnameapp.guards import database_guard
from opnameapp.routes.payloads import json_object
from opnameapp.services.locations import require_location
from opnameapp.services.scanning import scan, set_count
from opnameapp.services.storage import get_store

bp = Blueprint("stock_count", __name__, url_prefix="/stock-count")

bp.before_request(database_guard())


def _id_field(payload: dict, *names: str) -> int:
    for name in names:
        value = payload.get(name)
        if value is None or isinstance(value, bool):
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            break
    raise ValidationError(f"{names[0]} must be an integer id.", details={"field": names[0]})


@bp.post("/scan")
def scan_barcode():
    payload = json_object()
    location_id = _id_field(payload, "locationId", "location_id")
    stock_count = scan(location_id, payload.get("barcode"))
    return jsonify({"success": True, "data": stock_count.to_dict()})


@bp.post("/update")
def update_count():
    payload = json_object()
    stock_count_id = _id_field(payload, "stockCountId", "stock_count_id")
    stock_count = set_count(stock_count_id, payload.get("count"))
    return jsonify({"success": True, "data": stock_count.to_dict()})


@bp.get("/locations/<int:location_id>")
def location_counts(location_id: int):
    location = require_location(location_id)
    stock_counts = get_store().list_stock_counts_by_location(location.id)
    return jsonify(
        {
            "location": location.to_dict(),
            "stock_counts": [stock_count.to_dict() for stock_count in stock_counts],
            "total_products": len(stock_counts),
            "total_items": sum(stock_count.count for stock_count in stock_counts),
        }
    )

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from opnameapp.guards import database_guard
from opnameapp.routes.payloads import json_object
from opnameapp.services.catalog import (
    delete_product,
    import_catalog_text,
    import_products,
    records_from_payload,
)
from opnameapp.services.storage import get_store
from opnameapp.utils.locale import format_rupiah
from opnameapp.utils.tabular_import import parse_tabular_upload

bp = Blueprint("master_data", __name__, url_prefix="/master-data")

bp.before_request(database_guard())


@bp.get("/products")
def list_products():
    default_size = current_app.config.get("MASTER_DATA_PAGE_SIZE", 20)
    max_size = current_app.config.get("MASTER_DATA_MAX_PAGE_SIZE", 200)
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    per_page = request.args.get("per_page", default_size, type=int) or default_size
    per_page = min(max(per_page, 1), max_size)
    search = (request.args.get("q") or "").strip() or None

    pagination = get_store().list_products(search, page, per_page)
    products = []
    for product in pagination.items:
        payload = product.to_dict()
        payload["selling_price_display"] = format_rupiah(product.selling_price)
        products.append(payload)

    return jsonify(
        {
            "products": products,
            "page": pagination.page,
            "per_page": pagination.per_page,
            "total": pagination.total,
            "pages": pagination.pages,
        }
    )


@bp.post("/import")
def import_master_data():
    """Upsert the catalog from an uploaded file or a JSON ``products`` list."""

    upload = request.files.get("file")
    if upload is not None:
        imported = import_catalog_text(parse_tabular_upload(upload))
    else:
        payload = json_object()
        imported = import_products(records_from_payload(payload.get("products")))

    return jsonify({"success": True, "imported": imported})


@bp.delete("/products/<int:product_id>")
def remove_product(product_id: int):
    delete_product(product_id)
    return jsonify({"success": True})

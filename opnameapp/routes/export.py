from __future__ import annotations

from datetime import date

from flask import Blueprint, current_app, jsonify

from opnameapp.guards import database_guard
from opnameapp.services.export import (
    build_all_location_exports,
    build_location_export,
    summarize_exports,
)
from opnameapp.utils.csv_export import (
    all_locations_export_filename,
    csv_download,
    location_export_filename,
    render_all_locations_export,
    render_location_export,
)

bp = Blueprint("export", __name__, url_prefix="/export")

bp.before_request(database_guard())


@bp.get("/")
def export_summary():
    preview_size = current_app.config.get("EXPORT_PREVIEW_PAGE_SIZE", 5)
    return jsonify(summarize_exports(build_all_location_exports(), preview_size))


@bp.get("/locations/<int:location_id>.csv")
def export_location(location_id: int):
    export = build_location_export(location_id)
    content = render_location_export(export, current_app.config.get("DISPLAY_TIMEZONE"))
    current_app.logger.info(
        "Exported %s stock counts for location %s", export.total_products, location_id
    )
    return csv_download(content, location_export_filename(export.location, date.today()))


@bp.get("/all.csv")
def export_all_locations():
    exports = build_all_location_exports()
    content = render_all_locations_export(exports, current_app.config.get("DISPLAY_TIMEZONE"))
    return csv_download(content, all_locations_export_filename(date.today()))

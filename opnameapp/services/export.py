from __future__ import annotations

from opnameapp.services.locations import require_location
from opnameapp.services.storage import CountStore, get_store
from opnameapp.utils.csv_export import LocationExport


def build_location_export(location_id: int, store: CountStore | None = None) -> LocationExport:
    store = store or get_store()
    location = require_location(location_id, store=store)
    return LocationExport(
        location=location,
        stock_counts=store.list_stock_counts_by_location(location.id),
    )


def build_all_location_exports(store: CountStore | None = None) -> list[LocationExport]:
    store = store or get_store()
    return [
        LocationExport(
            location=location,
            stock_counts=store.list_stock_counts_by_location(location.id),
        )
        for location in store.list_locations()
    ]


def summarize_exports(exports: list[LocationExport], preview_size: int) -> dict[str, object]:
    locations = []
    for export in exports:
        total_pages = -(-export.total_products // preview_size) if preview_size > 0 else 0
        locations.append(
            {
                **export.location.to_dict(),
                "total_products": export.total_products,
                "total_items": export.total_items,
                "total_pages": total_pages,
                "preview": [
                    stock_count.to_dict()
                    for stock_count in export.stock_counts[:preview_size]
                ],
            }
        )
    return {
        "locations": locations,
        "total_products": sum(export.total_products for export in exports),
        "total_items": sum(export.total_items for export in exports),
    }

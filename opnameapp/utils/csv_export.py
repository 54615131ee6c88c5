"""CSV export of stock count results."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Sequence

from flask import Response

from opnameapp.exceptions import NoExportDataError
from opnameapp.models import Location, StockCount
from opnameapp.utils.locale import format_id_datetime

LOCATION_EXPORT_HEADERS = ["Barcode", "Product Name", "UOM", "Selling Price", "Count", "Counted At"]
ALL_LOCATIONS_EXPORT_HEADERS = ["Location", "PIC Name", *LOCATION_EXPORT_HEADERS]

NO_EXPORT_DATA_MESSAGE = "No stock count data to export."


@dataclass(frozen=True)
class LocationExport:
    location: Location
    stock_counts: Sequence[StockCount]

    @property
    def total_products(self) -> int:
        return len(self.stock_counts)

    @property
    def total_items(self) -> int:
        return sum(stock_count.count for stock_count in self.stock_counts)


def _quote(value: object) -> str:
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def _field(value: object) -> str:
    text = "" if value is None else str(value)
    if any(ch in text for ch in (",", '"', "\n", "\r")):
        return _quote(text)
    return text


def _pic(location: Location) -> str:
    return location.pic_name or "-"


def _count_columns(stock_count: StockCount, tz_name: str | None) -> list[str]:
    return [
        _field(stock_count.barcode),
        _quote(stock_count.product_name),
        _field(stock_count.uom),
        str(int(stock_count.selling_price or 0)),
        str(int(stock_count.count or 0)),
        _quote(format_id_datetime(stock_count.counted_at, tz_name)),
    ]


def render_location_export(export: LocationExport, tz_name: str | None = None) -> str:
    if not export.stock_counts:
        raise NoExportDataError(NO_EXPORT_DATA_MESSAGE)

    lines = [",".join(LOCATION_EXPORT_HEADERS)]
    for stock_count in export.stock_counts:
        lines.append(",".join(_count_columns(stock_count, tz_name)))

    lines.append("")
    lines.append(f"PIC Name,{_field(_pic(export.location))}")
    lines.append(f"Location,{_field(export.location.name)}")
    lines.append(f"Total Products,{export.total_products}")
    lines.append(f"Total Items,{export.total_items}")
    return "\n".join(lines)


def render_all_locations_export(
    exports: Sequence[LocationExport], tz_name: str | None = None
) -> str:
    if not any(export.stock_counts for export in exports):
        raise NoExportDataError(NO_EXPORT_DATA_MESSAGE)

    lines = [",".join(ALL_LOCATIONS_EXPORT_HEADERS)]
    for export in exports:
        prefix = [_quote(export.location.name), _field(_pic(export.location))]
        for stock_count in export.stock_counts:
            lines.append(",".join(prefix + _count_columns(stock_count, tz_name)))

    lines.append("")
    lines.append("Summary by Location")
    for export in exports:
        lines.append(
            f"{_quote(export.location.name)},{_quote(_pic(export.location))},"
            f"{export.total_products} products,{export.total_items} items"
        )

    total_products = sum(export.total_products for export in exports)
    total_items = sum(export.total_items for export in exports)
    lines.append("")
    lines.append(f"Grand Total,{total_products} products,{total_items} items")
    return "\n".join(lines)


def location_export_filename(location: Location, today: date) -> str:
    slug = re.sub(r"\s+", "-", location.name.strip())
    return f"stock-count-{slug}-{today.isoformat()}.csv"


def all_locations_export_filename(today: date) -> str:
    return f"stock-count-all-locations-{today.isoformat()}.csv"


def csv_download(content: str, filename: str) -> Response:
    response = Response(content, mimetype="text/csv; charset=utf-8")
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response

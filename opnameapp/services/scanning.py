"""Barcode scanning and manual count adjustment."""

from __future__ import annotations

import logging

from opnameapp.exceptions import (
    EmptyBarcodeError,
    InvalidCountError,
    ProductNotFoundError,
    StockCountNotFoundError,
)
from opnameapp.models import StockCount
from opnameapp.services.locations import require_location
from opnameapp.services.storage import CountStore, get_store

logger = logging.getLogger(__name__)


def scan(location_id: int, raw_barcode: object, store: CountStore | None = None) -> StockCount:
    """Record one scan of ``raw_barcode`` at a location.

    The first scan of a barcode at a location creates its stock count with
    ``count = 1`` and a copy of the catalog attributes; every later scan adds
    one. Failures leave the stored counts untouched.
    """

    store = store or get_store()
    barcode = str(raw_barcode or "").strip()
    if not barcode:
        raise EmptyBarcodeError("Barcode is required.")

    require_location(location_id, store=store)

    product = store.find_product_by_barcode(barcode)
    if product is None:
        logger.warning("Scan rejected at location %s: unknown barcode %s", location_id, barcode)
        raise ProductNotFoundError(
            "Product not found in master data.", details={"barcode": barcode}
        )

    stock_count = store.increment_stock_count(location_id, product)
    logger.debug(
        "Scanned %s at location %s, count now %s", barcode, location_id, stock_count.count
    )
    return stock_count


def _parse_count(value: object) -> int:
    if isinstance(value, bool):
        raise InvalidCountError("Count must be a whole number.")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidCountError("Count must be a whole number.")


def set_count(stock_count_id: int, new_count: object, store: CountStore | None = None) -> StockCount:
    store = store or get_store()
    count = _parse_count(new_count)
    if count < 0:
        logger.warning("Rejected negative count %s for stock count %s", count, stock_count_id)
        raise InvalidCountError("Count must not be negative.", details={"count": count})

    stock_count = store.update_stock_count_count(stock_count_id, count)
    if stock_count is None:
        raise StockCountNotFoundError(
            "Stock count not found.", details={"stock_count_id": stock_count_id}
        )
    return stock_count

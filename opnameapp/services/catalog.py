"""Master catalog import, listing and deletion."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Mapping

from opnameapp.exceptions import NotFoundError, ValidationError
from opnameapp.services.storage import CatalogRecord, CountStore, get_store
from opnameapp.utils.catalog_csv import dedupe_by_barcode, parse_catalog_csv, parse_price

logger = logging.getLogger(__name__)


def _required_text(entry: Mapping[str, object], field: str, position: int) -> str:
    value = entry.get(field)
    text = "" if value is None else str(value).strip()
    if not text:
        raise ValidationError(
            f"Product {position}: {field} is required.",
            details={"row": position, "field": field},
        )
    return text


def _coerce_price(value: object, position: int) -> int:
    if isinstance(value, bool) or value is None:
        raise ValidationError(
            f"Product {position}: selling_price must be a number.",
            details={"row": position, "field": "selling_price"},
        )
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValidationError(
                f"Product {position}: selling_price must be a finite number.",
                details={"row": position, "field": "selling_price"},
            )
        if value < 0:
            raise ValidationError(
                f"Product {position}: selling_price must not be negative.",
                details={"row": position, "field": "selling_price"},
            )
        return int(value)
    try:
        return parse_price(str(value))
    except ValueError as exc:
        raise ValidationError(
            f"Product {position}: {exc}",
            details={"row": position, "field": "selling_price"},
        ) from exc


def records_from_payload(products: object) -> list[CatalogRecord]:
    """Validate a JSON ``products`` list into catalog records."""

    if not isinstance(products, list) or not products:
        raise ValidationError("products must be a non-empty list.")

    records = []
    for position, entry in enumerate(products, start=1):
        if not isinstance(entry, Mapping):
            raise ValidationError(f"Product {position}: expected an object.")
        records.append(
            CatalogRecord(
                barcode=_required_text(entry, "barcode", position),
                product_name=_required_text(entry, "product_name", position),
                uom=_required_text(entry, "uom", position),
                selling_price=_coerce_price(entry.get("selling_price"), position),
            )
        )
    return dedupe_by_barcode(records)


def import_products(
    records: Iterable[CatalogRecord], store: CountStore | None = None
) -> int:
    store = store or get_store()
    records = dedupe_by_barcode(list(records))
    if not records:
        raise ValidationError("The import does not contain any products.")
    imported = store.upsert_products(records)
    logger.info("Imported %s catalog products", imported)
    return imported


def import_catalog_text(text: str, store: CountStore | None = None) -> int:
    return import_products(parse_catalog_csv(text), store=store)


def delete_product(product_id: int, store: CountStore | None = None) -> None:
    store = store or get_store()
    if not store.delete_product(product_id):
        raise NotFoundError("Product not found.", details={"product_id": product_id})
    logger.info("Deleted catalog product %s", product_id)

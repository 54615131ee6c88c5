"""Master catalog CSV parsing.

Headers are matched loosely (``Barcode``, ``Product Name``, ``UOM``,
``Selling Price`` and their common spellings) and prices are read with the
Indonesian convention: ``.`` groups thousands and ``,`` marks decimals.
"""

from __future__ import annotations

import re

from opnameapp.exceptions import MissingColumnsError, ValidationError
from opnameapp.services.storage import CatalogRecord

# Aliases are listed most specific first.
CATALOG_HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "barcode": ("barcode",),
    "product_name": ("product_name", "productname", "product", "name"),
    "uom": ("uom",),
    "selling_price": ("selling_price", "sellingprice", "price", "selling"),
}
# Resolved in this order; a header claimed by an earlier field is skipped.
RESOLUTION_ORDER = ("barcode", "uom", "product_name", "selling_price")

_CURRENCY_PREFIX = re.compile(r"^\s*rp\.?\s*", re.IGNORECASE)
_LEADING_INTEGER = re.compile(r"^\s*([+-]?\d+)")


def split_csv_line(line: str) -> list[str]:
    """Split one CSV line on commas that are not inside double quotes."""

    values: list[str] = []
    current: list[str] = []
    inside_quotes = False
    index = 0
    while index < len(line):
        char = line[index]
        if char == '"':
            if inside_quotes and line[index + 1 : index + 2] == '"':
                current.append('"')
                index += 2
                continue
            inside_quotes = not inside_quotes
        elif char == "," and not inside_quotes:
            values.append(_clean_field("".join(current)))
            current = []
        else:
            current.append(char)
        index += 1
    values.append(_clean_field("".join(current)))
    return values


def _clean_field(value: str) -> str:
    # Enclosing quotes were already dropped while splitting.
    return value.strip()


def parse_price(value: str) -> int:
    """Return the whole-Rupiah amount for an id-ID formatted price.

    ``"1.000,50"`` becomes ``1000``; fractional amounts are truncated.
    """

    text = _CURRENCY_PREFIX.sub("", str(value or ""))
    text = text.replace(".", "").replace(",", ".")
    match = _LEADING_INTEGER.match(text)
    if not match:
        raise ValueError(f"Selling price {value!r} is not a number.")
    amount = int(match.group(1))
    if amount < 0:
        raise ValueError(f"Selling price {value!r} must not be negative.")
    return amount


def _match_header(
    headers: list[str], aliases: tuple[str, ...], claimed: set[int]
) -> int | None:
    for alias in aliases:
        for index, header in enumerate(headers):
            if index not in claimed and alias in header:
                return index
    return None


def resolve_catalog_columns(headers: list[str]) -> dict[str, int]:
    lowered = [header.strip().lower() for header in headers]
    resolved: dict[str, int] = {}
    claimed: set[int] = set()
    for field in RESOLUTION_ORDER:
        index = _match_header(lowered, CATALOG_HEADER_ALIASES[field], claimed)
        if index is not None:
            resolved[field] = index
            claimed.add(index)

    missing = [field for field in CATALOG_HEADER_ALIASES if field not in resolved]
    if missing:
        raise MissingColumnsError(
            "Invalid CSV format. Required columns: Barcode, Product Name, UOM, Selling Price.",
            details={"missing_columns": missing, "headers_found": headers},
        )
    return resolved


def dedupe_by_barcode(records: list[CatalogRecord]) -> list[CatalogRecord]:
    """Keep the last record for each barcode, in first-seen order."""
    latest: dict[str, CatalogRecord] = {}
    for record in records:
        latest[record.barcode] = record
    return list(latest.values())


def parse_catalog_csv(text: str) -> list[CatalogRecord]:
    lines = [line.rstrip("\r") for line in text.split("\n")]
    lines = [line for line in lines if line.strip()]
    if not lines:
        raise ValidationError("The uploaded file does not include any rows.")

    headers = split_csv_line(lines[0].lstrip("\ufeff"))
    columns = resolve_catalog_columns(headers)

    records: list[CatalogRecord] = []
    for row_number, line in enumerate(lines[1:], start=1):
        values = split_csv_line(line)

        def _value(field: str) -> str:
            index = columns[field]
            return values[index].strip() if index < len(values) else ""

        barcode = _value("barcode")
        if not barcode:
            continue
        try:
            selling_price = parse_price(_value("selling_price"))
        except ValueError as exc:
            raise ValidationError(
                f"Row {row_number}: {exc}",
                details={"row": row_number, "barcode": barcode},
            ) from exc
        records.append(
            CatalogRecord(
                barcode=barcode,
                product_name=_value("product_name"),
                uom=_value("uom"),
                selling_price=selling_price,
            )
        )

    return dedupe_by_barcode(records)

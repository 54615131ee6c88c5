import os
import sys

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from opnameapp.exceptions import MissingColumnsError, ValidationError
from opnameapp.services.storage import CatalogRecord
from opnameapp.utils.catalog_csv import (
    dedupe_by_barcode,
    parse_catalog_csv,
    parse_price,
    resolve_catalog_columns,
    split_csv_line,
)


def test_split_csv_line_keeps_quoted_commas():
    assert split_csv_line('X,"Product, With Comma",EA,"1,000"') == [
        "X",
        "Product, With Comma",
        "EA",
        "1,000",
    ]


def test_split_csv_line_handles_escaped_quotes_and_blank_fields():
    assert split_csv_line('A,"Say ""hi""",,  KG ') == ["A", 'Say "hi"', "", "KG"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12500", 12500),
        ("12.500", 12500),
        ("1.000,50", 1000),
        ("Rp 12.500", 12500),
        ("99,99", 99),
        ("0", 0),
    ],
)
def test_parse_price_uses_indonesian_separators(raw, expected):
    assert parse_price(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "-5"])
def test_parse_price_rejects_invalid_amounts(raw):
    with pytest.raises(ValueError):
        parse_price(raw)


def test_resolve_columns_matches_loose_header_names_in_any_order():
    columns = resolve_catalog_columns(["Selling Price", "UOM", "Product Name", "Barcode"])
    assert columns == {"barcode": 3, "product_name": 2, "uom": 1, "selling_price": 0}


def test_resolve_columns_reports_missing_and_found_headers():
    with pytest.raises(MissingColumnsError) as excinfo:
        resolve_catalog_columns(["Barcode", "Product Name"])

    payload = excinfo.value.to_dict()
    assert payload["missing_columns"] == ["uom", "selling_price"]
    assert payload["headers_found"] == ["Barcode", "Product Name"]
    assert "Required columns" in payload["error"]


def test_parse_catalog_csv_reads_rows_and_skips_blank_lines():
    text = (
        "\ufeffBarcode,Product Name,UOM,Selling Price\r\n"
        '8991001,"Gula Pasir, 1kg",KG,"14.500"\r\n'
        "\r\n"
        "8991002,Teh Celup,BOX,\"1.000,50\"\r\n"
        ",No Barcode,PCS,100\r\n"
    )

    records = parse_catalog_csv(text)

    assert records == [
        CatalogRecord("8991001", "Gula Pasir, 1kg", "KG", 14500),
        CatalogRecord("8991002", "Teh Celup", "BOX", 1000),
    ]


def test_parse_catalog_csv_keeps_last_duplicate_barcode():
    text = "Barcode,Product Name,UOM,Selling Price\nA,First,PCS,10\nB,Other,PCS,5\nA,Second,PCS,20\n"

    records = parse_catalog_csv(text)

    assert [record.barcode for record in records] == ["A", "B"]
    assert records[0].product_name == "Second"
    assert records[0].selling_price == 20


def test_parse_catalog_csv_rejects_bad_price_with_row_number():
    text = "Barcode,Product Name,UOM,Selling Price\nA,Thing,PCS,10\nB,Other,PCS,free\n"

    with pytest.raises(ValidationError) as excinfo:
        parse_catalog_csv(text)

    assert excinfo.value.details == {"row": 2, "barcode": "B"}
    assert excinfo.value.message.startswith("Row 2:")


def test_parse_catalog_csv_requires_content():
    with pytest.raises(ValidationError):
        parse_catalog_csv("\n\n")


def test_dedupe_by_barcode_preserves_first_seen_order():
    records = [
        CatalogRecord("B", "b", "PCS", 1),
        CatalogRecord("A", "a", "PCS", 2),
        CatalogRecord("B", "b2", "PCS", 3),
    ]
    assert dedupe_by_barcode(records) == [
        CatalogRecord("B", "b2", "PCS", 3),
        CatalogRecord("A", "a", "PCS", 2),
    ]


def test_resolve_columns_does_not_read_uom_name_as_product_name():
    columns = resolve_catalog_columns(["Barcode", "UOM Name", "Product", "Price"])
    assert columns == {"barcode": 0, "uom": 1, "product_name": 2, "selling_price": 3}

    columns = resolve_catalog_columns(["Barcode", "UOM Name", "Name", "Selling Price"])
    assert columns == {"barcode": 0, "uom": 1, "product_name": 2, "selling_price": 3}


def test_resolve_columns_prefers_exact_field_names():
    columns = resolve_catalog_columns(["name", "product_name", "barcode", "uom", "selling_price"])
    assert columns["product_name"] == 1

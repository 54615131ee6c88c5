import io
import os
import sys

import pytest
from openpyxl import Workbook

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from opnameapp.exceptions import TabularImportError
from opnameapp.services.storage import CatalogRecord
from opnameapp.utils.catalog_csv import parse_catalog_csv
from opnameapp.utils.tabular_import import decode_tabular_bytes


def test_csv_bytes_are_decoded_without_bom():
    data = "Barcode,Product Name,UOM,Selling Price\nA,Kopi,PCS,5000\n".encode("utf-8-sig")

    text = decode_tabular_bytes("catalog.csv", data)

    assert text.startswith("Barcode,")
    assert parse_catalog_csv(text) == [CatalogRecord("A", "Kopi", "PCS", 5000)]


def test_tsv_is_rewritten_as_csv():
    data = b"Barcode\tProduct Name\tUOM\tSelling Price\nA\tKopi, Bubuk\tPCS\t5.000\n"

    text = decode_tabular_bytes("catalog.tsv", data)

    assert parse_catalog_csv(text) == [CatalogRecord("A", "Kopi, Bubuk", "PCS", 5000)]


def test_xlsx_rows_are_converted():
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(["Barcode", "Product Name", "UOM", "Selling Price"])
    sheet.append(["8991001", "Gula Pasir", "KG", 14500])
    sheet.append(["8991002", "Minyak", "LTR", 21999.75])
    buffer = io.BytesIO()
    workbook.save(buffer)

    text = decode_tabular_bytes("catalog.xlsx", buffer.getvalue())

    assert parse_catalog_csv(text) == [
        CatalogRecord("8991001", "Gula Pasir", "KG", 14500),
        CatalogRecord("8991002", "Minyak", "LTR", 21999),
    ]


def test_unsupported_extension_is_rejected():
    with pytest.raises(TabularImportError):
        decode_tabular_bytes("catalog.pdf", b"%PDF")


def test_non_utf8_csv_is_rejected():
    with pytest.raises(TabularImportError):
        decode_tabular_bytes("catalog.csv", b"\xff\xfe\x00B")


def test_corrupt_xlsx_is_rejected():
    with pytest.raises(TabularImportError):
        decode_tabular_bytes("catalog.xlsx", b"not a workbook")

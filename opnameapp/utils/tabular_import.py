"""Utilities for turning catalog uploads (CSV/TSV/XLSX) into CSV text."""

from __future__ import annotations

import csv
import io
import os
from datetime import date, datetime
from typing import Iterable

from openpyxl import load_workbook
from werkzeug.datastructures import FileStorage

from opnameapp.exceptions import TabularImportError


def _cell_to_text(cell: object) -> str:
    if cell is None:
        return ""
    if isinstance(cell, bool):
        return "TRUE" if cell else "FALSE"
    if isinstance(cell, float):
        if cell.is_integer():
            return str(int(cell))
        # Prices are parsed with the id-ID decimal comma.
        return str(cell).replace(".", ",")
    if isinstance(cell, (datetime, date)):
        return cell.isoformat()
    return str(cell)


def _rows_to_csv_text(rows: Iterable[Iterable[object]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    for row in rows:
        writer.writerow([_cell_to_text(cell) for cell in row])
    return output.getvalue()


def decode_tabular_bytes(filename: str, data: bytes) -> str:
    """Return CSV text for CSV, TXT, TSV or XLSX content."""

    _, ext = os.path.splitext(filename or "")
    ext = ext.lower()

    if ext in {".csv", ".txt"}:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise TabularImportError("CSV import files must be UTF-8 encoded.") from exc

    if ext == ".tsv":
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise TabularImportError("TSV import files must be UTF-8 encoded.") from exc
        reader = csv.reader(io.StringIO(text), delimiter="\t")
        return _rows_to_csv_text(reader)

    if ext == ".xlsx":
        try:
            workbook = load_workbook(filename=io.BytesIO(data), read_only=True, data_only=True)
        except Exception as exc:
            raise TabularImportError("The XLSX file could not be read.") from exc
        try:
            sheet = workbook.active
            return _rows_to_csv_text(sheet.iter_rows(values_only=True))
        finally:
            workbook.close()

    raise TabularImportError("Unsupported file type. Upload a CSV, TSV, or XLSX file.")


def parse_tabular_upload(file_storage: FileStorage | None) -> str:
    if not file_storage or not file_storage.filename:
        raise TabularImportError("No file uploaded.")
    return decode_tabular_bytes(file_storage.filename, file_storage.stream.read())

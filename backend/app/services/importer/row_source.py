"""Turn an uploaded CSV or XLSX file into header-keyed string rows."""

import csv
import io
from datetime import date, datetime
from pathlib import PurePath
from typing import Any, Iterable
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.core.app_exceptions import RowSourceError

CSV_EXTENSIONS = {".csv"}
XLSX_EXTENSIONS = {".xlsx", ".xlsm"}
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS | XLSX_EXTENSIONS


def _normalize_header(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def _cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def _is_row_empty(values: Iterable[Any]) -> bool:
    return all(v is None or (isinstance(v, str) and not v.strip()) for v in values)


def parse_csv(content: bytes) -> list[dict[str, str]]:
    try:
        # utf-8-sig drops the BOM spreadsheet tools like to add
        text_content = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise RowSourceError(f"Failed to decode file as UTF-8: {e}") from e

    try:
        reader = csv.DictReader(io.StringIO(text_content))
        if reader.fieldnames is None:
            raise RowSourceError("File has no header row")
        reader.fieldnames = [_normalize_header(name) for name in reader.fieldnames]

        rows = []
        for row in reader:
            # Filter out None keys (from extra delimiters)
            rows.append(
                {k: (v or "").strip() for k, v in row.items() if k is not None and k != ""}
            )
        return rows
    except csv.Error as e:
        raise RowSourceError(f"CSV parsing error: {e}") from e


def parse_xlsx(content: bytes) -> list[dict[str, str]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as e:
        raise RowSourceError(f"Could not open spreadsheet: {e}") from e

    try:
        sheet = workbook.active
        if sheet is None:
            raise RowSourceError("Spreadsheet has no worksheet")

        row_iter = sheet.iter_rows(values_only=True)
        header_row = next(row_iter, None)
        if header_row is None or _is_row_empty(header_row):
            raise RowSourceError("File has no header row")
        headers = [_normalize_header(value) for value in header_row]

        rows = []
        for values in row_iter:
            if _is_row_empty(values):
                continue
            row = {}
            for index, header in enumerate(headers):
                if header:
                    value = values[index] if index < len(values) else None
                    row[header] = _cell_to_str(value)
            rows.append(row)
        return rows
    finally:
        workbook.close()


def parse_rows(filename: str | None, content: bytes) -> list[dict[str, str]]:
    """Parse by file extension. Raises RowSourceError for anything unreadable."""
    if not content:
        raise RowSourceError("Uploaded file is empty")

    suffix = PurePath(filename or "").suffix.lower()
    if suffix in CSV_EXTENSIONS:
        return parse_csv(content)
    if suffix in XLSX_EXTENSIONS:
        return parse_xlsx(content)
    raise RowSourceError(
        "Unsupported file type. Upload a .csv or .xlsx file",
        {"filename": filename, "supported": sorted(SUPPORTED_EXTENSIONS)},
    )

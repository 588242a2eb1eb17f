"""Reads uploaded catalog sheets into row arrays and writes catalog exports."""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from pathlib import Path
from typing import Any, Iterable, List, Optional

import xlrd
from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..common.errors import SpreadsheetError
from ..common.models.product import Product

logger = logging.getLogger(__name__)

EXPORT_SHEET_NAME = "Products"
EXPORT_FILENAME = "swaisy_products"

EXPORT_COLUMNS = (
    "ITEM NAME",
    "item name ar",
    "desc",
    "notes",
    "desc ar",
    "CATEGORY",
    "category ar",
    "sub category",
    "sub category ar",
    "BRAND",
    "weight",
    "price",
    "in/out stock",
    "imag",
    "packaging",
    "unit per pack",
    "special offer",
)

_XLSX_MAGIC = b"PK\x03\x04"
_XLS_MAGIC = b"\xd0\xcf\x11\xe0"


def _cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _trim_trailing_empty(rows: List[List[str]]) -> List[List[str]]:
    while rows and not any(cell.strip() for cell in rows[-1]):
        rows.pop()
    return rows


def _read_csv(content: bytes) -> List[List[str]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("cp1256", errors="replace")
    reader = csv.reader(io.StringIO(text))
    return [list(row) for row in reader]


def _read_xlsx(content: bytes) -> List[List[str]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
        raise SpreadsheetError(f"could not read workbook: {exc}") from exc
    try:
        sheet = workbook.worksheets[0]
        return [[_cell_to_text(v) for v in row] for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_xls(content: bytes) -> List[List[str]]:
    try:
        book = xlrd.open_workbook(file_contents=content)
    except xlrd.XLRDError as exc:
        raise SpreadsheetError(f"could not read workbook: {exc}") from exc
    sheet = book.sheet_by_index(0)
    return [[_cell_to_text(v) for v in sheet.row_values(r)] for r in range(sheet.nrows)]


def read_rows(content: bytes, filename: Optional[str] = None) -> List[List[str]]:
    """Return the first sheet of ``content`` as rows of cell strings.

    The format is chosen from the file signature, then from the extension.
    Empty cells read as ``""``.
    """

    if not content:
        raise SpreadsheetError("uploaded file is empty")
    suffix = Path(filename or "").suffix.lower()
    if content.startswith(_XLSX_MAGIC) or suffix == ".xlsx":
        rows = _read_xlsx(content)
    elif content.startswith(_XLS_MAGIC) or suffix == ".xls":
        rows = _read_xls(content)
    else:
        rows = _read_csv(content)
    logger.debug("read %d rows from %s", len(rows), filename or "<upload>")
    return _trim_trailing_empty(rows)


def export_row(product: Product) -> List[Any]:
    parts = product.description.split("\n") if product.description else []
    main_desc = parts[0] if parts else ""
    notes = "\n".join(parts[1:])
    return [
        product.name,
        product.name_ar,
        main_desc,
        notes,
        product.description_ar,
        product.category,
        product.category_ar,
        product.sub_category,
        product.sub_category_ar,
        product.brand,
        product.weight,
        product.default_price,
        product.stock_status,
        product.image_url,
        product.packaging,
        product.unit_per_pack,
        "Yes" if product.is_special_offer else "No",
    ]


def export_xlsx(products: Iterable[Product]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = EXPORT_SHEET_NAME
    sheet.append(list(EXPORT_COLUMNS))
    for product in products:
        sheet.append(export_row(product))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_csv(products: Iterable[Product]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_COLUMNS)
    for product in products:
        writer.writerow(export_row(product))
    # leading BOM marks the file as UTF-8 for spreadsheet apps
    return ("\ufeff" + buffer.getvalue()).encode("utf-8")

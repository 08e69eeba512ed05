"""
Decode uploaded file bytes into a uniform grid of string cells.

Spreadsheets are read from their first sheet with no header assumption.
``.xlsx`` goes through openpyxl in read-only mode; legacy ``.xls`` workbooks
are read through pandas. The container is sniffed from its magic bytes, so an
``.xls`` upload that is really an OOXML workbook still opens. Delimited text
is read with the csv module after strict UTF-8 decoding, falling back to
cp1252 and then latin-1 with a parser warning.
"""

from __future__ import annotations

import csv
import datetime as dt
import io
import logging
import re
from typing import Any, List, Sequence, Tuple

import openpyxl
import pandas as pd

from .errors import GridDecodeError

LOGGER = logging.getLogger(__name__)

Grid = List[List[str]]

SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")
DELIMITED_EXTENSIONS = (".csv",)

# Tried in order before the latin-1 last resort; cp1252 is what Excel on Windows writes.
TEXT_ENCODINGS = ("utf-8-sig", "cp1252")

ZIP_MAGIC = b"PK\x03\x04"
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

# Exporters write text cells as ="value" so spreadsheets keep them as text.
_TEXT_FORMULA_RE = re.compile(r'^="(.*)"$', re.DOTALL)


def normalize_extension(name_or_ext: str) -> str:
    """Return the lower-cased extension (with dot) of a filename or bare extension."""

    value = str(name_or_ext or "").strip().lower()
    if "." not in value:
        return f".{value}" if value else ""
    return value[value.rfind(".") :]


def cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if value != value:  # NaN from pandas
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, dt.datetime):
        if value.time() == dt.time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, dt.date):
        return value.isoformat()
    text = str(value)
    match = _TEXT_FORMULA_RE.match(text.strip())
    if match:
        return match.group(1).replace('""', '"')
    return text


def _stringify_rows(rows: Sequence[Sequence[Any]]) -> Grid:
    return [[cell_to_str(cell) for cell in row] for row in rows]


def _read_xlsx(data: bytes) -> Grid:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except Exception as exc:
        raise GridDecodeError(f"Unable to open workbook: {exc}") from exc
    try:
        if not wb.worksheets:
            return []
        ws = wb.worksheets[0]
        return _stringify_rows(list(ws.iter_rows(values_only=True)))
    except Exception as exc:
        raise GridDecodeError(f"Unable to read first sheet: {exc}") from exc
    finally:
        wb.close()


def _read_xls(data: bytes) -> Grid:
    try:
        frame = pd.read_excel(io.BytesIO(data), sheet_name=0, header=None, dtype=object)
    except Exception as exc:
        raise GridDecodeError(f"Unable to open legacy workbook: {exc}") from exc
    return _stringify_rows(frame.values.tolist())


def _read_spreadsheet(data: bytes) -> Grid:
    if data.startswith(ZIP_MAGIC):
        return _read_xlsx(data)
    if data.startswith(OLE2_MAGIC):
        return _read_xls(data)
    raise GridDecodeError("File is not a readable spreadsheet (unrecognized container signature)")


def decode_text(data: bytes) -> Tuple[str, str]:
    """Return the decoded text and the encoding used."""

    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding), encoding
        except UnicodeDecodeError:
            continue
    return data.decode("latin-1"), "latin-1"


def _read_delimited(data: bytes) -> Tuple[Grid, List[str]]:
    text, encoding = decode_text(data)
    notes = []
    if encoding != TEXT_ENCODINGS[0]:
        LOGGER.warning("Delimited input is not UTF-8; decoded as %s", encoding)
        notes.append(f"File is not UTF-8 encoded; read it as {encoding}. Check accented characters.")
    try:
        reader = csv.reader(io.StringIO(text, newline=""))
        return _stringify_rows(list(reader)), notes
    except csv.Error as exc:
        raise GridDecodeError(f"Unable to read delimited text: {exc}") from exc


def decode_grid(data: bytes, extension: str) -> Tuple[Grid, List[str]]:
    """
    Decode ``data`` into rows of string cells plus file-level notes (such as
    an encoding fallback) to surface as parser warnings.

    Ragged rows are returned as-is; missing trailing cells are the caller's
    empty strings. ``GridDecodeError`` is raised only when the container
    itself cannot be read.
    """

    ext = normalize_extension(extension)
    notes: List[str] = []
    if ext in SPREADSHEET_EXTENSIONS:
        grid = _read_spreadsheet(data)
    elif ext in DELIMITED_EXTENSIONS:
        grid, notes = _read_delimited(data)
    else:
        raise GridDecodeError(f"Unsupported file extension: {ext or '<none>'}")
    LOGGER.debug("Decoded %d row(s) from %s input", len(grid), ext)
    return grid, notes


def read_grid(data: bytes, extension: str) -> Grid:
    """Decode ``data`` into rows of string cells (see ``decode_grid``)."""

    return decode_grid(data, extension)[0]


def cell(row: Sequence[str], index: int) -> str:
    """Cell ``index`` of ``row`` stripped, or ``""`` when the row is short."""

    if index < len(row):
        return str(row[index] or "").strip()
    return ""

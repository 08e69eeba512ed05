import datetime as dt
from io import BytesIO

import pandas as pd
import pytest

from transcript_import.errors import GridDecodeError
from transcript_import.grid import cell, cell_to_str, decode_grid, decode_text, normalize_extension, read_grid


def _xlsx_bytes(rows):
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return buffer.getvalue()


def test_read_xlsx_first_sheet_as_strings():
    data = _xlsx_bytes([["Intro to CS", "CSX 101", 3, "A"], ["Calculus", "MTH101", 3.5, "B+"]])

    grid = read_grid(data, ".xlsx")

    assert grid[0][:4] == ["Intro to CS", "CSX 101", "3", "A"]
    assert grid[1][:4] == ["Calculus", "MTH101", "3.5", "B+"]


def test_xls_extension_with_ooxml_content_still_opens():
    data = _xlsx_bytes([["Title", "CSX101", 3]])

    grid = read_grid(data, "transcript.xls")

    assert grid[0][:3] == ["Title", "CSX101", "3"]


def test_csv_quoted_commas_and_bom():
    data = '\ufeff"Data Structures, Part 1",CSX201,3,A\n'.encode("utf-8")

    grid = read_grid(data, ".csv")

    assert grid == [["Data Structures, Part 1", "CSX201", "3", "A"]]


def test_csv_text_formula_cells_are_unwrapped():
    data = b'"Intro","CSX101","3","A","Completed","=""2024-1"""\n'

    grid = read_grid(data, ".csv")

    assert grid[0][5] == "2024-1"


def test_corrupt_spreadsheet_raises_decode_error():
    with pytest.raises(GridDecodeError):
        read_grid(b"this is not a workbook", ".xlsx")


def test_truncated_zip_raises_decode_error():
    with pytest.raises(GridDecodeError):
        read_grid(b"PK\x03\x04garbage", ".xlsx")


def test_unsupported_extension():
    with pytest.raises(GridDecodeError):
        read_grid(b"a,b,c", ".txt")


def test_cell_helpers():
    assert cell(["a", " b "], 1) == "b"
    assert cell(["a"], 4) == ""
    assert cell_to_str(None) == ""
    assert cell_to_str(float("nan")) == ""
    assert cell_to_str(3.0) == "3"
    assert cell_to_str(dt.datetime(2024, 1, 5)) == "2024-01-05"
    assert normalize_extension("Transcript.XLSX") == ".xlsx"
    assert normalize_extension("csv") == ".csv"


def test_cp1252_csv_keeps_accents_and_notes_the_encoding():
    data = "Français,FRE101,3,A\n".encode("cp1252")

    grid, notes = decode_grid(data, ".csv")

    assert grid == [["Français", "FRE101", "3", "A"]]
    assert len(notes) == 1
    assert "cp1252" in notes[0]


def test_decode_text_fallback_order():
    assert decode_text("Señor".encode("utf-8")) == ("Señor", "utf-8-sig")
    assert decode_text("Señor".encode("cp1252")) == ("Señor", "cp1252")
    # 0x81 is undefined in cp1252
    assert decode_text(b"\x81bc") == ("\x81bc", "latin-1")


def test_utf8_csv_has_no_encoding_note():
    _, notes = decode_grid("Français,FRE101,3,A\n".encode("utf-8"), ".csv")

    assert notes == []

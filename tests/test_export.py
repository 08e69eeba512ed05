import openpyxl
import pytest

from transcript_import.curriculum import categorize_courses
from transcript_import.export import HIGHLIGHT_COLOR, export_categorized
from transcript_import.parser import parse_transcript_bytes
from transcript_import.schema import (
    FREE_ELECTIVE,
    CourseRecord,
    CourseStatus,
    CurriculumCourse,
    CurriculumMetadata,
)

CURRICULUM = [
    CurriculumCourse("CSX101", "Intro to CS", 3.0, "Core"),
    CurriculumCourse("CSX201", "Data Structures", 3.0, "Core"),
    CurriculumCourse("MTH101", "Calculus", 4.0, "Math"),
]


def _categorized():
    courses = [
        CourseRecord("CSX101", "Intro to CS", 3.0, "A", CourseStatus.COMPLETED),
        CourseRecord("MTH101", "Calculus", 4.0, "", CourseStatus.IN_PROGRESS, semester="2024-2"),
        CourseRecord("ART100", "Drawing", 2.0, "B", CourseStatus.COMPLETED),
    ]
    return categorize_courses(courses, CURRICULUM).categorized


def test_csv_export_reads_back_with_categories(tmp_path):
    path = export_categorized(_categorized(), tmp_path / "courses.csv", CurriculumMetadata(id="bscs"))

    text = path.read_text(encoding="utf-8")
    assert text.startswith("course data\n")
    assert '"Core (6 Credits)"' in text
    assert '"Active Credits","3"' in text
    assert '"=""2024-2"""' in text
    assert text.rstrip().endswith('"Overall Active Credits","9"')

    parsed = parse_transcript_bytes(path.read_bytes(), ".csv")

    by_code = {c.code: c for c in parsed.courses}
    assert by_code["CSX101"].category == "Core"
    assert by_code["CSX101"].status is CourseStatus.COMPLETED
    assert by_code["MTH101"].status is CourseStatus.IN_PROGRESS
    assert by_code["MTH101"].semester == "2024-2"
    assert by_code["ART100"].category == FREE_ELECTIVE
    # pending curriculum rows come back as planned courses
    assert by_code["CSX201"].status is CourseStatus.PLANNED
    assert parsed.curriculum_metadata == CurriculumMetadata(id="bscs")


def test_xlsx_export_highlights_active_rows(tmp_path):
    path = export_categorized(_categorized(), tmp_path / "courses.xlsx")

    wb = openpyxl.load_workbook(path)
    ws = wb.active
    rows = {row[1].value: row for row in ws.iter_rows() if len(row) > 1 and row[1].value}
    assert ws["A1"].value == "course data"
    assert rows["CSX101"][4].value == "Completed"
    assert rows["MTH101"][4].value == "Currently Taking"
    assert rows["CSX201"][4].value == "Pending"
    assert rows["CSX101"][0].fill.fgColor.rgb.endswith(HIGHLIGHT_COLOR.lstrip("#"))
    assert not (rows["CSX201"][0].fill.fgColor.rgb or "").endswith(HIGHLIGHT_COLOR.lstrip("#"))

    parsed = parse_transcript_bytes(path.read_bytes(), ".xlsx")
    assert {c.code for c in parsed.courses} == {"CSX101", "CSX201", "MTH101", "ART100"}


def test_unknown_export_extension(tmp_path):
    with pytest.raises(ValueError):
        export_categorized(_categorized(), tmp_path / "courses.json")

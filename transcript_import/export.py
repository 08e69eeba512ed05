"""
Write categorized courses back out in the grouped layout the parser reads.

Layout (one row per line, first sheet / plain CSV)::

    course data
    CURRICULUM_ID | <id>            (optional metadata rows)

    <Category> (<N> Credits)
    Active Credits: <n>
    Title | Code | Credits | Grade | Status | Semester
    ...

    Overall Active Credits: <n>
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Sequence

import xlsxwriter

from .grid import normalize_extension
from .rows import TITLE_ROW_TEXT
from .schema import PENDING_STATUS, CategorizedCourses, CategorizedEntry, CourseStatus, CurriculumMetadata
from .summary import active_credits

LOGGER = logging.getLogger(__name__)

EXPORT_STATUS_LABELS: Mapping[str, str] = MappingProxyType(
    {
        CourseStatus.COMPLETED.value: "Completed",
        CourseStatus.IN_PROGRESS.value: "Currently Taking",
        CourseStatus.PLANNED.value: "Planned",
        CourseStatus.FAILED.value: "Failed",
        CourseStatus.WITHDRAWN.value: "Withdrawn",
        PENDING_STATUS: "Pending",
    }
)

HIGHLIGHT_COLOR = "#FFF6DB"
SHEET_NAME = "Course Data"
COLUMN_COUNT = 6


def export_status_label(status: str) -> str:
    return EXPORT_STATUS_LABELS.get(status, "Pending")


def _number(value: float) -> Any:
    return int(value) if float(value).is_integer() else value


def _course_cells(entry: CategorizedEntry) -> List[Any]:
    return [
        entry.title,
        entry.code,
        _number(entry.credits),
        entry.grade or "",
        export_status_label(entry.status),
        entry.planned_semester or "",
    ]


def _metadata_rows(metadata: Optional[CurriculumMetadata]) -> List[List[str]]:
    if metadata is None:
        return []
    rows = []
    for key, value in (("CURRICULUM_ID", metadata.id), ("CURRICULUM_NAME", metadata.name), ("CURRICULUM_YEAR", metadata.year)):
        if value:
            rows.append([key, value])
    return rows


def _category_header(category: str, entries: Sequence[CategorizedEntry]) -> str:
    total = sum(e.credits for e in entries)
    return f"{category} ({_number(total)} Credits)"


def _all_entries(categorized: CategorizedCourses) -> List[CategorizedEntry]:
    return [entry for entries in categorized.values() for entry in entries]


def export_xlsx(
    categorized: CategorizedCourses,
    path: Path,
    metadata: Optional[CurriculumMetadata] = None,
) -> Path:
    """Write an ``.xlsx`` workbook; rows that are not pending are highlighted."""

    path = Path(path)
    workbook = xlsxwriter.Workbook(str(path))
    try:
        worksheet = workbook.add_worksheet(SHEET_NAME)
        fmt_title = workbook.add_format({"bold": True})
        fmt_header = workbook.add_format({"bold": True, "bg_color": "#D3D3D3"})
        fmt_active = workbook.add_format({"bg_color": HIGHLIGHT_COLOR})

        row = 0
        worksheet.write(row, 0, TITLE_ROW_TEXT, fmt_title)
        row += 1
        for meta in _metadata_rows(metadata):
            worksheet.write_row(row, 0, meta)
            row += 1
        row += 1

        for category, entries in categorized.items():
            worksheet.write(row, 0, _category_header(category, entries), fmt_header)
            row += 1
            worksheet.write(row, 0, f"Active Credits: {_number(active_credits(entries))}")
            row += 1
            for entry in entries:
                fmt = fmt_active if entry.status != PENDING_STATUS else None
                worksheet.write_row(row, 0, _course_cells(entry), fmt)
                row += 1
            row += 1

        overall = active_credits(_all_entries(categorized))
        worksheet.write(row, 0, f"Overall Active Credits: {_number(overall)}", fmt_title)
        worksheet.set_column(0, 0, 40)
        worksheet.set_column(1, COLUMN_COUNT - 1, 14)
    finally:
        workbook.close()
    LOGGER.info("Wrote %s", path)
    return path


def _csv_semester(value: Optional[str]) -> str:
    # Keeps spreadsheets from reading "2024-1" style values as dates.
    return f'="{value}"' if value else ""


def export_csv(
    categorized: CategorizedCourses,
    path: Path,
    metadata: Optional[CurriculumMetadata] = None,
) -> Path:
    """Write a ``.csv`` file with every non-empty cell quoted."""

    path = Path(path)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, quoting=csv.QUOTE_ALL, lineterminator="\n")
        handle.write(f"{TITLE_ROW_TEXT}\n")
        for meta in _metadata_rows(metadata):
            writer.writerow(meta)
        handle.write("\n")

        for category, entries in categorized.items():
            writer.writerow([_category_header(category, entries)])
            writer.writerow(["Active Credits", _number(active_credits(entries))])
            for entry in entries:
                cells = _course_cells(entry)
                cells[-1] = _csv_semester(entry.planned_semester)
                writer.writerow(cells)
            handle.write("\n")

        writer.writerow(["Overall Active Credits", _number(active_credits(_all_entries(categorized)))])
    LOGGER.info("Wrote %s", path)
    return path


def export_categorized(
    categorized: CategorizedCourses,
    path: Path,
    metadata: Optional[CurriculumMetadata] = None,
) -> Path:
    """Dispatch on the output extension (``.xlsx`` or ``.csv``)."""

    ext = normalize_extension(str(path))
    if ext == ".xlsx":
        return export_xlsx(categorized, path, metadata)
    if ext == ".csv":
        return export_csv(categorized, path, metadata)
    raise ValueError(f"Unsupported export format {ext!r}; use .xlsx or .csv")

"""
Transcript file parsing: grid decoding plus the row fold, packaged as a
``ParseResult``.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .grid import Grid, decode_grid
from .rows import ScanState, scan_grid
from .schema import ParseResult
from .summary import summarize_courses

LOGGER = logging.getLogger(__name__)

NO_COURSES_MESSAGE = (
    "No valid courses found in file. Please ensure the file follows the expected format."
)


def parse_grid(grid: Grid, initial: Optional[ScanState] = None, notes: Sequence[str] = ()) -> ParseResult:
    """
    Classify every row of an already decoded grid.

    ``notes`` are file-level warnings from decoding; they precede the row
    warnings in ``ParseResult.warnings``.
    """

    state = scan_grid(grid, initial)
    courses = list(state.courses)
    row_warnings = list(state.warnings)
    errors = [] if courses else [NO_COURSES_MESSAGE]

    result = ParseResult(
        courses=courses,
        summary=summarize_courses(courses),
        errors=errors,
        warnings=list(notes) + [w.message for w in row_warnings],
        curriculum_metadata=None if state.metadata.is_empty() else state.metadata,
        skipped_rows=list(state.skipped),
        row_warnings=row_warnings,
    )
    LOGGER.info(
        "Parsed %d course(s) from %d row(s); %d warning(s), %d row(s) skipped",
        len(courses),
        len(grid),
        len(result.warnings),
        len(result.skipped_rows),
    )
    return result


def parse_transcript_bytes(data: bytes, extension: str) -> ParseResult:
    """
    Parse raw file bytes.

    Raises ``GridDecodeError`` when the container cannot be read; every other
    problem is reported through the result.
    """

    grid, notes = decode_grid(data, extension)
    return parse_grid(grid, notes=notes)

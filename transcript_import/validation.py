"""
Pre-validation of uploaded transcript files.

The checks run in a fixed order and stop at the first fatal one:

    format -> size -> parse -> courses -> data -> status -> duplicates -> submission

Every executed stage contributes exactly one ``ValidationCheck`` for the UI
checklist and any number of ``FileValidationIssue`` entries. Bad user data
never raises out of ``pre_validate_file``; a decode failure becomes a fatal
format issue.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .config import DEFAULT_MAX_COURSES, ImportSettings
from .errors import GridDecodeError
from .grades import is_recognized_grade
from .grid import normalize_extension
from .parser import parse_transcript_bytes
from .schema import (
    CourseRecord,
    CourseStatus,
    FileValidationIssue,
    ParseResult,
    PreValidationResult,
    ValidationCheck,
)

LOGGER = logging.getLogger(__name__)

# 2-4 letters, optional separator, 3-4 digits, optional letter suffix.
COURSE_CODE_PATTERN = re.compile(r"^[A-Z]{2,4}[\s\-]?\d{3,4}[A-Z]?$", re.IGNORECASE)
MAX_REASONABLE_CREDITS = 12.0

# Offset from a course's position in the list to a displayed row number
# (1-based plus a header row) when the source row is unknown.
ROW_HEADER_OFFSET = 2

NO_COMPLETED_WARNING = "No completed courses found. Make sure grades are properly entered."

# Issue column for each kind of row-level parser warning.
ROW_WARNING_COLUMNS = {"duplicate": "code", "credits_defaulted": "credits"}


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


@dataclass
class SubmissionValidation:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def validate_courses_for_submission(
    courses: Sequence[CourseRecord],
    max_courses: int = DEFAULT_MAX_COURSES,
) -> SubmissionValidation:
    """Last-mile checks over the whole record set before it is submitted."""

    if not courses:
        return SubmissionValidation(False, ["No courses to submit"])
    if len(courses) > max_courses:
        return SubmissionValidation(False, [f"Maximum {max_courses} courses allowed per submission"])

    errors: List[str] = []
    warnings: List[str] = []
    for course in courses:
        if not course.code:
            errors.append(f'Course with name "{course.name}" has no course code')
        if course.credits <= 0:
            warnings.append(f"Course {course.code} has invalid credits ({course.credits:g})")

    if not any(c.status is CourseStatus.COMPLETED for c in courses):
        warnings.append(NO_COMPLETED_WARNING)

    return SubmissionValidation(not errors, errors, warnings)


class _UploadLog(logging.LoggerAdapter):
    """Prefix log lines with the upload's correlation id."""

    def process(self, msg, kwargs):
        return f"[{self.extra['upload']}] {msg}", kwargs


class _Run:
    """Accumulator for one validation run."""

    def __init__(self, log: _UploadLog):
        self.checks: List[ValidationCheck] = []
        self.issues: List[FileValidationIssue] = []
        self.log = log

    def check(self, check_id: str, label: str, status: str, detail: str) -> None:
        self.checks.append(ValidationCheck(check_id, label, status, detail))
        self.log.debug("check %s: %s (%s)", check_id, status, detail)

    def issue(self, type_: str, severity: str, message: str, row: Optional[int] = None, column: Optional[str] = None) -> None:
        self.issues.append(FileValidationIssue(type_, severity, message, row, column))

    def result(self, parse_result: Optional[ParseResult], fatal: bool = False) -> PreValidationResult:
        can_proceed = not fatal and not any(i.severity == "error" for i in self.issues)
        self.log.info(
            "Validation finished: can_proceed=%s, %d issue(s) over %d check(s)",
            can_proceed,
            len(self.issues),
            len(self.checks),
        )
        return PreValidationResult(self.checks, self.issues, parse_result, can_proceed)


def _check_rows(run: _Run, courses: Sequence[CourseRecord]) -> None:
    data_errors = 0
    data_warnings = 0

    for index, course in enumerate(courses):
        row = course.row if course.row is not None else index + ROW_HEADER_OFFSET

        if not course.code.strip():
            run.issue("data", "error", "Missing course code", row, "code")
            data_errors += 1
        elif not COURSE_CODE_PATTERN.match(course.code):
            run.issue("data", "warning", f'Unusual course code format: "{course.code}"', row, "code")
            data_warnings += 1

        if course.credits <= 0 or course.credits > MAX_REASONABLE_CREDITS:
            run.issue("data", "warning", f"Unusual credits value: {course.credits:g}", row, "credits")
            data_warnings += 1

        if course.grade.strip() and not is_recognized_grade(course.grade):
            run.issue("data", "warning", f'Unrecognized grade: "{course.grade}"', row, "grade")
            data_warnings += 1

    if data_errors:
        run.check("data", "Data validation", "fail", f"{_plural(data_errors, 'error')} found in course data")
    elif data_warnings:
        run.check("data", "Data validation", "warn", f"{_plural(data_warnings, 'warning')} - review recommended")
    else:
        run.check("data", "Data validation", "pass", "All course data looks good")


def _check_status_distribution(run: _Run, parse_result: ParseResult) -> None:
    by_status = parse_result.summary.by_status
    completed = by_status.get(CourseStatus.COMPLETED.value, 0)
    in_progress = by_status.get(CourseStatus.IN_PROGRESS.value, 0)
    planned = by_status.get(CourseStatus.PLANNED.value, 0)

    if completed == 0 and in_progress == 0:
        run.issue(
            "data",
            "warning",
            "No completed or in-progress courses found. Ensure grades are properly entered in your file.",
        )
        run.check("status", "Status distribution", "warn", "No completed/in-progress courses detected")
        return

    parts = []
    if completed:
        parts.append(f"{completed} completed")
    if in_progress:
        parts.append(f"{in_progress} in progress")
    if planned:
        parts.append(f"{planned} planned")
    run.check("status", "Status distribution", "pass", ", ".join(parts))


def _check_parser_warnings(run: _Run, parse_result: ParseResult) -> None:
    row_warnings = parse_result.row_warnings
    row_messages = {w.message for w in row_warnings}
    file_notes = [w for w in parse_result.warnings if w not in row_messages]
    duplicates = [w for w in row_warnings if w.kind == "duplicate"]

    for warning in duplicates + [w for w in row_warnings if w.kind != "duplicate"]:
        run.issue("data", "warning", warning.message, warning.row, ROW_WARNING_COLUMNS.get(warning.kind))
    for message in file_notes:
        run.issue("data", "warning", message)

    notes = len(row_warnings) - len(duplicates) + len(file_notes)
    if duplicates:
        run.check("duplicates", "Duplicate courses", "warn", f"{_plural(len(duplicates), 'duplicate row')} skipped")
    elif notes:
        run.check("duplicates", "Duplicate courses", "pass", f"No duplicates; {_plural(notes, 'parser note')}")
    else:
        run.check("duplicates", "Duplicate courses", "pass", "No duplicate course codes")


def _check_submission(run: _Run, courses: Sequence[CourseRecord], max_courses: int) -> None:
    submission = validate_courses_for_submission(courses, max_courses)
    for message in submission.errors:
        run.issue("data", "error", message)

    seen = {i.message for i in run.issues}
    for message in submission.warnings:
        if message not in seen:
            run.issue("data", "warning", message)
            seen.add(message)

    if not submission.valid:
        run.check("submission", "Ready for submission", "fail", f"{_plural(len(submission.errors), 'blocking error')}")
    elif submission.warnings:
        run.check("submission", "Ready for submission", "warn", f"{_plural(len(submission.warnings), 'warning')}")
    else:
        run.check("submission", "Ready for submission", "pass", "Course records can be submitted")


def pre_validate_file(
    data: bytes,
    filename: str,
    settings: Optional[ImportSettings] = None,
    *,
    correlation_id: Optional[str] = None,
) -> PreValidationResult:
    """Run the full validation chain over an uploaded file."""

    settings = settings or ImportSettings()
    correlation_id = correlation_id or uuid.uuid4().hex[:8]
    log = _UploadLog(LOGGER, {"upload": correlation_id})
    run = _Run(log)
    log.info("Validating %s (%d bytes)", filename, len(data))

    # 1. format
    accepted = ", ".join(settings.accepted_formats)
    ext = normalize_extension(filename)
    if ext not in settings.accepted_formats:
        run.check("format", "File format", "fail", f"{ext or '<none>'} is not accepted. Use: {accepted}")
        run.issue("format", "error", f'Invalid file format "{ext}". Accepted: {accepted}')
        return run.result(None, fatal=True)
    run.check("format", "File format", "pass", f"{ext} is an accepted format")

    # 2. size
    size_mb = len(data) / (1024 * 1024)
    if size_mb > settings.max_size_mb:
        run.check("size", "File size", "fail", f"{size_mb:.2f} MB exceeds the {settings.max_size_mb:g} MB limit")
        run.issue("format", "error", f"File is {size_mb:.2f} MB. Maximum allowed: {settings.max_size_mb:g} MB")
        return run.result(None, fatal=True)
    run.check("size", "File size", "pass", f"{size_mb:.2f} MB (max {settings.max_size_mb:g} MB)")

    # 3. parse
    try:
        parse_result = parse_transcript_bytes(data, ext)
    except GridDecodeError as exc:
        log.warning("Decode failed: %s", exc)
        run.check("parse", "File readable", "fail", "File could not be opened - it may be corrupted")
        run.issue(
            "format",
            "error",
            f"Failed to parse file. The file may be corrupted or in an unsupported layout. ({exc})",
        )
        return run.result(None, fatal=True)
    run.check("parse", "File readable", "pass", "File was parsed successfully")

    # 4. course count
    count = len(parse_result.courses)
    if count == 0:
        run.check("courses", "Course data found", "fail", "No course rows detected in the file")
        run.issue(
            "structure",
            "error",
            "No valid course data found. Ensure the file follows the expected format "
            "(Title, Code, Credits, Grade, Status, Semester).",
        )
        return run.result(parse_result, fatal=True)
    if count > settings.max_courses:
        run.check("courses", "Course data found", "fail", f"{count} courses exceed the {settings.max_courses}-course limit")
        run.issue("structure", "error", f"File contains {count} courses. Maximum allowed is {settings.max_courses}.")
        return run.result(parse_result, fatal=True)
    run.check("courses", "Course data found", "pass", f"{_plural(count, 'course')} detected")

    # 5-8. data quality
    _check_rows(run, parse_result.courses)
    _check_status_distribution(run, parse_result)
    _check_parser_warnings(run, parse_result)
    _check_submission(run, parse_result.courses, settings.max_courses)

    return run.result(parse_result)

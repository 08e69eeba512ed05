"""
Row classification and course-record construction.

The grid is consumed by a single forward fold. The only context carried
between rows is the active category (set by ``<Name> (<N> Credits)`` header
rows), the curriculum metadata collected so far, the codes already seen and
the accumulated output. ``ScanState`` is immutable; every step returns a new
state, so a scan can be restarted from any intermediate state. Outputs
accumulate in ``AppendLog``s, which append in O(1) without changing older
states.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import reduce
from itertools import islice
from typing import Dict, Generic, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from .errors import RowRejected
from .grades import derive_status
from .grid import Grid, cell
from .schema import (
    UNCATEGORIZED,
    CourseRecord,
    CurriculumMetadata,
    RowWarning,
    SkippedRow,
    normalize_course_code,
)

LOGGER = logging.getLogger(__name__)

# Credits used when a graded/labelled row has no usable credits value.
DEFAULT_CREDITS = 3.0

MIN_COURSE_COLUMNS = 3

CATEGORY_HEADER_RE = re.compile(r"^(.+?)\s*\((\d+(?:\.\d+)?)\s*Credits?\)$", re.IGNORECASE)
ACTIVE_CREDITS_RE = re.compile(r"^Active\s*Credits", re.IGNORECASE)
OVERALL_CREDITS_RE = re.compile(r"^Overall\s*(Active\s*)?Credits", re.IGNORECASE)
_LEADING_NUMBER_RE = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)")
_HAS_LETTER_RE = re.compile(r"[A-Z]")

TITLE_ROW_TEXT = "course data"

METADATA_KEYS = {
    "CURRICULUM_ID": "id",
    "CURRICULUM_NAME": "name",
    "CURRICULUM_YEAR": "year",
}


class RowKind(str, Enum):
    EMPTY = "empty"
    TITLE = "title"
    CATEGORY_HEADER = "category_header"
    METADATA = "metadata"
    SUMMARY = "summary"
    CANDIDATE = "candidate"


def is_empty_row(row: Sequence[str]) -> bool:
    return not row or all(not str(c or "").strip() for c in row)


def classify_row(row: Sequence[str]) -> Tuple[RowKind, Optional[Tuple[str, str]]]:
    """
    Decide what a single row is, without looking at any other row.

    Returns the kind plus a payload: the category name for headers, the
    ``(field, value)`` pair for metadata rows, ``None`` otherwise.
    """

    if is_empty_row(row):
        return RowKind.EMPTY, None

    first = cell(row, 0)
    second = cell(row, 1)

    header = CATEGORY_HEADER_RE.match(first)
    if header:
        return RowKind.CATEGORY_HEADER, ("category", header.group(1).strip())

    meta_field = METADATA_KEYS.get(first)
    if meta_field and second:
        return RowKind.METADATA, (meta_field, second)

    if ACTIVE_CREDITS_RE.match(first) or OVERALL_CREDITS_RE.match(first):
        return RowKind.SUMMARY, None

    if first.lower() == TITLE_ROW_TEXT:
        return RowKind.TITLE, None

    return RowKind.CANDIDATE, None


def parse_credits(raw: str) -> float:
    """Leading numeric value of ``raw`` (``"3 cr"`` -> 3.0); 0.0 when there is none."""

    match = _LEADING_NUMBER_RE.match(str(raw or "").strip())
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def build_course_record(row: Sequence[str], category: str, row_number: int) -> Tuple[CourseRecord, bool]:
    """
    Convert a candidate row into a ``CourseRecord``.

    Column contract: ``[title, code, credits, grade?, status?, semester?]``.
    Returns the record and whether ``DEFAULT_CREDITS`` was substituted.
    Raises ``RowRejected`` when the row cannot be a course.
    """

    if len(row) < MIN_COURSE_COLUMNS:
        raise RowRejected(f"only {len(row)} column(s); at least {MIN_COURSE_COLUMNS} required")

    title = cell(row, 0)
    code = normalize_course_code(cell(row, 1))
    grade = cell(row, 3).upper()
    status_label = cell(row, 4).lower()
    semester = cell(row, 5)

    if not code:
        raise RowRejected("missing course code")
    if not _HAS_LETTER_RE.search(code):
        raise RowRejected(f"course code '{code}' has no letters")

    credits = parse_credits(cell(row, 2))
    if credits == 0 and not grade and not status_label:
        raise RowRejected("no credits, grade or status")

    defaulted = credits <= 0
    record = CourseRecord(
        code=code,
        name=title,
        credits=DEFAULT_CREDITS if defaulted else credits,
        grade=grade,
        status=derive_status(grade, status_label),
        category=category if category != UNCATEGORIZED else None,
        semester=semester or None,
        row=row_number,
    )
    return record, defaulted


T = TypeVar("T")


class AppendLog(Generic[T]):
    """
    Persistent append-only sequence.

    A log is a view of the first ``len(log)`` items of a buffer it may share
    with logs derived from it. Appending to the newest view extends the buffer
    in place; appending to an older view copies its prefix first. Earlier views
    therefore never change, and a linear fold appends in amortized O(1).
    """

    __slots__ = ("_buffer", "_size")

    def __init__(self, items: Iterable[T] = ()):
        self._buffer: List[T] = list(items)
        self._size = len(self._buffer)

    @classmethod
    def _view(cls, buffer: List[T], size: int) -> "AppendLog[T]":
        log = cls.__new__(cls)
        log._buffer = buffer
        log._size = size
        return log

    def append(self, item: T) -> "AppendLog[T]":
        buffer = self._buffer
        if len(buffer) != self._size:
            buffer = buffer[: self._size]
        buffer.append(item)
        return self._view(buffer, self._size + 1)

    def to_tuple(self) -> Tuple[T, ...]:
        return tuple(islice(self._buffer, self._size))

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        return islice(self._buffer, self._size)

    def __getitem__(self, index):
        return self.to_tuple()[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AppendLog):
            return self.to_tuple() == other.to_tuple()
        if isinstance(other, tuple):
            return self.to_tuple() == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.to_tuple())

    def __repr__(self) -> str:
        return f"AppendLog({list(self)!r})"


@dataclass(frozen=True)
class DeduplicationTracker:
    """
    Remembers normalized codes; the first occurrence of a code wins.

    ``codes`` is the persistent record of admitted codes. ``_index`` maps code
    to position and is shared along a linear chain of trackers; it is rebuilt
    only when an older tracker is reused.
    """

    codes: AppendLog[str] = field(default_factory=AppendLog)
    _index: Dict[str, int] = field(default_factory=dict, compare=False, repr=False)

    def __contains__(self, code: str) -> bool:
        position = self._index.get(normalize_course_code(code))
        return position is not None and position < len(self.codes)

    def admit(self, code: str) -> Tuple["DeduplicationTracker", bool]:
        key = normalize_course_code(code)
        if key in self:
            return self, False
        index = self._index
        if len(index) != len(self.codes):
            index = {seen: pos for pos, seen in enumerate(self.codes)}
        index[key] = len(self.codes)
        return DeduplicationTracker(self.codes.append(key), index), True


def duplicate_warning(row_number: int, code: str) -> RowWarning:
    return RowWarning(row_number, code, "duplicate", f"Row {row_number}: Duplicate course code '{code}' - skipped")


def defaulted_credits_warning(row_number: int, code: str) -> RowWarning:
    return RowWarning(
        row_number,
        code,
        "credits_defaulted",
        f"Row {row_number}: No usable credits for '{code}' - defaulted to {DEFAULT_CREDITS:g}",
    )


@dataclass(frozen=True)
class ScanState:
    current_category: str = UNCATEGORIZED
    metadata: CurriculumMetadata = field(default_factory=CurriculumMetadata)
    courses: AppendLog[CourseRecord] = field(default_factory=AppendLog)
    tracker: DeduplicationTracker = field(default_factory=DeduplicationTracker)
    warnings: AppendLog[RowWarning] = field(default_factory=AppendLog)
    skipped: AppendLog[SkippedRow] = field(default_factory=AppendLog)


def _scan_course_row(state: ScanState, row: Sequence[str], row_number: int) -> ScanState:
    try:
        record, defaulted = build_course_record(row, state.current_category, row_number)
    except RowRejected as exc:
        LOGGER.debug("Row %d skipped: %s", row_number, exc.reason)
        return replace(state, skipped=state.skipped.append(SkippedRow(row_number, exc.reason)))

    tracker, admitted = state.tracker.admit(record.code)
    if not admitted:
        return replace(state, warnings=state.warnings.append(duplicate_warning(row_number, record.code)))

    warnings = state.warnings
    if defaulted:
        warnings = warnings.append(defaulted_credits_warning(row_number, record.code))
    return replace(state, courses=state.courses.append(record), tracker=tracker, warnings=warnings)


def scan_step(state: ScanState, numbered_row: Tuple[int, Sequence[str]]) -> ScanState:
    """Fold step: apply one ``(row_number, row)`` pair to ``state``."""

    row_number, row = numbered_row
    kind, payload = classify_row(row)

    if kind is RowKind.CATEGORY_HEADER:
        return replace(state, current_category=payload[1])
    if kind is RowKind.METADATA:
        meta_field, value = payload
        return replace(state, metadata=replace(state.metadata, **{meta_field: value}))
    if kind is RowKind.CANDIDATE:
        return _scan_course_row(state, row, row_number)
    return state


def scan_grid(grid: Grid, initial: Optional[ScanState] = None) -> ScanState:
    """Fold every grid row (1-based row numbers) into a final ``ScanState``."""

    return reduce(scan_step, enumerate(grid, start=1), initial or ScanState())

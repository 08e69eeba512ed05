"""
Grade and status-label lookup tables.

Every mapping from raw spreadsheet text to a canonical ``CourseStatus`` lives
here so the rules can be audited in one place. The tables are read-only
views; callers cannot extend them at runtime.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional

from .schema import CourseStatus

_C = CourseStatus.COMPLETED
_F = CourseStatus.FAILED
_W = CourseStatus.WITHDRAWN
_IP = CourseStatus.IN_PROGRESS
_P = CourseStatus.PLANNED

GRADE_STATUS_MAP: Mapping[str, CourseStatus] = MappingProxyType(
    {
        # completed
        "A+": _C, "A": _C, "A-": _C,
        "B+": _C, "B": _C, "B-": _C,
        "C+": _C, "C": _C, "C-": _C,
        "D+": _C, "D": _C, "D-": _C,
        "S": _C, "P": _C, "PASS": _C,
        # failed
        "F": _F, "FAIL": _F, "FAILED": _F,
        # withdrawn
        "W": _W, "WD": _W, "WITHDRAWN": _W, "DROPPED": _W,
        # in progress
        "IP": _IP, "IN_PROGRESS": _IP, "INPROGRESS": _IP,
        "TAKING": _IP, "CURRENT": _IP, "I": _IP,
    }
)

STATUS_LABEL_MAP: Mapping[str, CourseStatus] = MappingProxyType(
    {
        "completed": _C,
        "currently taking": _IP,
        "in progress": _IP,
        "planned": _P,
        "planning": _P,
        "failed": _F,
        "withdrawn": _W,
        "dropped": _W,
        "pending": _P,
        "future": _P,
    }
)

# Grades the validator accepts without a warning.
VALID_GRADES: FrozenSet[str] = frozenset(
    {
        "A+", "A", "A-", "B+", "B", "B-", "C+", "C", "C-",
        "D+", "D", "D-", "F", "S", "U", "P", "W",
        "IP", "I", "PASS", "FAIL", "WITHDRAWN", "DROPPED",
        "TAKING", "CURRENT", "IN_PROGRESS", "INPROGRESS",
    }
)

LETTER_GRADE_RE = re.compile(r"^[A-D][+-]?$")

STATUS_DISPLAY_LABELS: Mapping[str, str] = MappingProxyType(
    {
        CourseStatus.COMPLETED.value: "Completed",
        CourseStatus.IN_PROGRESS.value: "In Progress",
        CourseStatus.PLANNED.value: "Planned",
        CourseStatus.FAILED.value: "Failed",
        CourseStatus.WITHDRAWN.value: "Withdrawn",
    }
)


def status_from_label(label: str) -> Optional[CourseStatus]:
    return STATUS_LABEL_MAP.get(label.strip().lower()) if label else None


def status_from_grade(grade: str) -> Optional[CourseStatus]:
    if not grade:
        return None
    normalized = grade.strip().upper()
    status = GRADE_STATUS_MAP.get(normalized)
    if status is not None:
        return status
    if LETTER_GRADE_RE.match(normalized):
        return CourseStatus.COMPLETED
    return None


def derive_status(grade: str = "", status_label: str = "") -> CourseStatus:
    """
    Resolve the canonical status of a course row.

    Precedence (first match wins): status label table, grade table, letter
    grade pattern, then ``planned``.
    """

    return status_from_label(status_label) or status_from_grade(grade) or CourseStatus.PLANNED


def map_grade_to_status(grade: str) -> CourseStatus:
    """Status implied by a grade alone."""

    return status_from_grade(grade) or CourseStatus.PLANNED


def is_recognized_grade(grade: str) -> bool:
    normalized = grade.strip().upper()
    return normalized in VALID_GRADES or bool(LETTER_GRADE_RE.match(normalized))


def status_display_label(status: str) -> str:
    return STATUS_DISPLAY_LABELS.get(status, status)

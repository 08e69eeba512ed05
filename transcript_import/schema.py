from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class CourseStatus(str, Enum):
    """Canonical status of a course row after grade/status derivation."""

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PLANNED = "planned"
    FAILED = "failed"
    WITHDRAWN = "withdrawn"


# Status given to curriculum courses that the transcript does not contain.
PENDING_STATUS = "pending"
UNCATEGORIZED = "Uncategorized"
FREE_ELECTIVE = "Free Elective"

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_course_code(code: Any) -> str:
    """Matching key for course codes: all whitespace removed, upper-cased."""

    if code is None:
        return ""
    return _WHITESPACE_RE.sub("", str(code)).upper()


@dataclass(frozen=True)
class CourseRecord:
    """One normalized course row extracted from an uploaded file."""

    code: str
    name: str
    credits: float
    grade: str
    status: CourseStatus
    category: Optional[str] = None
    semester: Optional[str] = None
    row: Optional[int] = field(default=None, compare=False)

    def to_submission(self) -> Dict[str, Any]:
        """Flat payload handed to the persistence API."""

        payload: Dict[str, Any] = {
            "code": self.code,
            "credits": self.credits,
            "grade": self.grade,
            "status": self.status.value,
        }
        if self.name:
            payload["name"] = self.name
        if self.category:
            payload["category"] = self.category
        if self.semester:
            payload["semester"] = self.semester
        return payload


@dataclass(frozen=True)
class CurriculumCourse:
    code: str
    title: str
    credits: float
    category: str
    is_required: bool = True


@dataclass(frozen=True)
class CategorizedEntry:
    code: str
    title: str
    credits: float
    status: str
    found: bool
    grade: Optional[str] = None
    planned_semester: Optional[str] = None


CategorizedCourses = Dict[str, List[CategorizedEntry]]


@dataclass(frozen=True)
class CurriculumMetadata:
    id: Optional[str] = None
    name: Optional[str] = None
    year: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.id or self.name or self.year)


@dataclass(frozen=True)
class SkippedRow:
    """Diagnostic for a row that looked like data but did not become a course."""

    row: int
    reason: str


@dataclass(frozen=True)
class RowWarning:
    """Parser warning tied to a grid row (a skipped duplicate, defaulted credits)."""

    row: int
    code: str
    kind: str  # duplicate | credits_defaulted
    message: str


@dataclass
class ParseSummary:
    total_courses: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)
    by_status: Dict[str, int] = field(default_factory=dict)
    total_credits: float = 0.0


@dataclass
class ParseResult:
    courses: List[CourseRecord]
    summary: ParseSummary
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    curriculum_metadata: Optional[CurriculumMetadata] = None
    skipped_rows: List[SkippedRow] = field(default_factory=list)
    row_warnings: List[RowWarning] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.courses) and not self.errors


@dataclass(frozen=True)
class ValidationCheck:
    id: str
    label: str
    status: str  # pass | fail | warn
    detail: str = ""


@dataclass(frozen=True)
class FileValidationIssue:
    type: str  # format | structure | data
    severity: str  # error | warning
    message: str
    row: Optional[int] = None
    column: Optional[str] = None


@dataclass
class PreValidationResult:
    checks: List[ValidationCheck]
    issues: List[FileValidationIssue]
    parse_result: Optional[ParseResult]
    can_proceed: bool

    @property
    def errors(self) -> List[FileValidationIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> List[FileValidationIssue]:
        return [i for i in self.issues if i.severity == "warning"]

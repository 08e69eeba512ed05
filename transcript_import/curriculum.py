"""
Curriculum structures and transcript categorization.

Curriculum data arrives from outside (the public curricula API or a JSON
export) and is validated here, at the boundary, into ``CurriculumCourse``
objects. Loading returns a tagged result instead of raising so callers can
render the failure next to the upload checklist.

Two payload shapes are accepted:

1) Public API: ``{"curricula": [{"id": ..., "curriculumCourses": [{"course":
   {"code", "name", "creditHours" | "credits", "departmentCourseTypes":
   [{"courseType": {"name"}}]}}]}]}``. The category is the first course type
   name, or ``"General"`` when there is none.
2) Flat list: ``[{"code", "title", "credits", "category", "isRequired"}]``
   (optionally wrapped as ``{"courses": [...]}``).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .errors import CurriculumPayloadError
from .schema import (
    FREE_ELECTIVE,
    PENDING_STATUS,
    CategorizedCourses,
    CategorizedEntry,
    CourseRecord,
    CurriculumCourse,
    CurriculumMetadata,
    normalize_course_code,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"


@dataclass(frozen=True)
class CurriculumLoaded:
    courses: List[CurriculumCourse]
    metadata: Optional[CurriculumMetadata] = None
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class CurriculumLoadFailed:
    reason: str
    ok: bool = field(default=False, init=False)


CurriculumLoadResult = Union[CurriculumLoaded, CurriculumLoadFailed]


def _as_number(value: Any, context: str) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise CurriculumPayloadError(f"{context}: credits must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise CurriculumPayloadError(f"{context}: credits must be a number, got {value!r}") from exc


def _require_code(value: Any, context: str) -> str:
    if not isinstance(value, (str, int)) or not str(value).strip():
        raise CurriculumPayloadError(f"{context}: missing course code")
    return str(value).strip()


def _course_from_api(entry: Any, context: str) -> Optional[CurriculumCourse]:
    if not isinstance(entry, dict):
        raise CurriculumPayloadError(f"{context}: expected an object")
    course = entry.get("course")
    if course is None:
        # Curriculum rows without a linked course carry nothing to match.
        return None
    if not isinstance(course, dict):
        raise CurriculumPayloadError(f"{context}: `course` must be an object")

    category = DEFAULT_CATEGORY
    course_types = course.get("departmentCourseTypes") or []
    if not isinstance(course_types, list):
        raise CurriculumPayloadError(f"{context}: `departmentCourseTypes` must be a list")
    if course_types and isinstance(course_types[0], dict):
        course_type = course_types[0].get("courseType") or {}
        if isinstance(course_type, dict) and course_type.get("name"):
            category = str(course_type["name"])

    credits = course.get("creditHours") or course.get("credits")
    return CurriculumCourse(
        code=_require_code(course.get("code"), context),
        title=str(course.get("name") or ""),
        credits=_as_number(credits, context),
        category=category,
        is_required=True,
    )


def _course_from_flat(entry: Any, context: str) -> CurriculumCourse:
    if not isinstance(entry, dict):
        raise CurriculumPayloadError(f"{context}: expected an object")
    is_required = entry.get("isRequired", entry.get("is_required", True))
    if not isinstance(is_required, bool):
        raise CurriculumPayloadError(f"{context}: `isRequired` must be true or false")
    return CurriculumCourse(
        code=_require_code(entry.get("code"), context),
        title=str(entry.get("title") or entry.get("name") or ""),
        credits=_as_number(entry.get("credits"), context),
        category=str(entry.get("category") or DEFAULT_CATEGORY),
        is_required=is_required,
    )


def _parse_payload(payload: Any) -> CurriculumLoaded:
    if isinstance(payload, dict) and "curricula" in payload:
        curricula = payload["curricula"]
        if not isinstance(curricula, list) or not curricula:
            raise CurriculumPayloadError("Curriculum not found")
        curriculum = curricula[0]
        if not isinstance(curriculum, dict):
            raise CurriculumPayloadError("`curricula[0]` must be an object")
        rows = curriculum.get("curriculumCourses") or []
        if not isinstance(rows, list):
            raise CurriculumPayloadError("`curriculumCourses` must be a list")
        courses = []
        for idx, row in enumerate(rows):
            parsed = _course_from_api(row, f"curriculumCourses[{idx}]")
            if parsed is not None:
                courses.append(parsed)
        metadata = CurriculumMetadata(
            id=str(curriculum["id"]) if curriculum.get("id") is not None else None,
            name=curriculum.get("name"),
            year=str(curriculum["year"]) if curriculum.get("year") is not None else None,
        )
        return CurriculumLoaded(courses, None if metadata.is_empty() else metadata)

    if isinstance(payload, dict) and "courses" in payload:
        payload = payload["courses"]
    if isinstance(payload, list):
        return CurriculumLoaded([_course_from_flat(e, f"courses[{i}]") for i, e in enumerate(payload)])

    raise CurriculumPayloadError("Curriculum payload must be a list of courses or contain `curricula`")


def parse_curriculum_payload(payload: Any) -> CurriculumLoadResult:
    """Validate an external curriculum payload into typed courses."""

    try:
        return _parse_payload(payload)
    except CurriculumPayloadError as exc:
        LOGGER.warning("Rejected curriculum payload: %s", exc)
        return CurriculumLoadFailed(str(exc))


def load_curriculum_file(path: Path) -> CurriculumLoadResult:
    """Read a curriculum payload from a JSON file."""

    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        return CurriculumLoadFailed(f"Unable to read {path}: {exc}")
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        return CurriculumLoadFailed(f"Invalid JSON in curriculum file: {exc}")
    return parse_curriculum_payload(payload)


@dataclass
class CategorizationResult:
    categorized: CategorizedCourses
    matched_count: int
    unmatched: List[CourseRecord]
    warnings: List[str] = field(default_factory=list)


def categorize_courses(
    courses: Sequence[CourseRecord],
    curriculum: Sequence[CurriculumCourse],
) -> CategorizationResult:
    """
    Partition transcript courses into the curriculum's category buckets.

    Each curriculum course looks up the transcript by normalized code. A hit
    consumes the transcript record; a miss is listed as ``found=False`` with
    ``pending`` status. Records nobody consumed land in the ``Free Elective``
    bucket with their own status. When a curriculum lists the same code twice,
    only the first listing can consume the record.
    """

    by_code: Dict[str, CourseRecord] = {}
    for record in courses:
        by_code.setdefault(normalize_course_code(record.code), record)

    categorized: CategorizedCourses = {}
    consumed: Dict[str, str] = {}
    listed: Dict[str, str] = {}
    warnings: List[str] = []

    for course in curriculum:
        key = normalize_course_code(course.code)
        bucket = categorized.setdefault(course.category, [])

        if key in listed:
            warnings.append(
                f"Curriculum lists course '{course.code}' more than once "
                f"(first under '{listed[key]}', again under '{course.category}')"
            )
        else:
            listed[key] = course.category

        record = by_code.get(key)
        if record is not None and key not in consumed:
            consumed[key] = course.category
            bucket.append(
                CategorizedEntry(
                    code=course.code,
                    title=course.title,
                    credits=course.credits,
                    status=record.status.value,
                    found=True,
                    grade=record.grade or None,
                    planned_semester=record.semester,
                )
            )
        else:
            bucket.append(
                CategorizedEntry(
                    code=course.code,
                    title=course.title,
                    credits=course.credits,
                    status=PENDING_STATUS,
                    found=False,
                )
            )

    unmatched = [r for r in courses if normalize_course_code(r.code) not in consumed]
    if unmatched:
        bucket = categorized.setdefault(FREE_ELECTIVE, [])
        for record in unmatched:
            bucket.append(
                CategorizedEntry(
                    code=record.code,
                    title=record.name or record.code,
                    credits=record.credits,
                    status=record.status.value,
                    found=True,
                    grade=record.grade or None,
                    planned_semester=record.semester,
                )
            )

    LOGGER.info(
        "Categorized %d transcript course(s): %d matched, %d free elective(s)",
        len(courses),
        len(consumed),
        len(unmatched),
    )
    return CategorizationResult(categorized, len(consumed), unmatched, warnings)


def detected_curriculum_id(metadata: Optional[CurriculumMetadata]) -> Optional[str]:
    return metadata.id if metadata and metadata.id else None


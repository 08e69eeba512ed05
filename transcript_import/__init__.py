"""
Transcript file import: decode uploaded spreadsheets, extract course records,
validate them, and sort them into curriculum categories.
"""

from .schema import (  # noqa: F401
    FREE_ELECTIVE,
    PENDING_STATUS,
    CategorizedCourses,
    CategorizedEntry,
    CourseRecord,
    CourseStatus,
    CurriculumCourse,
    CurriculumMetadata,
    FileValidationIssue,
    ParseResult,
    ParseSummary,
    PreValidationResult,
    RowWarning,
    SkippedRow,
    ValidationCheck,
    normalize_course_code,
)

from .errors import (  # noqa: F401
    ConfigError,
    CurriculumPayloadError,
    GridDecodeError,
    RowRejected,
    TranscriptImportError,
)

from .grades import derive_status, map_grade_to_status  # noqa: F401
from .grid import decode_grid, read_grid  # noqa: F401
from .rows import DeduplicationTracker, ScanState, classify_row, scan_grid  # noqa: F401
from .parser import parse_grid, parse_transcript_bytes  # noqa: F401
from .config import ImportSettings, load_settings  # noqa: F401
from .validation import pre_validate_file, validate_courses_for_submission  # noqa: F401
from .curriculum import (  # noqa: F401
    CategorizationResult,
    CurriculumLoaded,
    CurriculumLoadFailed,
    categorize_courses,
    load_curriculum_file,
    parse_curriculum_payload,
)
from .client import CurriculumClient  # noqa: F401
from .summary import CategorySummary, summarize_categories  # noqa: F401
from .pipeline import ImportResult, import_transcript  # noqa: F401
from .export import export_categorized  # noqa: F401

__all__ = [
    "FREE_ELECTIVE",
    "PENDING_STATUS",
    "CategorizedCourses",
    "CategorizedEntry",
    "CourseRecord",
    "CourseStatus",
    "CurriculumCourse",
    "CurriculumMetadata",
    "FileValidationIssue",
    "ParseResult",
    "ParseSummary",
    "PreValidationResult",
    "RowWarning",
    "SkippedRow",
    "ValidationCheck",
    "normalize_course_code",
    "ConfigError",
    "CurriculumPayloadError",
    "GridDecodeError",
    "RowRejected",
    "TranscriptImportError",
    "derive_status",
    "map_grade_to_status",
    "decode_grid",
    "read_grid",
    "DeduplicationTracker",
    "ScanState",
    "classify_row",
    "scan_grid",
    "parse_grid",
    "parse_transcript_bytes",
    "ImportSettings",
    "load_settings",
    "pre_validate_file",
    "validate_courses_for_submission",
    "CategorizationResult",
    "CurriculumLoaded",
    "CurriculumLoadFailed",
    "categorize_courses",
    "load_curriculum_file",
    "parse_curriculum_payload",
    "CurriculumClient",
    "CategorySummary",
    "summarize_categories",
    "ImportResult",
    "import_transcript",
    "export_categorized",
]

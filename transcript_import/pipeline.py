"""
One-call import: validate the upload, then categorize it against a curriculum.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from .config import ImportSettings
from .curriculum import CategorizationResult, categorize_courses
from .schema import CurriculumCourse, PreValidationResult
from .summary import CategorySummary, summarize_categories
from .validation import pre_validate_file

LOGGER = logging.getLogger(__name__)


@dataclass
class ImportResult:
    validation: PreValidationResult
    categorization: Optional[CategorizationResult] = None
    category_summaries: Dict[str, CategorySummary] = field(default_factory=dict)

    @property
    def can_proceed(self) -> bool:
        return self.validation.can_proceed


def import_transcript(
    data: bytes,
    filename: str,
    curriculum: Optional[Sequence[CurriculumCourse]] = None,
    settings: Optional[ImportSettings] = None,
) -> ImportResult:
    """
    Validate ``data`` and, when it can proceed and a curriculum is given,
    bucket its courses by curriculum category.
    """

    validation = pre_validate_file(data, filename, settings)
    result = ImportResult(validation)
    if not validation.can_proceed or validation.parse_result is None:
        return result
    if curriculum is None:
        LOGGER.debug("No curriculum supplied; skipping categorization")
        return result

    categorization = categorize_courses(validation.parse_result.courses, curriculum)
    result.categorization = categorization
    result.category_summaries = summarize_categories(categorization.categorized)
    return result

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

import pandas as pd

from .schema import (
    PENDING_STATUS,
    UNCATEGORIZED,
    CategorizedEntry,
    CourseRecord,
    CourseStatus,
    ParseSummary,
)


def summarize_courses(courses: Iterable[CourseRecord]) -> ParseSummary:
    """Counts per category and status plus the credit total of a parsed file."""

    summary = ParseSummary()
    for course in courses:
        category = course.category or UNCATEGORIZED
        summary.by_category[category] = summary.by_category.get(category, 0) + 1
        summary.by_status[course.status.value] = summary.by_status.get(course.status.value, 0) + 1
        summary.total_courses += 1
        summary.total_credits += course.credits
    return summary


@dataclass(frozen=True)
class CategorySummary:
    category: str
    total: int
    found: int
    completed: int
    in_progress: int
    missing: int
    credits_required: float
    credits_completed: float
    active_credits: float


def active_credits(entries: Iterable[CategorizedEntry]) -> float:
    """Credits of every entry that is not pending."""

    return sum(e.credits for e in entries if e.status != PENDING_STATUS)


def summarize_category(category: str, entries: List[CategorizedEntry]) -> CategorySummary:
    completed = [e for e in entries if e.status == CourseStatus.COMPLETED.value]
    return CategorySummary(
        category=category,
        total=len(entries),
        found=sum(1 for e in entries if e.found),
        completed=len(completed),
        in_progress=sum(1 for e in entries if e.status == CourseStatus.IN_PROGRESS.value),
        missing=sum(1 for e in entries if not e.found),
        credits_required=sum(e.credits for e in entries),
        credits_completed=sum(e.credits for e in completed),
        active_credits=active_credits(entries),
    )


def summarize_categories(categorized: Mapping[str, List[CategorizedEntry]]) -> Dict[str, CategorySummary]:
    return {name: summarize_category(name, entries) for name, entries in categorized.items()}


def summary_frame(summaries: Mapping[str, CategorySummary]) -> pd.DataFrame:
    """Tabular view of category summaries for CLI/report output."""

    columns = [
        "category",
        "total",
        "found",
        "completed",
        "in_progress",
        "missing",
        "credits_required",
        "credits_completed",
        "active_credits",
    ]
    rows = [[getattr(s, col) for col in columns] for s in summaries.values()]
    return pd.DataFrame(rows, columns=columns)

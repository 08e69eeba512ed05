import time

import pytest

from transcript_import.errors import RowRejected
from transcript_import.parser import NO_COURSES_MESSAGE, parse_grid, parse_transcript_bytes
from transcript_import.rows import (
    DEFAULT_CREDITS,
    AppendLog,
    DeduplicationTracker,
    RowKind,
    ScanState,
    build_course_record,
    classify_row,
    parse_credits,
    scan_grid,
)
from transcript_import.schema import CourseStatus, CurriculumMetadata
from transcript_import.validation import pre_validate_file


def test_classify_row_kinds():
    assert classify_row([]) == (RowKind.EMPTY, None)
    assert classify_row(["", "  "]) == (RowKind.EMPTY, None)
    assert classify_row(["Core Courses (30 Credits)"]) == (RowKind.CATEGORY_HEADER, ("category", "Core Courses"))
    assert classify_row(["Lab (1.5 credit)"]) == (RowKind.CATEGORY_HEADER, ("category", "Lab"))
    assert classify_row(["CURRICULUM_ID", "42"]) == (RowKind.METADATA, ("id", "42"))
    assert classify_row(["Active Credits: 12"]) == (RowKind.SUMMARY, None)
    assert classify_row(["Overall Active Credits", "99"]) == (RowKind.SUMMARY, None)
    assert classify_row(["Course Data"]) == (RowKind.TITLE, None)
    assert classify_row(["Intro", "CSX101", "3"]) == (RowKind.CANDIDATE, None)


def test_metadata_key_without_value_is_a_candidate():
    assert classify_row(["CURRICULUM_ID", ""])[0] is RowKind.CANDIDATE


def test_parse_credits_takes_leading_number():
    assert parse_credits("3") == 3.0
    assert parse_credits("3 cr") == 3.0
    assert parse_credits("1.5") == 1.5
    assert parse_credits("three") == 0.0
    assert parse_credits("") == 0.0


def test_build_course_record_normalizes_code_and_status():
    record, defaulted = build_course_record(["Intro to CS", "csx 101", "3", "a", "", "2024-1"], "Core", 7)

    assert record.code == "CSX101"
    assert record.grade == "A"
    assert record.status is CourseStatus.COMPLETED
    assert record.category == "Core"
    assert record.semester == "2024-1"
    assert record.row == 7
    assert not defaulted


def test_build_course_record_defaults_credits_when_graded():
    record, defaulted = build_course_record(["Seminar", "SEM100", "", "IP"], "Uncategorized", 3)

    assert record.credits == DEFAULT_CREDITS
    assert record.status is CourseStatus.IN_PROGRESS
    assert record.category is None
    assert defaulted


@pytest.mark.parametrize(
    "row",
    [
        ["Intro", "CSX101"],
        ["Intro", "", "3", "A"],
        ["Intro", "12345", "3", "A"],
        ["Intro", "CSX101", "0", "", ""],
    ],
)
def test_build_course_record_rejects(row):
    with pytest.raises(RowRejected):
        build_course_record(row, "Core", 1)


def test_tracker_first_occurrence_wins():
    tracker = DeduplicationTracker()
    tracker, first = tracker.admit("CSX 101")
    tracker, second = tracker.admit("csx101")

    assert first is True
    assert second is False


def test_scan_grid_categories_metadata_and_duplicates():
    grid = [
        ["course data"],
        ["CURRICULUM_ID", "bscs-65"],
        ["CURRICULUM_NAME", "BS Computer Science"],
        [],
        ["Core (6 Credits)"],
        ["Active Credits: 3"],
        ["Intro to CS", "CSX 101", "3", "A", "Completed", ""],
        ["Data Structures", "CSX201", "3", "", "Currently Taking", ""],
        ["Intro again", "csx101", "3", "B", "", ""],
        ["Notes", "", "", "", "", ""],
        ["Electives (3 Credits)"],
        ["Ethics", "HUM110", "3", "", "", "2025-1"],
        ["Overall Active Credits: 6"],
    ]

    state = scan_grid(grid)

    assert [c.code for c in state.courses] == ["CSX101", "CSX201", "HUM110"]
    assert [c.category for c in state.courses] == ["Core", "Core", "Electives"]
    assert state.courses[1].status is CourseStatus.IN_PROGRESS
    assert state.courses[2].status is CourseStatus.PLANNED
    assert state.metadata == CurriculumMetadata(id="bscs-65", name="BS Computer Science")
    assert [w.message for w in state.warnings] == ["Row 9: Duplicate course code 'CSX101' - skipped"]
    assert (state.warnings[0].row, state.warnings[0].kind) == (9, "duplicate")
    assert [s.row for s in state.skipped] == [10]


def test_scan_resumes_from_intermediate_state():
    head = [["Core (3 Credits)"], ["Intro", "CSX101", "3", "A"]]
    tail = [["Intro", "CSX101", "3", "A"], ["Calc", "MTH101", "3", "B"]]

    resumed = scan_grid(tail, scan_grid(head))

    assert [c.code for c in resumed.courses] == ["CSX101", "MTH101"]
    assert resumed.courses[1].category == "Core"
    assert len(resumed.warnings) == 1


def test_parse_grid_is_deterministic():
    grid = [["Core (3 Credits)"], ["Intro", "CSX101", "3", "A"]]

    assert parse_grid(grid) == parse_grid(grid)


def test_parse_grid_without_courses_reports_error():
    result = parse_grid([["course data"], ["Active Credits: 0"]])

    assert result.courses == []
    assert result.errors == [NO_COURSES_MESSAGE]
    assert not result.success


def test_parse_grid_summary():
    grid = [
        ["Core (6 Credits)"],
        ["Intro", "CSX101", "3", "A"],
        ["Calc", "MTH101", "4", "F"],
        ["Loose", "GEN100", "2", ""],
    ]

    summary = parse_grid(grid).summary

    assert summary.total_courses == 3
    assert summary.total_credits == 9.0
    assert summary.by_category == {"Core": 3}
    assert summary.by_status == {"completed": 1, "failed": 1, "planned": 1}


def test_initial_state_is_not_mutated():
    initial = ScanState()
    scan_grid([["Intro", "CSX101", "3", "A"]], initial)

    assert initial.courses == ()


def test_parsing_same_bytes_twice_is_identical():
    data = b"Core (3 Credits)\nIntro,CSX101,3,A\nIntro,CSX101,3,A\nCalc,MTH101,4,IP\n"

    first = parse_transcript_bytes(data, ".csv")
    second = parse_transcript_bytes(data, ".csv")

    assert first == second
    assert [c.row for c in first.courses] == [c.row for c in second.courses]
    assert first.warnings == ["Row 3: Duplicate course code 'CSX101' - skipped"]


def test_append_log_branches_leave_older_logs_intact():
    base = AppendLog(["a"])
    left = base.append("b")
    right = base.append("c")
    longer = left.append("d")

    assert base == ("a",)
    assert left == ("a", "b")
    assert right == ("a", "c")
    assert longer == ("a", "b", "d")
    assert list(longer) == ["a", "b", "d"]
    assert longer[-1] == "d"


def test_tracker_reused_from_older_state():
    start, _ = DeduplicationTracker().admit("CSX101")
    newer, _ = start.admit("MTH101")

    branch, admitted = start.admit("HUM110")

    assert admitted
    assert "MTH101" in newer
    assert "MTH101" not in branch
    assert "HUM110" not in newer
    assert branch.admit("MTH101")[1] is True
    assert newer.admit("CSX 101")[1] is False


def test_scan_grid_after_resuming_older_state_twice():
    head = scan_grid([["Core (3 Credits)"], ["Intro", "CSX101", "3", "A"]])

    first = scan_grid([["Calc", "MTH101", "3", "B"]], head)
    second = scan_grid([["Ethics", "HUM110", "3", ""], ["Calc", "MTH101", "3", "B"]], head)

    assert [c.code for c in first.courses] == ["CSX101", "MTH101"]
    assert [c.code for c in second.courses] == ["CSX101", "HUM110", "MTH101"]
    assert [c.code for c in head.courses] == ["CSX101"]
    assert len(second.warnings) == 0


def test_large_file_scans_in_linear_time():
    rows = 50_000
    data = "".join(f"C,AB{i},1\n" for i in range(rows)).encode("utf-8")

    started = time.perf_counter()
    result = pre_validate_file(data, "big.csv")
    elapsed = time.perf_counter() - started

    assert len(result.parse_result.courses) == rows
    assert not result.can_proceed
    assert result.errors[0].type == "structure"
    assert elapsed < 15.0

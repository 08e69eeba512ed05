from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .client import CurriculumClient
from .config import ImportSettings, load_settings
from .curriculum import CurriculumLoadResult, detected_curriculum_id, load_curriculum_file
from .errors import ConfigError, GridDecodeError
from .export import export_categorized
from .grid import normalize_extension
from .parser import parse_transcript_bytes
from .pipeline import import_transcript
from .schema import PreValidationResult
from .summary import summary_frame

LOGGER = logging.getLogger(__name__)

CHECK_MARKS = {"pass": "[ok]  ", "warn": "[warn]", "fail": "[FAIL]"}


def configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def print_validation(result: PreValidationResult) -> None:
    for check in result.checks:
        print(f"{CHECK_MARKS.get(check.status, check.status)} {check.label}: {check.detail}")
    for issue in result.issues:
        where = f" (row {issue.row}" + (f", {issue.column}" if issue.column else "") + ")" if issue.row else ""
        print(f"  {issue.severity.upper()} [{issue.type}]{where}: {issue.message}")
    if result.parse_result and result.parse_result.curriculum_metadata:
        meta = result.parse_result.curriculum_metadata
        print(f"Detected curriculum: id={meta.id or '-'} name={meta.name or '-'} year={meta.year or '-'}")
    print("Ready to import." if result.can_proceed else "File cannot be imported.")


def _settings(args: argparse.Namespace) -> ImportSettings:
    return load_settings(args.config)


def cmd_validate(args: argparse.Namespace) -> int:
    settings = _settings(args)
    data = args.file.read_bytes()
    result = import_transcript(data, args.file.name, settings=settings).validation
    print_validation(result)
    return 0 if result.can_proceed else 1


def _detect_curriculum_id(data: bytes, filename: str) -> Optional[str]:
    try:
        parsed = parse_transcript_bytes(data, normalize_extension(filename))
    except GridDecodeError:
        return None
    return detected_curriculum_id(parsed.curriculum_metadata)


def _resolve_curriculum(args: argparse.Namespace, settings: ImportSettings, data: bytes) -> CurriculumLoadResult:
    if args.curriculum_file:
        return load_curriculum_file(args.curriculum_file)

    curriculum_id = args.curriculum_id or _detect_curriculum_id(data, args.file.name)
    if not curriculum_id:
        raise ConfigError("No curriculum given and the file does not carry CURRICULUM_ID")
    if not settings.curriculum_api_url:
        raise ConfigError("CURRICULUM_API_URL (or curriculum_api.url) is not configured")
    client = CurriculumClient(settings.curriculum_api_url, settings.request_timeout)
    return client.fetch(curriculum_id)


def cmd_categorize(args: argparse.Namespace) -> int:
    settings = _settings(args)
    data = args.file.read_bytes()

    loaded = _resolve_curriculum(args, settings, data)
    if not loaded.ok:
        LOGGER.error("Curriculum unavailable: %s", loaded.reason)
        return 1

    result = import_transcript(data, args.file.name, loaded.courses, settings)
    if not result.can_proceed or result.categorization is None:
        print_validation(result.validation)
        return 1

    for warning in result.categorization.warnings:
        LOGGER.warning(warning)
    frame = summary_frame(result.category_summaries)
    print(frame.to_string(index=False))
    print(
        f"Matched {result.categorization.matched_count} course(s); "
        f"{len(result.categorization.unmatched)} counted as free electives."
    )

    if args.export:
        parse_result = result.validation.parse_result
        metadata = loaded.metadata or (parse_result.curriculum_metadata if parse_result else None)
        export_categorized(result.categorization.categorized, args.export, metadata)
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate transcript spreadsheets and sort their courses into curriculum categories.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional YAML config (import limits, curriculum API).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (repeatable).",
    )
    subparsers = parser.add_subparsers(dest="command")

    validate = subparsers.add_parser("validate", help="Run the upload checklist over a file.")
    validate.add_argument("file", type=Path, help="Transcript file (.xlsx, .xls or .csv).")
    validate.set_defaults(func=cmd_validate)

    categorize = subparsers.add_parser(
        "categorize",
        help="Validate a file and group its courses by curriculum category.",
    )
    categorize.add_argument("file", type=Path, help="Transcript file (.xlsx, .xls or .csv).")
    source = categorize.add_mutually_exclusive_group()
    source.add_argument("--curriculum-file", type=Path, help="Curriculum JSON payload.")
    source.add_argument(
        "--curriculum-id",
        help="Curriculum to fetch from the API (defaults to the file's CURRICULUM_ID).",
    )
    categorize.add_argument("--export", type=Path, help="Write the grouped courses to .xlsx or .csv.")
    categorize.set_defaults(func=cmd_categorize)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 2

    configure_logging(args.verbose)
    try:
        return args.func(args)
    except (ConfigError, OSError) as exc:
        LOGGER.error("%s", exc)
        return 2

"""
Import settings.

Values are resolved in three layers: built-in defaults, an optional YAML file
(``import:`` section), then environment variables (a ``.env`` file in the
working directory is loaded first).

Sample ``config.yaml``::

    import:
      accepted_formats: [".xlsx", ".xls", ".csv"]
      max_size_mb: 5
      max_courses: 200
    curriculum_api:
      url: http://localhost:3000
      timeout: 15
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .grid import normalize_extension

DEFAULT_ACCEPTED_FORMATS: Tuple[str, ...] = (".xlsx", ".xls", ".csv")
DEFAULT_MAX_SIZE_MB = 5.0
DEFAULT_MAX_COURSES = 200
DEFAULT_REQUEST_TIMEOUT = 15.0

ENV_MAX_SIZE_MB = "TRANSCRIPT_MAX_SIZE_MB"
ENV_MAX_COURSES = "TRANSCRIPT_MAX_COURSES"
ENV_ACCEPTED_FORMATS = "TRANSCRIPT_ACCEPTED_FORMATS"
ENV_CURRICULUM_API_URL = "CURRICULUM_API_URL"
ENV_REQUEST_TIMEOUT = "CURRICULUM_REQUEST_TIMEOUT"


@dataclass(frozen=True)
class ImportSettings:
    accepted_formats: Tuple[str, ...] = DEFAULT_ACCEPTED_FORMATS
    max_size_mb: float = DEFAULT_MAX_SIZE_MB
    max_courses: int = DEFAULT_MAX_COURSES
    curriculum_api_url: Optional[str] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


def _parse_formats(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value]
    else:
        raise ConfigError(f"accepted_formats must be a list or comma separated string, got {value!r}")
    formats = tuple(normalize_extension(item) for item in items if item)
    if not formats:
        raise ConfigError("accepted_formats must name at least one extension")
    return formats


def _parse_positive(value: Any, name: str, kind: type) -> Any:
    try:
        parsed = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc
    if parsed <= 0:
        raise ConfigError(f"{name} must be greater than zero, got {value!r}")
    return parsed


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return raw


def settings_from_mapping(raw: Mapping[str, Any], env: Optional[Mapping[str, str]] = None) -> ImportSettings:
    """Build settings from a parsed config mapping, then apply ``env`` overrides."""

    env = os.environ if env is None else env
    import_cfg = raw.get("import") or {}
    api_cfg = raw.get("curriculum_api") or {}
    if not isinstance(import_cfg, dict) or not isinstance(api_cfg, dict):
        raise ConfigError("`import` and `curriculum_api` sections must be mappings")

    formats = import_cfg.get("accepted_formats", DEFAULT_ACCEPTED_FORMATS)
    max_size = import_cfg.get("max_size_mb", DEFAULT_MAX_SIZE_MB)
    max_courses = import_cfg.get("max_courses", DEFAULT_MAX_COURSES)
    api_url = api_cfg.get("url")
    timeout = api_cfg.get("timeout", DEFAULT_REQUEST_TIMEOUT)

    if env.get(ENV_ACCEPTED_FORMATS):
        formats = env[ENV_ACCEPTED_FORMATS]
    if env.get(ENV_MAX_SIZE_MB):
        max_size = env[ENV_MAX_SIZE_MB]
    if env.get(ENV_MAX_COURSES):
        max_courses = env[ENV_MAX_COURSES]
    if env.get(ENV_CURRICULUM_API_URL):
        api_url = env[ENV_CURRICULUM_API_URL]
    if env.get(ENV_REQUEST_TIMEOUT):
        timeout = env[ENV_REQUEST_TIMEOUT]

    return ImportSettings(
        accepted_formats=_parse_formats(formats),
        max_size_mb=_parse_positive(max_size, "max_size_mb", float),
        max_courses=_parse_positive(max_courses, "max_courses", int),
        curriculum_api_url=str(api_url).rstrip("/") if api_url else None,
        request_timeout=_parse_positive(timeout, "timeout", float),
    )


def load_settings(path: Optional[Path] = None) -> ImportSettings:
    """Load settings from ``path`` (optional) and the environment."""

    load_dotenv()
    raw = _read_yaml(path) if path is not None else {}
    return settings_from_mapping(raw)

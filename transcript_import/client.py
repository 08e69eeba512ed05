from __future__ import annotations

import logging

import requests

from .config import DEFAULT_REQUEST_TIMEOUT
from .curriculum import CurriculumLoadFailed, CurriculumLoadResult, parse_curriculum_payload

LOGGER = logging.getLogger(__name__)

PUBLIC_CURRICULA_PATH = "/api/public-curricula"


class CurriculumClient:
    """Fetches curriculum structures from the public curricula endpoint."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def fetch(self, curriculum_id: str) -> CurriculumLoadResult:
        url = f"{self.base_url}{PUBLIC_CURRICULA_PATH}"
        LOGGER.info("Fetching curriculum %s from %s", curriculum_id, url)
        try:
            response = requests.get(url, params={"curriculumId": curriculum_id}, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            LOGGER.warning("Curriculum request failed: %s", exc)
            return CurriculumLoadFailed(f"Failed to fetch curriculum {curriculum_id}: {exc}")
        except ValueError as exc:
            return CurriculumLoadFailed(f"Curriculum endpoint returned invalid JSON: {exc}")
        return parse_curriculum_payload(payload)

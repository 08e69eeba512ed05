from __future__ import annotations


class TranscriptImportError(Exception):
    """Base class for errors raised by the import pipeline."""


class GridDecodeError(TranscriptImportError):
    """The file container could not be read (wrong magic bytes, corrupt archive)."""


class RowRejected(TranscriptImportError):
    """A grid row could not be turned into a course record."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ConfigError(ValueError):
    """Raised when the import configuration is invalid."""


class CurriculumPayloadError(ValueError):
    """Raised when a curriculum payload does not match the expected shape."""

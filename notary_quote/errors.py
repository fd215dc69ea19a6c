"""Error taxonomy for the quote pipeline.

Only ConfigurationError is recovered from automatically (config.load_config
falls back to defaults). The others drop a single file from the batch.
"""
from __future__ import annotations


class QuoteError(Exception):
    stage = "pipeline"

    def __init__(self, message: str, *, file_name: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.file_name = file_name

    def __str__(self) -> str:
        if self.file_name:
            return f"{self.file_name}: {self.message}"
        return self.message


class AcquisitionError(QuoteError):
    """Unsupported type, oversize, missing file or too many files."""

    stage = "acquiring"


class ExtractionError(QuoteError):
    """Corrupt or unreadable document."""

    stage = "extracting-text"


class RecognitionError(QuoteError):
    """OCR engine failure."""

    stage = "optical-recognizing"


class ConfigurationError(QuoteError):
    stage = "config"

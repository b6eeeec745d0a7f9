"""
Error taxonomy for summary generation
"""
from __future__ import annotations


class SummaryError(Exception):
    """Base class for summary pipeline errors."""


class SummaryInputError(SummaryError, ValueError):
    """The source text failed validation. Never retried, never reaches the model."""


class CoercionError(SummaryError):
    """Model output could not be coerced into ``{summary, keyPhrases}``."""

    def __init__(self, message: str, raw_type: str = "unknown"):
        super().__init__(message)
        self.raw_type = raw_type


class ChunkFailure(SummaryError):
    """One window of a chunked summary failed."""

    def __init__(self, index: int, total: int, cause: BaseException):
        super().__init__(f"chunk {index + 1}/{total} failed: {cause}")
        self.index = index
        self.total = total
        self.cause = cause

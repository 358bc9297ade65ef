"""Exception hierarchy for the song ingestion pipeline.

    LyricMindError            (base)
    +-- EmptySourceError      source has no lines at all
    +-- MissingColumnError    header lacks a required column
    +-- RowParseError         one CSV row is unusable (non-fatal, row skipped)
    +-- InvalidArgumentError  bad batch or bad bulk request
    +-- SourceReadError       bulk-request file could not be read
    +-- PersistenceFailure    song repository failed
    +-- EmbeddingBackendFailure  vector store failed

Only RowParseError is recovered from inside the pipeline. Everything else
aborts the whole bulk operation.
"""

from typing import Optional


class LyricMindError(Exception):
    """Base exception carrying a message and an optional provider name."""

    def __init__(
        self,
        message: str = "Song pipeline error",
        provider_name: Optional[str] = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> Optional[str]:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class EmptySourceError(LyricMindError):
    """Raised when the CSV source contains no lines, not even a header."""

    def __init__(self, message: str = "CSV source is empty") -> None:
        super().__init__(message=message)


class MissingColumnError(LyricMindError):
    """Raised when a required column is absent from the CSV header."""

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(message=f"Missing required column: {column}")


class RowParseError(LyricMindError):
    """Raised for a single unusable row. Callers log it and skip the row."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        self.line_number = line_number
        super().__init__(message=message)


class InvalidArgumentError(LyricMindError, ValueError):
    """Raised when a batch or request is empty or malformed."""


class SourceReadError(LyricMindError):
    """Raised when a bulk-request file cannot be opened or read."""


class PersistenceFailure(LyricMindError):
    """Raised when the song repository fails to save a batch."""

    def __init__(
        self,
        message: str = "Saving songs failed",
        provider_name: Optional[str] = "repository",
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingBackendFailure(LyricMindError):
    """Raised when the vector store rejects or fails a document batch."""

    def __init__(
        self,
        message: str = "Vector embedding failed",
        provider_name: Optional[str] = "vector_store",
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

"""Exception hierarchy for the loan intake pipeline.

Every error carries a human-readable message plus a ``details`` dict for
logging. Pipeline errors also carry the ``stage`` they belong to, so the
analysis entry point can report which stage failed.
"""

from typing import Any


class LoanIntakeError(Exception):
    """Base exception for all loan intake errors."""

    stage: str = "unknown"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = dict(details or {})
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class UnsupportedFileType(LoanIntakeError):
    """Raised when an uploaded file has an extension we cannot extract."""

    stage = "extraction"

    def __init__(self, file_name: str, details: dict[str, Any] | None = None) -> None:
        details = dict(details or {})
        details["file_name"] = file_name
        super().__init__(f"Unsupported file type: {file_name}", details)


class ExtractionError(LoanIntakeError):
    """Raised when PDF parsing or OCR fails."""

    stage = "extraction"

    def __init__(
        self,
        message: str,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if file_name:
            details["file_name"] = file_name
        super().__init__(message, details)


class EmbeddingError(LoanIntakeError):
    """Raised when the embedding provider fails."""

    stage = "embedding"


class VectorIndexError(LoanIntakeError):
    """Raised when a vector index operation fails."""

    stage = "index"

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class StoreError(LoanIntakeError):
    """Raised when a persistence operation fails."""

    stage = "store"


class NotFound(LoanIntakeError):
    """Raised when an application or analysis does not exist."""

    stage = "store"

    def __init__(self, kind: str, key: str, details: dict[str, Any] | None = None) -> None:
        details = dict(details or {})
        details[kind] = key
        super().__init__(f"{kind} not found: {key}", details)


class RetrievalError(LoanIntakeError):
    """Raised when any retrieval stage (embed, index, repository) fails."""

    stage = "retrieval"

    def __init__(
        self,
        message: str,
        query: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if query:
            details["query"] = query
        super().__init__(message, details)


class GenerationError(LoanIntakeError):
    """Raised when the language model call or its response is unusable."""

    stage = "generation"


class ValidationError(LoanIntakeError):
    """Raised when a candidate analysis breaks a completeness or consistency rule."""

    stage = "validation"

    def __init__(
        self,
        field: str,
        constraint: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        details["field"] = field
        details["constraint"] = constraint
        self.field = field
        self.constraint = constraint
        super().__init__(f"Invalid {field}: {constraint}", details)


class ApplicationStateError(LoanIntakeError):
    """Raised on an illegal application status transition."""

    stage = "store"


class IngestionError(LoanIntakeError):
    """Raised when one or more files of an ingestion batch fail.

    ``file_name`` names the first failed file in submission order and
    ``report`` holds the per-file outcome of the whole batch.
    """

    stage = "extraction"

    def __init__(self, file_name: str, reason: str, report: Any = None) -> None:
        self.file_name = file_name
        self.reason = reason
        self.report = report
        super().__init__(
            f"Failed to ingest {file_name}: {reason}",
            {"file_name": file_name},
        )

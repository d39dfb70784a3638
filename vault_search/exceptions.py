"""Application exception hierarchy.

All custom exceptions inherit from VaultSearchError.
Each exception has an error code for structured error handling and a
``retryable`` flag telling callers whether the operation may succeed if
attempted again.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "VS-1000"
    CONFIGURATION_ERROR = "VS-1001"
    VALIDATION_ERROR = "VS-1002"

    # Corpus errors (2xxx)
    CORPUS_ERROR = "VS-2000"
    DOCUMENT_INVALID = "VS-2001"
    DUPLICATE_DOCUMENT = "VS-2002"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "VS-3000"
    PROVIDER_UNAVAILABLE = "VS-3001"
    PROVIDER_AUTH_ERROR = "VS-3002"
    MODEL_LOAD_ERROR = "VS-3003"

    # Vector store errors (4xxx)
    VECTOR_STORE_ERROR = "VS-4000"
    SCHEMA_NOT_INITIALIZED = "VS-4001"
    DIMENSION_CONFLICT = "VS-4002"
    DIMENSION_MISMATCH = "VS-4003"
    RECORD_NOT_FOUND = "VS-4004"

    # Indexing errors (5xxx)
    INDEXING_ERROR = "VS-5000"

    # Search errors (6xxx)
    SEARCH_ERROR = "VS-6000"
    PROVIDER_MISMATCH = "VS-6001"


class VaultSearchError(Exception):
    """Base exception for all vault-search errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(VaultSearchError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(VaultSearchError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class CorpusError(VaultSearchError):
    """A content unit could not be read or normalized."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CORPUS_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EmbeddingError(VaultSearchError):
    """Embedding provider error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ProviderUnavailable(EmbeddingError):
    """Transient provider failure (network, 5xx, rate limited, timeout)."""

    retryable = True

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.PROVIDER_UNAVAILABLE, details)


class ProviderAuthError(EmbeddingError):
    """Provider rejected our credentials."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.PROVIDER_AUTH_ERROR, details)


class ModelLoadError(EmbeddingError):
    """Local embedding model could not be initialized."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.MODEL_LOAD_ERROR, details)


class VectorStoreError(VaultSearchError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class DimensionConflict(VectorStoreError):
    """Schema already exists with a different dimension."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.DIMENSION_CONFLICT, details)


class DimensionMismatch(VectorStoreError):
    """Vector length does not match the expected dimension."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.DIMENSION_MISMATCH, details)


class RecordNotFound(VectorStoreError):
    """No record stored under the requested id."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.RECORD_NOT_FOUND, details)


class IndexingError(VaultSearchError):
    """Indexing pipeline error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INDEXING_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class SearchError(VaultSearchError):
    """Query engine error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SEARCH_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ProviderMismatch(SearchError):
    """Index was built by a different embedding provider than the query's."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.PROVIDER_MISMATCH, details)

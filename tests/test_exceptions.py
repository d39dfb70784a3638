"""Tests for application exceptions."""

import pytest

from vault_search.exceptions import (
    ConfigurationError,
    CorpusError,
    DimensionConflict,
    DimensionMismatch,
    EmbeddingError,
    ErrorCode,
    IndexingError,
    ModelLoadError,
    ProviderAuthError,
    ProviderMismatch,
    ProviderUnavailable,
    RecordNotFound,
    SearchError,
    ValidationError,
    VaultSearchError,
    VectorStoreError,
)


class TestErrorCode:
    """Tests for error codes."""

    def test_error_code_format(self) -> None:
        """Error codes follow VS-XXXX format."""
        for code in ErrorCode:
            assert code.value.startswith("VS-")
            assert len(code.value) == 7  # VS-XXXX

    def test_error_code_uniqueness(self) -> None:
        """All error codes are unique."""
        codes = [code.value for code in ErrorCode]
        assert len(codes) == len(set(codes))


class TestVaultSearchError:
    """Tests for base exception."""

    def test_basic_exception(self) -> None:
        """Base exception stores message and code."""
        error = VaultSearchError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}
        assert error.retryable is False

    def test_to_dict(self) -> None:
        """Exception converts to API response dict."""
        error = VaultSearchError(
            "Something went wrong",
            details={"trace_id": "abc123"},
        )
        assert error.to_dict() == {
            "error": {
                "code": "VS-1000",
                "message": "Something went wrong",
                "details": {"trace_id": "abc123"},
            }
        }

    def test_str_representation(self) -> None:
        """Exception string is the message."""
        assert str(VaultSearchError("Test error")) == "Test error"


class TestSubclasses:
    """Tests for the concrete error types."""

    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (ConfigurationError("x"), ErrorCode.CONFIGURATION_ERROR),
            (ValidationError("x"), ErrorCode.VALIDATION_ERROR),
            (CorpusError("x"), ErrorCode.CORPUS_ERROR),
            (EmbeddingError("x"), ErrorCode.EMBEDDING_SERVICE_ERROR),
            (ProviderUnavailable("x"), ErrorCode.PROVIDER_UNAVAILABLE),
            (ProviderAuthError("x"), ErrorCode.PROVIDER_AUTH_ERROR),
            (ModelLoadError("x"), ErrorCode.MODEL_LOAD_ERROR),
            (VectorStoreError("x"), ErrorCode.VECTOR_STORE_ERROR),
            (DimensionConflict("x"), ErrorCode.DIMENSION_CONFLICT),
            (DimensionMismatch("x"), ErrorCode.DIMENSION_MISMATCH),
            (RecordNotFound("x"), ErrorCode.RECORD_NOT_FOUND),
            (IndexingError("x"), ErrorCode.INDEXING_ERROR),
            (SearchError("x"), ErrorCode.SEARCH_ERROR),
            (ProviderMismatch("x"), ErrorCode.PROVIDER_MISMATCH),
        ],
    )
    def test_default_code(self, error: VaultSearchError, code: ErrorCode) -> None:
        """Each error type carries its own code."""
        assert error.code == code
        assert isinstance(error, VaultSearchError)

    def test_only_provider_unavailable_is_retryable(self) -> None:
        """Transient provider failures are the only retryable errors."""
        assert ProviderUnavailable("down").retryable is True
        assert ProviderAuthError("denied").retryable is False
        assert EmbeddingError("bad request").retryable is False
        assert DimensionMismatch("wrong size").retryable is False

    def test_custom_code(self) -> None:
        """Corpus errors can carry a more specific code."""
        error = CorpusError("Duplicate", code=ErrorCode.DUPLICATE_DOCUMENT)
        assert error.code == ErrorCode.DUPLICATE_DOCUMENT

    def test_hierarchy(self) -> None:
        """Specific errors can be caught by their family."""
        assert isinstance(ProviderUnavailable("x"), EmbeddingError)
        assert isinstance(RecordNotFound("x"), VectorStoreError)
        assert isinstance(ProviderMismatch("x"), SearchError)

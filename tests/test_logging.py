"""Tests for logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

import pytest

from vault_search.config import Environment, Settings
from vault_search.logging_config import (
    DevFormatter,
    JSONFormatter,
    get_logger,
    setup_logging,
)


def _record(
    msg: str = "Indexed batch",
    level: int = logging.INFO,
    exc_info: object = None,
    **extra: object,
) -> logging.LogRecord:
    record = logging.LogRecord(
        name="vault_search.indexing.pipeline",
        level=level,
        pathname="/app/vault_search/indexing/pipeline.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,  # type: ignore[arg-type]
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_format_basic_message(self) -> None:
        """Basic log message is formatted as JSON."""
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "vault_search.indexing.pipeline"
        assert data["message"] == "Indexed batch"
        assert data["file"] == "/app/vault_search/indexing/pipeline.py:42"
        assert "timestamp" in data
        assert "extra" not in data

    def test_extra_fields(self) -> None:
        """Fields passed through extra= are nested under "extra"."""
        record = _record(batch_index=3, provider_tag="local:fake-model:16")
        data = json.loads(JSONFormatter().format(record))

        assert data["extra"] == {
            "batch_index": 3,
            "provider_tag": "local:fake-model:16",
        }

    def test_non_serializable_extra(self) -> None:
        """Values JSON cannot encode are stringified."""
        record = _record(ids={"a"})
        data = json.loads(JSONFormatter().format(record))
        assert data["extra"]["ids"] == "{'a'}"

    def test_format_with_exception(self) -> None:
        """Exception info is included in output."""
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        record = _record("Batch failed", logging.ERROR, exc_info)
        data = json.loads(JSONFormatter().format(record))

        assert "ValueError" in data["exception"]


class TestDevFormatter:
    """Tests for development formatter."""

    def test_format_includes_level(self) -> None:
        """Development format includes level, logger and message."""
        output = DevFormatter().format(_record("Slow batch", logging.WARNING))

        assert "WARNING" in output
        assert "vault_search.indexing.pipeline" in output
        assert "Slow batch" in output


class TestSetupLogging:
    """Tests for logging setup."""

    def test_returns_root_logger(self) -> None:
        """setup_logging returns root logger."""
        logger = setup_logging(level="INFO", json_output=False)
        assert logger is logging.getLogger()

    @pytest.mark.parametrize(
        ("environment", "formatter"),
        [
            (Environment.PRODUCTION, JSONFormatter),
            (Environment.STAGING, JSONFormatter),
            (Environment.DEVELOPMENT, DevFormatter),
        ],
    )
    def test_formatter_follows_environment(
        self,
        environment: Environment,
        formatter: type[logging.Formatter],
    ) -> None:
        """JSON output everywhere except development."""
        settings = Settings(environment=environment)

        with patch("vault_search.logging_config.get_settings", return_value=settings):
            setup_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, formatter)

    def test_level_override(self) -> None:
        """Log level can be overridden."""
        setup_logging(level="DEBUG", json_output=False)
        assert logging.getLogger().level == logging.DEBUG

    def test_json_output_override(self) -> None:
        """JSON output can be forced in development."""
        settings = Settings(environment=Environment.DEVELOPMENT)

        with patch("vault_search.logging_config.get_settings", return_value=settings):
            setup_logging(json_output=True)

        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)

    def test_third_party_loggers_quietened(self) -> None:
        """HTTP client and model loader logs are raised to WARNING."""
        setup_logging(level="DEBUG", json_output=False)

        for name in ("httpx", "httpcore", "sentence_transformers"):
            assert logging.getLogger(name).level == logging.WARNING


class TestGetLogger:
    """Tests for named logger retrieval."""

    def test_returns_named_logger(self) -> None:
        """get_logger returns a logger with the given name."""
        assert get_logger("vault_search.search").name == "vault_search.search"

    def test_inherits_root_level(self) -> None:
        """Module loggers inherit their effective level from root."""
        setup_logging(level="WARNING", json_output=False)
        assert get_logger("vault_search.search.engine").getEffectiveLevel() == (
            logging.WARNING
        )

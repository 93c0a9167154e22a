"""Unit tests for structured logging helpers."""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest

from sqlstash._serialization import decode_json
from sqlstash.exceptions import ImproperConfigurationError
from sqlstash.utils.logging import (
    TEXT_FORMAT,
    CorrelationIDFilter,
    StructuredFormatter,
    configure_logging,
    correlation_context,
    get_correlation_id,
    get_logger,
    log_with_context,
)


@pytest.fixture
def restore_root_logger() -> Generator[logging.Logger, None, None]:
    root = logging.getLogger("sqlstash")
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


def _record(message: str = "cache.hit", **extra_fields: object) -> logging.LogRecord:
    record = logging.LogRecord("sqlstash.statement", logging.DEBUG, __file__, 10, message, (), None)
    if extra_fields:
        record.extra_fields = extra_fields  # type: ignore[attr-defined]
    return record


def test_get_logger_namespaces_names() -> None:
    assert get_logger("statement").name == "sqlstash.statement"
    assert get_logger("sqlstash.cache").name == "sqlstash.cache"
    assert get_logger("sqlstashed").name == "sqlstash.sqlstashed"
    assert get_logger().name == "sqlstash"


def test_get_logger_adds_filter_once() -> None:
    logger = get_logger("filters")
    get_logger("filters")

    assert sum(isinstance(f, CorrelationIDFilter) for f in logger.filters) == 1


def test_correlation_context_sets_and_restores() -> None:
    assert get_correlation_id() is None

    with correlation_context("req-1") as outer:
        assert outer == "req-1"
        with correlation_context() as inner:
            assert get_correlation_id() == inner
            assert len(inner) == 32
        assert get_correlation_id() == "req-1"

    assert get_correlation_id() is None


def test_structured_formatter_emits_json() -> None:
    payload = decode_json(StructuredFormatter().format(_record(cache_key="abc", rows=3)))

    assert payload["message"] == "cache.hit"
    assert payload["level"] == "DEBUG"
    assert payload["logger"] == "sqlstash.statement"
    assert payload["cache_key"] == "abc"
    assert payload["rows"] == 3
    assert "correlation_id" not in payload


def test_structured_formatter_includes_correlation_id() -> None:
    with correlation_context("req-42"):
        payload = decode_json(StructuredFormatter().format(_record()))

    assert payload["correlation_id"] == "req-42"


def test_correlation_filter_stamps_records() -> None:
    record = _record()
    assert CorrelationIDFilter().filter(record) is True
    assert record.correlation_id == "-"  # type: ignore[attr-defined]

    with correlation_context("req-7"):
        CorrelationIDFilter().filter(record)
    assert record.correlation_id == "req-7"  # type: ignore[attr-defined]


def test_text_format_shows_correlation_id() -> None:
    record = _record("cache.miss")
    with correlation_context("req-9"):
        CorrelationIDFilter().filter(record)

    line = logging.Formatter(TEXT_FORMAT).format(record)

    assert "[req-9] cache.miss" in line


def test_log_with_context_passes_extra_fields(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("context")

    with caplog.at_level(logging.DEBUG, logger="sqlstash.context"):
        log_with_context(logger, logging.DEBUG, "cache.miss", cache_key="k1", rows=0)

    record = caplog.records[-1]
    assert record.getMessage() == "cache.miss"
    assert record.extra_fields == {"cache_key": "k1", "rows": 0}  # type: ignore[attr-defined]


def test_log_with_context_skips_disabled_levels(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("quiet")

    with caplog.at_level(logging.WARNING, logger="sqlstash.quiet"):
        log_with_context(logger, logging.DEBUG, "cache.hit")

    assert caplog.records == []


def test_configure_logging(restore_root_logger: logging.Logger, tmp_path: Path) -> None:
    log_file = tmp_path / "sqlstash.log"

    root = configure_logging(level="debug", format_style="text", log_to_file=str(log_file))

    assert root is restore_root_logger
    assert root.level == logging.DEBUG
    assert root.propagate is False
    assert len(root.handlers) == 2
    assert not isinstance(root.handlers[0].formatter, StructuredFormatter)
    assert isinstance(root.handlers[1].formatter, StructuredFormatter)
    assert all(any(isinstance(f, CorrelationIDFilter) for f in h.filters) for h in root.handlers)


def test_configure_logging_writes_structured_file(restore_root_logger: logging.Logger, tmp_path: Path) -> None:
    log_file = tmp_path / "sqlstash.log"
    configure_logging(level="INFO", log_to_file=str(log_file))

    with correlation_context("run-1"):
        log_with_context(get_logger("statement"), logging.INFO, "cache.hit", cache_key="k")
    for handler in restore_root_logger.handlers:
        handler.flush()

    lines = log_file.read_text().splitlines()
    payload = decode_json(lines[-1])
    assert payload["message"] == "cache.hit"
    assert payload["cache_key"] == "k"
    assert payload["correlation_id"] == "run-1"


def test_configure_logging_replaces_handlers(restore_root_logger: logging.Logger) -> None:
    configure_logging(level=logging.WARNING)
    configure_logging(level=logging.WARNING)

    assert len(restore_root_logger.handlers) == 1


@pytest.mark.parametrize("kwargs", [{"level": "LOUD"}, {"format_style": "xml"}])
def test_configure_logging_rejects_unknown_options(restore_root_logger: logging.Logger, kwargs: dict) -> None:
    with pytest.raises(ImproperConfigurationError):
        configure_logging(**kwargs)

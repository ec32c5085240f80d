"""
Test suite for structured logging helpers.

System role: Verification of log context flattening
"""

import logging

from semantic_kb.core.exceptions import PersistenceError
from semantic_kb.observability.log_utils import log_exception_with_context, safe_log_value
from semantic_kb.observability.logger import ContextFormatter


class TestSafeLogValue:
    """Test suite for safe_log_value()."""

    def test_vector_should_be_summarised(self) -> None:
        assert safe_log_value([0.1] * 768) == "list(768 items)"

    def test_blob_should_report_byte_count(self) -> None:
        assert safe_log_value(b"\x00" * 16) == "bytes(16 bytes)"

    def test_long_text_should_be_truncated(self) -> None:
        rendered = safe_log_value("x" * 50, max_length=10)

        assert rendered.startswith("x" * 10)
        assert "truncated, 50 total" in rendered

    def test_none_should_render_literal(self) -> None:
        assert safe_log_value(None) == "None"


class TestLogExceptionWithContext:
    """Test suite for log_exception_with_context()."""

    def test_domain_details_should_be_merged(self, caplog) -> None:
        # Arrange
        logger = logging.getLogger("tests.log_utils")
        error = PersistenceError("insert failed", operation="index_document")

        # Act
        with caplog.at_level(logging.ERROR, logger="tests.log_utils"):
            try:
                raise error
            except PersistenceError as e:
                log_exception_with_context(logger, "Document failed", e, source_file="docs/a.md")

        # Assert
        record = caplog.records[-1]
        assert record.operation == "index_document"
        assert record.source_file == "docs/a.md"
        assert record.error_type == "PersistenceError"
        assert record.error_msg == "insert failed"
        assert record.exc_info is not None


class TestContextFormatter:
    """Test suite for ContextFormatter."""

    def _record(self, extra=None) -> logging.LogRecord:
        logger = logging.getLogger("tests.formatter")
        return logger.makeRecord(
            "tests.formatter", logging.INFO, __file__, 1, "Indexed file", None, None, extra=extra
        )

    def test_extra_fields_should_be_appended_sorted(self) -> None:
        formatter = ContextFormatter("%(levelname)s - %(message)s")

        line = formatter.format(self._record({"source_file": "docs/a.md", "chunks": 3}))

        assert line == "INFO - Indexed file | chunks=3 source_file=docs/a.md"

    def test_plain_record_should_be_unchanged(self) -> None:
        formatter = ContextFormatter("%(levelname)s - %(message)s")

        assert formatter.format(self._record()) == "INFO - Indexed file"

"""
Unit tests for configuration checks and logging context
"""

import logging
from core.config import Settings, validate_config
from core.exceptions import ConfigurationError, error_message
from core.logging import RequestIdFilter, request_id_var


class TestValidateConfig:

    def test_default_configuration_has_no_warnings(self):
        assert validate_config(Settings(DATABASE_URL="postgresql+asyncpg://u:p@db/etl")) == []

    def test_missing_values_are_reported(self):
        warnings = validate_config(Settings(
            DATABASE_URL="",
            REQUIRE_AUTH=True,
            API_KEY=None,
            ENRICH_BATCH_SIZE=0
        ))

        assert len(warnings) == 3
        assert warnings[0].startswith("DATABASE_URL is not set")


class TestRequestIdFilter:

    def _record(self):
        return logging.LogRecord("test", logging.INFO, __file__, 1, "message", None, None)

    def test_default_request_id(self):
        record = self._record()
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == "-"

    def test_request_id_from_context(self):
        token = request_id_var.set("req-42")
        try:
            record = self._record()
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        assert record.request_id == "req-42"


class TestErrorMessage:

    def test_etl_exception_message_has_no_context(self):
        error = ConfigurationError("Enrichment instruction is required", context={"step": "enrich"})

        assert error_message(error) == "Enrichment instruction is required"
        assert "Context" in str(error)

    def test_other_exceptions(self):
        assert error_message(RuntimeError("boom")) == "boom"

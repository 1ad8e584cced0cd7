"""Tests for vault_kernel.logging_config."""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID

import pytest

from vault_kernel.domain.values import PrimaryManagerLogic
from vault_kernel.exceptions import DepartmentCycleError, InvalidDocumentError
from vault_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _fresh_logging():
    """Each test configures logging itself; the suite-wide setup is restored after."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def json_lines():
    """
    Configure logging onto an in-memory stream.

    Returns a reader that parses every line written so far.
    """
    stream = StringIO()

    def _configure(level=logging.INFO):
        configure_logging(handler=logging.StreamHandler(stream), level=level)

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    _read.configure = _configure
    _configure()
    return _read


class TestRecordShape:
    def test_envelope(self, json_lines):
        get_logger("ingestion.adapter").info("document_parsed")

        (record,) = json_lines()
        assert record["message"] == "document_parsed"
        assert record["level"] == "INFO"
        assert record["logger"] == "vault_kernel.ingestion.adapter"
        assert datetime.fromisoformat(record["ts"]).tzinfo is not None

    def test_extra_keys_are_top_level(self, json_lines):
        get_logger("t").info("lookups_imported", extra={"category": "title", "count": 3})

        (record,) = json_lines()
        assert (record["category"], record["count"]) == ("title", 3)

    def test_extra_does_not_override_envelope_or_context(self, json_lines):
        with LogContext.bind(phase="persons"):
            get_logger("t").info("m", extra={"phase": "other"})

        assert json_lines()[0]["phase"] == "persons"

    def test_level_filtering(self, json_lines):
        log = get_logger("t")
        log.debug("hidden")
        log.warning("shown")
        assert [r["message"] for r in json_lines()] == ["shown"]

    @pytest.mark.parametrize(
        "value, expected",
        [
            (UUID("12345678-1234-5678-1234-567812345678"), "12345678-1234-5678-1234-567812345678"),
            (date(2024, 1, 1), "2024-01-01"),
            (datetime(2024, 1, 1, 12, tzinfo=timezone.utc), "2024-01-01T12:00:00+00:00"),
            (Decimal("0.80"), "0.80"),
            (PrimaryManagerLogic.FROM_IMPORT, "from_import"),
            (("D1", "S1"), ["D1", "S1"]),
        ],
    )
    def test_values_serialized(self, json_lines, value, expected):
        get_logger("t").info("value", extra={"value": value})
        assert json_lines()[0]["value"] == expected


class TestExceptionDetails:
    def test_plain_exception(self, json_lines):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("t").error("failed", exc_info=True)

        (record,) = json_lines()
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "ValueError: boom" in record["traceback"]

    def test_cycle_error_fields(self, json_lines):
        try:
            raise DepartmentCycleError("D1", "Engineering", ["D1", "D2", "D1"])
        except DepartmentCycleError:
            get_logger("t").error("department_cycle", exc_info=True)

        (record,) = json_lines()
        assert record["exc_code"] == "DEPARTMENT_CYCLE"
        assert record["exc_external_id"] == "D1"
        assert record["exc_chain"] == ["D1", "D2", "D1"]

    def test_document_error_fields(self, json_lines):
        try:
            raise InvalidDocumentError("vault.json", "Persons must be a list")
        except InvalidDocumentError:
            get_logger("t").error("document_rejected", exc_info=True)

        (record,) = json_lines()
        assert record["exc_code"] == "INVALID_DOCUMENT"
        assert record["exc_type"] == "InvalidDocumentError"
        assert record["exc_source"] == "vault.json"
        assert record["exc_reason"] == "Persons must be a list"


class TestLogContext:
    def test_fields_appear_on_records(self, json_lines):
        LogContext.set(import_id="imp-1", producer="vault_import")
        get_logger("t").info("m")

        record = json_lines()[0]
        assert record["import_id"] == "imp-1"
        assert record["producer"] == "vault_import"
        assert "phase" not in record

    def test_set_ignores_none_and_unknown(self):
        LogContext.set(import_id="a")
        LogContext.set(import_id=None, batch="ignored")
        assert LogContext.get_all() == {"import_id": "a"}

    def test_clear(self):
        LogContext.set(import_id="a", phase="persons", person_id="p-1", producer="x")
        assert set(LogContext.get_all()) == set(LogContext.FIELDS)
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_nested_bind_restores_each_level(self):
        with LogContext.bind(import_id="imp-1", phase="init"):
            with LogContext.bind(phase="persons", person_id="p-1"):
                assert LogContext.get_all() == {
                    "import_id": "imp-1",
                    "phase": "persons",
                    "person_id": "p-1",
                }
            assert LogContext.get_all() == {"import_id": "imp-1", "phase": "init"}
        assert LogContext.get_all() == {}

    def test_bind_restores_after_exception(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(phase="contracts"):
                raise RuntimeError("phase failed")
        assert LogContext.get_all() == {}

    def test_bind_skips_unknown_fields(self):
        with LogContext.bind(import_id="a", batch="b"):
            assert LogContext.get_all() == {"import_id": "a"}


class TestConfigureLogging:
    def test_second_call_keeps_first_handler(self):
        first = logging.StreamHandler(StringIO())
        second = logging.StreamHandler(StringIO())
        configure_logging(handler=first)
        configure_logging(handler=second)

        handlers = logging.getLogger("vault_kernel").handlers
        assert first in handlers
        assert second not in handlers
        assert isinstance(first.formatter, StructuredFormatter)

    def test_does_not_propagate_to_root(self):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        assert logging.getLogger("vault_kernel").propagate is False

    def test_reset_allows_reconfiguration(self, json_lines):
        reset_logging()
        json_lines.configure(level=logging.DEBUG)
        get_logger("t").debug("after_reset")
        assert json_lines()[-1]["message"] == "after_reset"

    def test_child_logger_uses_root_handler(self, json_lines):
        get_logger("services.primary_manager").info("refreshed")
        assert json_lines()[0]["logger"] == "vault_kernel.services.primary_manager"

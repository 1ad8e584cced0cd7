"""
Pytest fixtures for the vault import test suite.

Provides:
- Structured logging configured once per session, with a capture fixture
- A file-backed SQLite engine per test (tmp_path), schema initialized
- A deterministic clock (2024-01-01 12:00 UTC)
- A small but complete vault document and a helper that writes it to disk

The sample document, as imported under department_based:

    Departments (source S1):  D2 Board (manager p-3)
                              D1 Engineering, parent D2 (manager p-2)
    p-1 Ada    contract c-1  dept D1, contract manager p-2
    p-2 Grace  contract c-2  dept D2, contract manager = all-zero GUID
    p-3 Linus  contract c-3  dept D9 (only known from the contract),
                             contract manager p-1
"""

import copy
import json
import logging
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from vault_ingestion.adapters import VaultJsonAdapter
from vault_ingestion.services import VaultImportService
from vault_kernel.db.engine import init_engine_from_url, reset_engine
from vault_kernel.db.schema import SchemaInitializer
from vault_kernel.domain.clock import DeterministicClock
from vault_kernel.domain.values import EMPTY_GUID
from vault_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture vault_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, import_service):
            import_service.import_document(document)
            logs = captured_logs()
            assert any(r["message"] == "vault_import_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("vault_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'vault.db'}"


@pytest.fixture
def engine(db_url):
    """Fresh database with every table created and the default cascade seeded."""
    eng = init_engine_from_url(db_url)
    SchemaInitializer(eng).initialize()
    yield eng
    reset_engine()


@pytest.fixture
def session(engine):
    with Session(engine, expire_on_commit=False) as s:
        yield s
        s.rollback()


@pytest.fixture
def deterministic_clock():
    return DeterministicClock()


@pytest.fixture
def import_service(engine, deterministic_clock):
    return VaultImportService(engine, deterministic_clock)


# =============================================================================
# Vault documents
# =============================================================================

_S1 = {"SystemId": "S1", "DisplayName": "HR System", "IdentificationKey": "hr"}

_SAMPLE_VAULT = {
    "Persons": [
        {
            "PersonId": "p-1",
            "DisplayName": "Ada Lovelace",
            "ExternalId": "1001",
            "UserName": "ada",
            "Name": {"GivenName": "Ada", "FamilyName": "Lovelace"},
            "Details": {"Gender": "F", "BirthDate": "1990-12-10T00:00:00"},
            "Status": {"Blocked": False},
            "Contact": {
                "Business": {"Email": "ada@example.com", "Phone": {"Mobile": "0600000001"}},
            },
            "PrimaryManager": {"PersonId": "p-2", "DisplayName": "Grace Hopper"},
            "Source": _S1,
            "Custom": {"employeeNumber": "E-1"},
            "Contracts": [
                {
                    "ExternalId": "c-1",
                    "StartDate": "2020-01-01T00:00:00",
                    "EndDate": None,
                    "Type": {"Code": "PERM", "Description": "Permanent"},
                    "Details": {"Fte": 1.0, "HoursPerWeek": 40, "Sequence": 1},
                    "Location": {"ExternalId": "L1", "Code": "AMS", "Name": "Amsterdam"},
                    "Title": {"Name": "Engineer"},
                    "Department": {"ExternalId": "D1", "DisplayName": "Engineering"},
                    "Manager": {"PersonId": "p-2"},
                    "Source": {"SystemId": "S1"},
                    "Custom": {"Grade": "7"},
                }
            ],
        },
        {
            "PersonId": "p-2",
            "DisplayName": "Grace Hopper",
            "ExternalId": "1002",
            "Source": _S1,
            "Contracts": [
                {
                    "ExternalId": "c-2",
                    "StartDate": "2019-05-01",
                    "Details": {"Fte": 0.8},
                    "Title": {"Name": "Engineer"},
                    "Department": {"ExternalId": "D2", "DisplayName": "Board"},
                    "Manager": {"PersonId": EMPTY_GUID},
                    "Source": {"SystemId": "S1"},
                }
            ],
        },
        {
            "PersonId": "p-3",
            "DisplayName": "Linus Torvalds",
            "ExternalId": "1003",
            "PrimaryManager": {"PersonId": "p-1"},
            "Source": _S1,
            "Contracts": [
                {
                    "ExternalId": "c-3",
                    "StartDate": "2021-03-01",
                    "Details": {"Fte": 1.0},
                    "Department": {"ExternalId": "D9", "DisplayName": "Research"},
                    "Manager": {"PersonId": "p-1"},
                    "Source": {"SystemId": "S1"},
                }
            ],
        },
    ],
    "Departments": [
        {
            "ExternalId": "D2",
            "DisplayName": "Board",
            "Manager": {"PersonId": "p-3"},
            "Source": _S1,
        },
        {
            "ExternalId": "D1",
            "DisplayName": "Engineering",
            "Code": "ENG",
            "ParentExternalId": "D2",
            "Manager": {"PersonId": "p-2"},
            "Source": _S1,
        },
    ],
}


@pytest.fixture
def vault_data():
    """A fresh, mutable copy of the sample vault document (JSON shape)."""
    return copy.deepcopy(_SAMPLE_VAULT)


@pytest.fixture
def write_vault(tmp_path):
    """Write a JSON-shaped dict (or raw text) to a vault file and return its path."""

    def _write(data, name: str = "vault.json"):
        path = tmp_path / name
        text = data if isinstance(data, str) else json.dumps(data)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def parse_vault():
    """Parse a JSON-shaped dict into a VaultDocument."""
    adapter = VaultJsonAdapter()

    def _parse(data):
        return adapter.parse_text(json.dumps(data))

    return _parse

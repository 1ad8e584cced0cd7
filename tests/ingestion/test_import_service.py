"""Tests for VaultImportService against a file-backed SQLite database."""

import pytest
from sqlalchemy import func, select, text, update

from vault_ingestion.domain.types import ImportPhase
from vault_ingestion.services import ConsistencyValidator, VaultImportService
from vault_kernel.domain.values import EMPTY_GUID, PrimaryManagerLogic
from vault_kernel.models import (
    Contact,
    Contract,
    CustomFieldSchema,
    Department,
    Location,
    Person,
    SourceSystem,
    Title,
)
from vault_kernel.services import PreferenceService


def _count(session, model) -> int:
    return session.scalar(select(func.count()).select_from(model))


def _managers(session) -> dict:
    return dict(session.execute(select(Person.person_id, Person.primary_manager_person_id)).all())


class TestFullImport:
    def test_counts(self, import_service, vault_data, write_vault):
        result = import_service.import_file(write_vault(vault_data))

        assert result.success, result.error_message
        assert result.phase == ImportPhase.DONE
        assert result.source_systems_imported == 1
        assert result.persons_imported == 3
        assert result.contacts_imported == 1
        assert result.contracts_imported == 3
        assert result.departments_imported == 2
        assert result.departments_auto_created == 1
        assert result.lookups_imported["location"] == 1
        assert result.lookups_imported["title"] == 1
        assert result.lookups_imported["team"] == 0
        assert result.empty_manager_guids_replaced == 1
        assert result.total_orphaned_references == 0
        assert result.primary_managers_updated == 3

    def test_rows_written(self, import_service, vault_data, write_vault, session):
        import_service.import_file(write_vault(vault_data))

        system = session.get(SourceSystem, "S1")
        assert (system.display_name, system.identification_key) == ("HR System", "hr")
        assert session.get(Location, ("L1", "S1")).name == "Amsterdam"

        eng = session.get(Department, ("D1", "S1"))
        assert eng.parent_external_id == "D2"
        assert eng.manager_person_id == "p-2"
        research = session.get(Department, ("D9", "S1"))
        assert research.display_name == "Research"
        assert research.parent_external_id is None

        contract = session.scalars(select(Contract).where(Contract.external_id == "c-1")).one()
        assert contract.person_id == "p-1"
        assert contract.start_date == "2020-01-01"
        assert (contract.department_external_id, contract.department_source) == ("D1", "S1")

        c2 = session.scalars(select(Contract).where(Contract.external_id == "c-2")).one()
        assert c2.manager_person_external_id is None

    def test_name_only_references_share_one_id(self, import_service, vault_data, write_vault, session):
        import_service.import_file(write_vault(vault_data))

        title_ids = set(session.scalars(select(Contract.title_external_id)).all()) - {None}
        assert len(title_ids) == 1
        title = session.get(Title, (title_ids.pop(), "S1"))
        assert title.name == "Engineer"

    def test_department_based_managers(self, import_service, vault_data, write_vault, session):
        import_service.import_file(write_vault(vault_data))

        assert _managers(session) == {"p-1": "p-2", "p-2": "p-3", "p-3": None}
        ada = session.get(Person, "p-1")
        assert ada.primary_manager_source == "department"
        assert ada.primary_manager_updated_at is not None
        assert (
            PreferenceService(session).get_primary_manager_logic()
            == PrimaryManagerLogic.DEPARTMENT_BASED
        )

    def test_contract_based_managers(self, import_service, vault_data, write_vault, session):
        import_service.import_file(write_vault(vault_data), PrimaryManagerLogic.CONTRACT_BASED)

        assert _managers(session) == {"p-1": "p-2", "p-2": None, "p-3": "p-1"}
        assert session.get(Person, "p-3").primary_manager_source == "contract"

    def test_from_import_keeps_document_managers_and_detects(
        self, import_service, vault_data, write_vault, session
    ):
        result = import_service.import_file(
            write_vault(vault_data), PrimaryManagerLogic.FROM_IMPORT
        )

        assert result.success
        assert result.primary_managers_updated == 0
        assert _managers(session) == {"p-1": "p-2", "p-2": None, "p-3": "p-1"}
        assert session.get(Person, "p-1").primary_manager_source == "import"
        # p-1 matches both policies, p-3 only contract_based.
        assert result.detected_primary_manager_logic == PrimaryManagerLogic.CONTRACT_BASED
        assert (
            PreferenceService(session).get_primary_manager_logic()
            == PrimaryManagerLogic.CONTRACT_BASED
        )

    def test_custom_fields(self, import_service, vault_data, write_vault, session):
        result = import_service.import_file(write_vault(vault_data))

        assert result.custom_field_persons_imported == 1
        assert result.custom_field_contracts_imported == 1
        assert result.custom_field_schemas_imported == 2
        assert result.custom_field_person_values == 1
        assert result.custom_field_contract_values == 1

        schema = session.get(CustomFieldSchema, ("persons", "employeeNumber"))
        assert schema.display_name == "Employee Number"
        assert schema.sort_order == 1
        assert session.get(Person, "p-1").custom_fields == {"employeeNumber": "E-1"}
        contract = session.scalars(select(Contract).where(Contract.external_id == "c-1")).one()
        assert contract.custom_fields == {"Grade": "7"}

    def test_progress_reported(self, engine, deterministic_clock, vault_data, write_vault):
        updates = []
        service = VaultImportService(engine, deterministic_clock, progress_batch_size=1)
        service.import_file(write_vault(vault_data), progress=updates.append)

        operations = [u.current_operation for u in updates]
        assert operations[0] == "Reading vault document"
        assert "Importing persons" in operations
        assert (updates[-1].current_operation, updates[-1].processed_items) == (
            "Import completed",
            1,
        )

    def test_logs_carry_import_context(self, import_service, vault_data, write_vault, captured_logs):
        import_service.import_file(write_vault(vault_data))

        logs = captured_logs()
        completed = [r for r in logs if r["message"] == "vault_import_completed"]
        assert len(completed) == 1
        assert completed[0]["producer"] == "vault_import"
        assert completed[0]["persons"] == 3
        phases = {r.get("phase") for r in logs if r["message"] == "import_phase_started"}
        assert {"init", "persons", "contracts", "custom_field_values"} <= phases


class TestIdempotentReimport:
    def test_second_import_adds_nothing(self, import_service, vault_data, write_vault, session):
        path = write_vault(vault_data)
        first = import_service.import_file(path)
        second = import_service.import_file(path)

        assert first.success and second.success
        assert second.persons_imported == 0
        assert second.contracts_imported == 0
        assert second.departments_imported == 0
        assert second.departments_auto_created == 0
        assert second.source_systems_imported == 0
        assert sum(second.lookups_imported.values()) == 0
        assert second.custom_field_schemas_imported == 0
        assert _count(session, Person) == 3
        assert _count(session, Contract) == 3
        assert _count(session, Department) == 3
        assert _count(session, Title) == 1

    def test_custom_values_refreshed(self, import_service, vault_data, write_vault, session):
        import_service.import_file(write_vault(vault_data))
        vault_data["Persons"][0]["Custom"]["employeeNumber"] = "E-99"
        vault_data["Persons"][0]["Custom"]["badge"] = 12
        result = import_service.import_file(write_vault(vault_data, "vault2.json"))

        assert result.custom_field_persons_imported == 1
        assert session.get(CustomFieldSchema, ("persons", "badge")).sort_order == 2
        assert session.get(Person, "p-1").custom_fields == {"employeeNumber": "E-99", "badge": "12"}


class TestSkipsAndRepairs:
    def test_duplicates_and_missing_ids(self, import_service, vault_data, write_vault, session):
        vault_data["Persons"].append(dict(vault_data["Persons"][0], DisplayName="Ada again"))
        vault_data["Persons"].append({"PersonId": "", "Contracts": [{"ExternalId": "c-x"}]})
        result = import_service.import_file(write_vault(vault_data))

        assert result.success
        assert result.duplicate_persons_skipped == 1
        assert result.persons_without_id_skipped == 1
        assert result.duplicate_contracts_skipped == 1
        assert result.duplicate_contacts_skipped == 1
        assert session.get(Person, "p-1").display_name == "Ada Lovelace"
        assert _count(session, Contract) == 3

    def test_dangling_department_references_repaired(
        self, import_service, vault_data, write_vault, session
    ):
        vault_data["Departments"].append(
            {
                "ExternalId": "D5",
                "DisplayName": "Lost",
                "ParentExternalId": "nowhere",
                "Manager": {"PersonId": "ghost"},
                "Source": {"SystemId": "S1"},
            }
        )
        vault_data["Departments"].append(
            {
                "ExternalId": "D6",
                "DisplayName": "Vacant",
                "Manager": {"PersonId": EMPTY_GUID},
                "Source": {"SystemId": "S1"},
            }
        )
        result = import_service.import_file(write_vault(vault_data))

        assert result.invalid_department_parents == 1
        assert result.department_parents_repaired == 1
        assert result.department_managers_repaired == 1
        lost = session.get(Department, ("D5", "S1"))
        assert lost.parent_external_id is None
        assert lost.manager_person_id is None
        assert session.get(Department, ("D6", "S1")).manager_person_id is None

    def test_unknown_document_manager_cleared(
        self, import_service, vault_data, write_vault, session
    ):
        vault_data["Persons"][1]["PrimaryManager"] = {"PersonId": "ghost"}
        result = import_service.import_file(
            write_vault(vault_data), PrimaryManagerLogic.FROM_IMPORT
        )

        assert result.person_managers_repaired == 1
        grace = session.get(Person, "p-2")
        assert grace.primary_manager_person_id is None
        assert grace.primary_manager_source is None

    def test_orphaned_reference_reported_not_repaired(
        self, import_service, vault_data, write_vault, session
    ):
        # No source on the contract: the location cannot be identified.
        contract = vault_data["Persons"][2]["Contracts"][0]
        del contract["Source"]
        contract["Location"] = {"ExternalId": "L7"}
        result = import_service.import_file(write_vault(vault_data))

        assert result.success
        assert result.orphaned_references["location"] == 1
        assert result.total_orphaned_references == 1
        row = session.scalars(select(Contract).where(Contract.external_id == "c-3")).one()
        assert row.location_external_id == "L7"
        assert row.location_source is None

    def test_reference_under_other_source_is_orphaned(
        self, import_service, vault_data, write_vault, session
    ):
        assert import_service.import_file(write_vault(vault_data)).success
        session.execute(
            update(Contract).where(Contract.external_id == "c-1").values(location_source="S2")
        )
        session.flush()

        validator = ConsistencyValidator(session)
        assert validator.count_orphaned_references()["location"] == 1
        assert validator.orphaned_keys("location") == [("L1", "S2")]

        row = session.scalars(select(Contract).where(Contract.external_id == "c-1")).one()
        assert (row.location_external_id, row.location_source) == ("L1", "S2")
        assert session.get(Location, ("L1", "S1")) is not None

    def test_orphan_known_under_other_source_is_logged(
        self, import_service, vault_data, write_vault, captured_logs
    ):
        # c-1 brings L1 under S1; c-3 points at L1 without a source.
        contract = vault_data["Persons"][2]["Contracts"][0]
        del contract["Source"]
        contract["Location"] = {"ExternalId": "L1"}
        result = import_service.import_file(write_vault(vault_data))

        assert result.success
        assert result.orphaned_references["location"] == 1
        mismatches = [r for r in captured_logs() if r["message"] == "reference_source_mismatch"]
        assert len(mismatches) == 1
        assert mismatches[0]["category"] == "location"
        assert mismatches[0]["known_sources"] == {"L1": "S1"}

    def test_contract_departments_only(self, import_service, vault_data, write_vault, session):
        del vault_data["Departments"]
        result = import_service.import_file(write_vault(vault_data))

        assert result.success
        assert result.departments_imported == 3
        assert result.departments_auto_created == 0
        assert {d.external_id for d in session.scalars(select(Department))} == {"D1", "D2", "D9"}


class TestFailures:
    def test_department_cycle_writes_nothing(
        self, import_service, vault_data, write_vault, session
    ):
        vault_data["Departments"][0]["ParentExternalId"] = "D1"
        result = import_service.import_file(write_vault(vault_data))

        assert not result.success
        assert result.phase == ImportPhase.FAILED
        assert result.failed_phase == ImportPhase.INIT
        assert result.error_code == "DEPARTMENT_CYCLE"
        assert "Circular dependency detected in department hierarchy" in result.error_message
        assert _count(session, Person) == 0
        assert _count(session, Department) == 0
        assert _count(session, SourceSystem) == 0

    def test_invalid_file(self, import_service, write_vault):
        result = import_service.import_file(write_vault('{"Departments": []}'))

        assert not result.success
        assert result.error_code == "INVALID_DOCUMENT"
        assert "no persons found" in result.error_message

    def test_phase_failure_keeps_earlier_phases_and_restores_foreign_keys(
        self, import_service, vault_data, write_vault, session, engine, monkeypatch, captured_logs
    ):
        def _boom(self):
            raise RuntimeError("validation exploded")

        monkeypatch.setattr(ConsistencyValidator, "count_orphaned_references", _boom)
        result = import_service.import_file(write_vault(vault_data))

        assert not result.success
        assert result.failed_phase == ImportPhase.REFERENCE_VALIDATION
        assert result.error_message == "validation exploded"
        assert result.persons_imported == 3
        assert _count(session, Person) == 3
        assert _count(session, Contract) == 3
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        failed = [r for r in captured_logs() if r["message"] == "vault_import_failed"]
        assert failed[0]["failed_phase"] == "reference_validation"

    def test_missing_table_recreated(self, import_service, vault_data, write_vault, engine):
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE titles"))
        result = import_service.import_file(write_vault(vault_data))

        assert result.success
        assert result.lookups_imported["title"] == 1


class TestCompanyOnly:
    def test_organization_without_persons(self, import_service, vault_data, write_vault, session):
        result = import_service.import_company_only(write_vault(vault_data))

        assert result.success
        assert result.source_systems_imported == 1
        assert result.departments_imported == 2
        assert result.lookups_imported["location"] == 1
        assert result.persons_imported == 0
        assert _count(session, Person) == 0
        assert _count(session, Contract) == 0
        assert _count(session, Contact) == 0
        # Managers cannot resolve without persons.
        assert result.department_managers_repaired == 2
        assert session.get(Department, ("D1", "S1")).manager_person_id is None

    def test_import_company_document(self, import_service, vault_data, parse_vault):
        result = import_service.import_company_document(parse_vault(vault_data))
        assert result.success
        assert result.departments_imported == 2


@pytest.mark.parametrize(
    "logic",
    [PrimaryManagerLogic.CONTRACT_BASED, PrimaryManagerLogic.DEPARTMENT_BASED],
)
def test_import_document_matches_import_file(
    logic, import_service, vault_data, parse_vault, session
):
    result = import_service.import_document(parse_vault(vault_data), logic)
    assert result.success
    assert result.persons_imported == 3
    assert PreferenceService(session).get_primary_manager_logic() == logic

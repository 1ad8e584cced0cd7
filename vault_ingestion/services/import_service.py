"""
VaultImportService -- phased import of a vault document into the store.

Phases run strictly in order; each phase that writes runs in one
transaction on a dedicated connection with foreign keys switched off:

    INIT                      parse the document, collect references and
                              order departments (no DB access, so a
                              malformed file or a department cycle aborts
                              before anything is written)
    SCHEMA_VERIFY             re-run schema initialization if a table is missing
    SOURCE_SYSTEMS            INSERT OR IGNORE every source system
    LOOKUP_TABLES             INSERT OR IGNORE the eight lookup tables
    PERSONS                   first occurrence per person_id; then null
                              primary managers that are not persons
    DEPARTMENTS               parents before children; then repair dangling
                              parents and managers
    ORPHAN_DEPARTMENTS        create departments known only from contracts
    CONTACTS                  one Personal and one Business row per person
    CONTRACTS                 first occurrence per external_id
    REFERENCE_VALIDATION      count source-aware orphaned references
    PRIMARY_MANAGER_COMPUTE   recompute (contract/department policy) or
                              detect the policy of imported managers
    CUSTOM_FIELD_SCHEMAS      register new custom field keys
    CUSTOM_FIELD_VALUES       merge custom values into their rows
    DONE

Any exception moves the run to FAILED: the open phase transaction is rolled
back, foreign keys are switched back on by ``foreign_keys_suspended`` and a
result with ``success=False`` is returned.  Nothing is raised past
``import_file`` / ``import_document``.  Phases committed before the failure
stay committed.

Counters count rows actually written.  Rows that already exist in the store
are left alone (INSERT OR IGNORE), so re-importing the same document adds
nothing.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator
from uuid import uuid4

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vault_ingestion.adapters.base import DocumentAdapter
from vault_ingestion.adapters.json_adapter import VaultJsonAdapter
from vault_ingestion.domain.types import (
    DepartmentRecord,
    ImportPhase,
    ImportProgress,
    ImportResult,
    ImportTally,
    VaultDocument,
)
from vault_ingestion.mappers import (
    ContractMapper,
    PersonMapper,
    blank_to_none,
    contact_rows,
    orphan_department_row,
)
from vault_ingestion.resolution.collector import CollectedReferences, ReferenceDataCollector
from vault_ingestion.resolution.department_sorter import sort_departments
from vault_ingestion.services.consistency_validator import ConsistencyValidator, source_mismatches
from vault_ingestion.services.custom_field_service import (
    CONTRACTS,
    PERSONS,
    CustomFieldService,
    contract_custom_values,
    infer_custom_field_keys,
    person_custom_values,
)
from vault_kernel.db.engine import foreign_keys_suspended
from vault_kernel.db.schema import SchemaInitializer
from vault_kernel.domain.clock import Clock, SystemClock
from vault_kernel.domain.values import PrimaryManagerLogic
from vault_kernel.exceptions import VaultError
from vault_kernel.logging_config import LogContext, get_logger
from vault_kernel.models.contract import Contract
from vault_kernel.models.department import Department
from vault_kernel.models.lookups import LOOKUP_MODELS, SourceSystem
from vault_kernel.models.person import Contact, Person
from vault_kernel.services.preference_service import PreferenceService
from vault_kernel.services.primary_manager_service import (
    DEFAULT_DETECTION_SAMPLE_SIZE,
    PrimaryManagerDetector,
    PrimaryManagerService,
)

logger = get_logger("ingestion.import_service")

ProgressCallback = Callable[[ImportProgress], None]

DEFAULT_PROGRESS_BATCH_SIZE = 100


def _insert_ignore(session: Session, table, row: dict) -> int:
    """INSERT OR IGNORE one row; 1 if it was written, 0 if it already existed."""
    result = session.execute(sqlite_insert(table).values(**row).on_conflict_do_nothing())
    return result.rowcount or 0


class _ImportRun:
    """State of one import: document, collected references and counters."""

    def __init__(
        self,
        document: VaultDocument,
        refs: CollectedReferences,
        departments: list[DepartmentRecord],
        logic: PrimaryManagerLogic,
    ):
        self.document = document
        self.refs = refs
        self.departments = departments
        self.logic = logic
        self.tally = ImportTally(invalid_department_parents=refs.invalid_department_parents)


class VaultImportService:
    """Imports vault documents. Owns its transactions; never raises."""

    def __init__(
        self,
        engine: Engine,
        clock: Clock | None = None,
        *,
        adapter: DocumentAdapter | None = None,
        schema_initializer: SchemaInitializer | None = None,
        collector: ReferenceDataCollector | None = None,
        progress_batch_size: int = DEFAULT_PROGRESS_BATCH_SIZE,
        detection_sample_size: int = DEFAULT_DETECTION_SAMPLE_SIZE,
    ):
        self._engine = engine
        self._clock = clock or SystemClock()
        self._adapter = adapter or VaultJsonAdapter()
        self._schema = schema_initializer or SchemaInitializer(engine)
        self._collector = collector or ReferenceDataCollector()
        self._batch_size = max(1, progress_batch_size)
        self._sample_size = detection_sample_size
        self._progress: ProgressCallback | None = None
        self.phase = ImportPhase.INIT

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def import_file(
        self,
        path: str | Path,
        logic: PrimaryManagerLogic = PrimaryManagerLogic.DEPARTMENT_BASED,
        progress: ProgressCallback | None = None,
    ) -> ImportResult:
        return self._execute(lambda: self._adapter.read(Path(path)), logic, progress)

    def import_document(
        self,
        document: VaultDocument,
        logic: PrimaryManagerLogic = PrimaryManagerLogic.DEPARTMENT_BASED,
        progress: ProgressCallback | None = None,
    ) -> ImportResult:
        return self._execute(lambda: document, logic, progress)

    def import_company_only(
        self, path: str | Path, progress: ProgressCallback | None = None
    ) -> ImportResult:
        return self._execute(
            lambda: self._adapter.read(Path(path)),
            PrimaryManagerLogic.DEPARTMENT_BASED,
            progress,
            company_only=True,
        )

    def import_company_document(
        self, document: VaultDocument, progress: ProgressCallback | None = None
    ) -> ImportResult:
        """Source systems, lookups and departments only; no persons."""
        return self._execute(
            lambda: document, PrimaryManagerLogic.DEPARTMENT_BASED, progress, company_only=True
        )

    # -------------------------------------------------------------------------
    # Boundary
    # -------------------------------------------------------------------------

    def _execute(
        self,
        load: Callable[[], VaultDocument],
        logic: PrimaryManagerLogic,
        progress: ProgressCallback | None,
        company_only: bool = False,
    ) -> ImportResult:
        import_id = str(uuid4())
        started = time.perf_counter()
        self._progress = progress
        self.phase = ImportPhase.INIT
        run: _ImportRun | None = None

        with LogContext.bind(import_id=import_id, producer="vault_import"):
            logger.info(
                "vault_import_started",
                extra={"logic": logic.value, "company_only": company_only},
            )
            try:
                with self._phase(ImportPhase.INIT):
                    run = self._prepare(load(), logic)
                with self._phase(ImportPhase.SCHEMA_VERIFY):
                    self._verify_schema()

                with foreign_keys_suspended(self._engine) as conn:
                    if company_only:
                        self._run_company_phases(conn, run)
                    else:
                        self._run_phases(conn, run)

                self.phase = ImportPhase.DONE
                result = run.tally.freeze(
                    success=True,
                    phase=ImportPhase.DONE,
                    duration_seconds=time.perf_counter() - started,
                )
                self._report("Import completed", 1, 1)
                logger.info(
                    "vault_import_completed",
                    extra={
                        "duration_ms": round(result.duration_seconds * 1000, 2),
                        "persons": result.persons_imported,
                        "contracts": result.contracts_imported,
                        "departments": result.departments_imported,
                        "departments_auto_created": result.departments_auto_created,
                        "orphaned_references": result.total_orphaned_references,
                    },
                )
                return result
            except Exception as exc:
                failed_phase = self.phase
                self.phase = ImportPhase.FAILED
                tally = run.tally if run is not None else ImportTally()
                logger.error(
                    "vault_import_failed",
                    extra={
                        "failed_phase": failed_phase.value,
                        "error_code": getattr(exc, "code", None),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )
                return tally.freeze(
                    success=False,
                    phase=ImportPhase.FAILED,
                    failed_phase=failed_phase,
                    duration_seconds=time.perf_counter() - started,
                    error_message=str(exc),
                    error_code=getattr(exc, "code", None),
                )
            finally:
                self._progress = None

    @contextmanager
    def _phase(self, phase: ImportPhase) -> Iterator[None]:
        self.phase = phase
        with LogContext.bind(phase=phase.value):
            logger.info("import_phase_started")
            yield
            logger.info("import_phase_completed")

    def _run_phase(
        self, conn: Connection, phase: ImportPhase, work: Callable[[Session], None]
    ) -> None:
        """Run ``work`` in one transaction on ``conn``; roll back if it raises."""
        with self._phase(phase):
            with Session(bind=conn) as session:
                try:
                    work(session)
                    session.commit()
                except Exception:
                    session.rollback()
                    raise

    def _report(self, operation: str, total: int, processed: int) -> None:
        if self._progress is not None:
            self._progress(
                ImportProgress(
                    current_operation=operation, total_items=total, processed_items=processed
                )
            )

    def _tick(self, operation: str, total: int, processed: int) -> None:
        if processed % self._batch_size == 0 or processed == total:
            self._report(operation, total, processed)

    # -------------------------------------------------------------------------
    # Preparation
    # -------------------------------------------------------------------------

    def _prepare(self, document: VaultDocument, logic: PrimaryManagerLogic) -> _ImportRun:
        self._report("Reading vault document", len(document.persons), 0)
        refs = self._collector.collect(document)
        departments = sort_departments(refs.departments)
        return _ImportRun(document, refs, departments, logic)

    def _verify_schema(self) -> None:
        missing = self._schema.missing_tables()
        if missing:
            logger.warning("schema_tables_missing", extra={"missing_tables": missing})
            self._schema.initialize()

    # -------------------------------------------------------------------------
    # Phase sequences
    # -------------------------------------------------------------------------

    def _run_phases(self, conn: Connection, run: _ImportRun) -> None:
        self._run_phase(conn, ImportPhase.SOURCE_SYSTEMS, lambda s: self._source_systems(s, run))
        self._run_phase(conn, ImportPhase.LOOKUP_TABLES, lambda s: self._lookup_tables(s, run))
        self._run_phase(conn, ImportPhase.PERSONS, lambda s: self._persons(s, run))
        self._run_phase(conn, ImportPhase.DEPARTMENTS, lambda s: self._departments(s, run))
        self._run_phase(
            conn, ImportPhase.ORPHAN_DEPARTMENTS, lambda s: self._orphan_departments(s, run)
        )
        self._run_phase(conn, ImportPhase.CONTACTS, lambda s: self._contacts(s, run))
        self._run_phase(conn, ImportPhase.CONTRACTS, lambda s: self._contracts(s, run))
        self._run_phase(
            conn, ImportPhase.REFERENCE_VALIDATION, lambda s: self._reference_validation(s, run)
        )
        self._primary_managers(conn, run)
        self._run_phase(
            conn, ImportPhase.CUSTOM_FIELD_SCHEMAS, lambda s: self._custom_field_schemas(s, run)
        )
        self._run_phase(
            conn, ImportPhase.CUSTOM_FIELD_VALUES, lambda s: self._custom_field_values(s, run)
        )

    def _run_company_phases(self, conn: Connection, run: _ImportRun) -> None:
        self._run_phase(conn, ImportPhase.SOURCE_SYSTEMS, lambda s: self._source_systems(s, run))
        self._run_phase(conn, ImportPhase.LOOKUP_TABLES, lambda s: self._lookup_tables(s, run))
        self._run_phase(
            conn,
            ImportPhase.DEPARTMENTS,
            lambda s: self._departments(s, run, clear_managers=True),
        )

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def _source_systems(self, session: Session, run: _ImportRun) -> None:
        table = SourceSystem.__table__
        systems = list(run.refs.source_systems.values())
        self._report("Importing source systems", len(systems), 0)
        for system in systems:
            run.tally.source_systems += _insert_ignore(
                session,
                table,
                {
                    "system_id": system.system_id,
                    "display_name": system.display_name,
                    "identification_key": system.identification_key,
                },
            )

    def _lookup_tables(self, session: Session, run: _ImportRun) -> None:
        total = run.refs.lookup_count
        processed = 0
        self._report("Importing lookup tables", total, 0)
        for category, model in LOOKUP_MODELS.items():
            table = model.__table__
            for entity in run.refs.lookups[category]:
                run.tally.lookups[category] += _insert_ignore(
                    session,
                    table,
                    {
                        "external_id": entity.external_id,
                        "source": entity.source,
                        "code": entity.code,
                        "name": entity.name,
                    },
                )
                processed += 1
                self._tick("Importing lookup tables", total, processed)

    def _persons(self, session: Session, run: _ImportRun) -> None:
        table = Person.__table__
        mapper = PersonMapper(self._clock)
        persons = run.document.persons
        seen: set[str] = set()
        self._report("Importing persons", len(persons), 0)

        for index, person in enumerate(persons, start=1):
            person_id = blank_to_none(person.person_id)
            if person_id is None:
                run.tally.persons_without_id_skipped += 1
                logger.warning("person_skipped", extra={"reason": "missing_person_id"})
            elif person_id in seen:
                run.tally.duplicate_persons_skipped += 1
                logger.info(
                    "person_skipped", extra={"person_id": person_id, "reason": "duplicate"}
                )
            else:
                seen.add(person_id)
                run.tally.persons += _insert_ignore(
                    session, table, mapper.to_row(person, run.logic)
                )
            self._tick("Importing persons", len(persons), index)

        run.tally.person_managers_repaired = ConsistencyValidator(
            session
        ).repair_person_primary_managers()

    def _departments(
        self, session: Session, run: _ImportRun, clear_managers: bool = False
    ) -> None:
        table = Department.__table__
        total = len(run.departments)
        self._report("Importing departments", total, 0)
        for index, dept in enumerate(run.departments, start=1):
            run.tally.departments += _insert_ignore(
                session,
                table,
                {
                    "external_id": dept.external_id,
                    "source": dept.source,
                    "display_name": dept.display_name,
                    "code": dept.code,
                    "parent_external_id": dept.parent_external_id,
                    "manager_person_id": dept.manager_person_id,
                },
            )
            self._tick("Importing departments", total, index)

        validator = ConsistencyValidator(session)
        run.tally.department_parents_repaired = validator.repair_department_parents()
        if clear_managers:
            run.tally.department_managers_repaired = validator.clear_department_managers()
        else:
            run.tally.department_managers_repaired = validator.repair_department_managers()

    def _orphan_departments(self, session: Session, run: _ImportRun) -> None:
        table = Department.__table__
        created = []
        for (external_id, source), display_name in run.refs.contract_departments.items():
            row = orphan_department_row(external_id, source, display_name)
            if _insert_ignore(session, table, row):
                created.append(external_id)
        run.tally.departments_auto_created = len(created)
        if created:
            logger.info(
                "orphan_departments_created",
                extra={"count": len(created), "external_ids": created[:20]},
            )

    def _contacts(self, session: Session, run: _ImportRun) -> None:
        table = Contact.__table__
        persons = run.document.persons
        seen: set[tuple[str, str]] = set()
        self._report("Importing contacts", len(persons), 0)
        for index, person in enumerate(persons, start=1):
            if blank_to_none(person.person_id) is not None:
                for row in contact_rows(person):
                    key = (row["person_id"], row["type"])
                    if key in seen:
                        run.tally.duplicate_contacts_skipped += 1
                        continue
                    seen.add(key)
                    run.tally.contacts += _insert_ignore(session, table, row)
            self._tick("Importing contacts", len(persons), index)

    def _contracts(self, session: Session, run: _ImportRun) -> None:
        table = Contract.__table__
        mapper = ContractMapper(self._collector.resolver, run.refs.seen)
        contracts = list(run.document.iter_contracts())
        seen: set[str] = set()
        self._report("Importing contracts", len(contracts), 0)

        for index, (person, contract) in enumerate(contracts, start=1):
            external_id = blank_to_none(contract.external_id)
            if blank_to_none(person.person_id) is None:
                logger.debug(
                    "contract_skipped",
                    extra={"external_id": external_id, "reason": "missing_person_id"},
                )
            elif external_id is not None and external_id in seen:
                run.tally.duplicate_contracts_skipped += 1
                logger.info(
                    "contract_skipped",
                    extra={"external_id": external_id, "reason": "duplicate"},
                )
            else:
                if external_id is not None:
                    seen.add(external_id)
                row = mapper.to_row(person, contract)
                run.tally.contracts += _insert_ignore(session, table, row)
            self._tick("Importing contracts", len(contracts), index)

        run.tally.empty_manager_guids_replaced = mapper.empty_manager_guids_replaced

    def _reference_validation(self, session: Session, run: _ImportRun) -> None:
        validator = ConsistencyValidator(session)
        run.tally.orphaned_references = validator.count_orphaned_references()
        for category, count in run.tally.orphaned_references.items():
            if not count:
                continue
            mismatched = source_mismatches(
                validator.orphaned_keys(category), run.refs.source_map[category]
            )
            if mismatched:
                logger.warning(
                    "reference_source_mismatch",
                    extra={"category": category, "known_sources": mismatched},
                )

    def _primary_managers(self, conn: Connection, run: _ImportRun) -> None:
        if run.logic != PrimaryManagerLogic.FROM_IMPORT:
            self._run_phase(
                conn,
                ImportPhase.PRIMARY_MANAGER_COMPUTE,
                lambda s: self._compute_primary_managers(s, run),
            )
            return

        # The imported managers are kept; only record which policy they match.
        try:
            self._run_phase(
                conn,
                ImportPhase.PRIMARY_MANAGER_COMPUTE,
                lambda s: self._detect_primary_manager_policy(s, run),
            )
        except (SQLAlchemyError, VaultError):
            logger.warning("primary_manager_detection_failed", exc_info=True)

    def _compute_primary_managers(self, session: Session, run: _ImportRun) -> None:
        self._report("Calculating primary managers", len(run.document.persons), 0)
        service = PrimaryManagerService(session, self._clock)
        run.tally.primary_managers_updated = service.refresh_all(run.logic)
        run.tally.person_managers_repaired += ConsistencyValidator(
            session
        ).repair_person_primary_managers()
        PreferenceService(session).set_primary_manager_logic(run.logic)

    def _detect_primary_manager_policy(self, session: Session, run: _ImportRun) -> None:
        self._report("Detecting primary manager logic", self._sample_size, 0)
        detector = PrimaryManagerDetector(session, self._clock, sample_size=self._sample_size)
        run.tally.detected_primary_manager_logic = detector.detect_and_store().logic

    def _custom_field_schemas(self, session: Session, run: _ImportRun) -> None:
        keys = infer_custom_field_keys(run.document)
        self._report("Registering custom fields", len(keys[PERSONS]) + len(keys[CONTRACTS]), 0)
        added = CustomFieldService(session).register_schemas(keys)
        run.tally.custom_field_schemas_persons = added.get(PERSONS, 0)
        run.tally.custom_field_schemas_contracts = added.get(CONTRACTS, 0)

    def _custom_field_values(self, session: Session, run: _ImportRun) -> None:
        service = CustomFieldService(session)
        self._report("Importing custom field values", len(run.document.persons), 0)
        run.tally.custom_field_values_persons = service.upsert_person_values(
            person_custom_values(run.document)
        )
        run.tally.custom_field_values_contracts = service.upsert_contract_values(
            contract_custom_values(run.document)
        )

"""
vault_ingestion.domain.types -- Pure frozen dataclasses for the vault import.

ZERO I/O.  The document side mirrors the vault JSON export after key
normalization; the result side is what an import reports back.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping

from vault_kernel.domain.values import PrimaryManagerLogic

# Organizational references that populate a lookup table.  The department
# reference is handled separately because it feeds the department tree.
LOOKUP_CATEGORIES: tuple[str, ...] = (
    "location",
    "employer",
    "cost_center",
    "cost_bearer",
    "team",
    "division",
    "title",
    "organization",
)


# =============================================================================
# Vault document
# =============================================================================


@dataclass(frozen=True)
class VaultSource:
    system_id: str | None = None
    display_name: str | None = None
    identification_key: str | None = None


@dataclass(frozen=True)
class VaultReference:
    """Reference to a lookup entity; any of the fields may be missing."""

    external_id: str | None = None
    code: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class VaultManagerReference:
    person_id: str | None = None
    external_id: str | None = None
    display_name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class VaultDepartment:
    """Department as declared at top level or referenced by a contract."""

    external_id: str | None = None
    display_name: str | None = None
    code: str | None = None
    parent_external_id: str | None = None
    manager: VaultManagerReference | None = None
    source: VaultSource | None = None


@dataclass(frozen=True)
class VaultContactInfo:
    email: str | None = None
    phone_mobile: str | None = None
    phone_fixed: str | None = None
    street: str | None = None
    house_number: str | None = None
    postal_code: str | None = None
    locality: str | None = None
    country: str | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            getattr(self, f.name) is None or not str(getattr(self, f.name)).strip()
            for f in fields(self)
        )


@dataclass(frozen=True)
class VaultContract:
    external_id: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    type_code: str | None = None
    type_description: str | None = None
    fte: float | None = None
    hours_per_week: float | None = None
    percentage: float | None = None
    sequence: int | None = None
    references: Mapping[str, VaultReference] = field(default_factory=dict)
    department: VaultDepartment | None = None
    manager: VaultManagerReference | None = None
    source: VaultSource | None = None
    custom: Mapping[str, Any] = field(default_factory=dict)

    @property
    def source_id(self) -> str | None:
        return self.source.system_id if self.source is not None else None

    def reference(self, category: str) -> VaultReference | None:
        return self.references.get(category)


@dataclass(frozen=True)
class VaultPerson:
    person_id: str = ""
    display_name: str = ""
    external_id: str | None = None
    user_name: str | None = None
    gender: str | None = None
    honorific_prefix: str | None = None
    honorific_suffix: str | None = None
    birth_date: str | None = None
    birth_locality: str | None = None
    marital_status: str | None = None
    initials: str | None = None
    given_name: str | None = None
    nick_name: str | None = None
    family_name: str | None = None
    family_name_prefix: str | None = None
    family_name_partner: str | None = None
    family_name_partner_prefix: str | None = None
    convention: str | None = None
    blocked: bool = False
    status_reason: str | None = None
    excluded: bool = False
    hr_excluded: bool = False
    manual_excluded: bool = False
    primary_manager: VaultManagerReference | None = None
    source: VaultSource | None = None
    personal_contact: VaultContactInfo | None = None
    business_contact: VaultContactInfo | None = None
    custom: Mapping[str, Any] = field(default_factory=dict)
    contracts: tuple[VaultContract, ...] = ()

    @property
    def source_id(self) -> str | None:
        return self.source.system_id if self.source is not None else None


@dataclass(frozen=True)
class VaultDocument:
    """Root of a vault export."""

    persons: tuple[VaultPerson, ...] = ()
    departments: tuple[VaultDepartment, ...] = ()

    def iter_contracts(self):
        """Every contract in document order, paired with its person."""
        for person in self.persons:
            for contract in person.contracts:
                yield person, contract


@dataclass(frozen=True)
class DocumentSummary:
    """Quick snapshot of a vault file without importing it."""

    person_count: int
    contract_count: int
    department_count: int
    source_systems: tuple[str, ...]


# =============================================================================
# Collected reference data
# =============================================================================


@dataclass(frozen=True)
class LookupEntity:
    """One row for a lookup table."""

    category: str
    external_id: str
    source: str
    code: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class DepartmentRecord:
    """Department row ready for insertion; parent is scoped to ``source``."""

    external_id: str
    source: str
    display_name: str
    code: str | None = None
    parent_external_id: str | None = None
    manager_person_id: str | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.external_id, self.source)

    @property
    def parent_key(self) -> tuple[str, str] | None:
        if not self.parent_external_id:
            return None
        return (self.parent_external_id, self.source)


@dataclass(frozen=True)
class SourceSystemRecord:
    system_id: str
    display_name: str
    identification_key: str


# =============================================================================
# Import state machine and result
# =============================================================================


class ImportPhase(str, Enum):
    """Sequential import phases; FAILED is reachable from any of them."""

    INIT = "init"
    SCHEMA_VERIFY = "schema_verify"
    SOURCE_SYSTEMS = "source_systems"
    LOOKUP_TABLES = "lookup_tables"
    PERSONS = "persons"
    DEPARTMENTS = "departments"
    ORPHAN_DEPARTMENTS = "orphan_departments"
    CONTACTS = "contacts"
    CONTRACTS = "contracts"
    REFERENCE_VALIDATION = "reference_validation"
    PRIMARY_MANAGER_COMPUTE = "primary_manager_compute"
    CUSTOM_FIELD_SCHEMAS = "custom_field_schemas"
    CUSTOM_FIELD_VALUES = "custom_field_values"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ImportProgress:
    """Advisory progress update; not part of the result's correctness."""

    current_operation: str
    total_items: int = 0
    processed_items: int = 0


@dataclass
class ImportTally:
    """Mutable counters filled in while phases run."""

    source_systems: int = 0
    persons: int = 0
    departments: int = 0
    departments_auto_created: int = 0
    contacts: int = 0
    contracts: int = 0
    lookups: dict[str, int] = field(default_factory=lambda: {c: 0 for c in LOOKUP_CATEGORIES})
    custom_field_schemas_persons: int = 0
    custom_field_schemas_contracts: int = 0
    custom_field_values_persons: int = 0
    custom_field_values_contracts: int = 0
    empty_manager_guids_replaced: int = 0
    duplicate_persons_skipped: int = 0
    persons_without_id_skipped: int = 0
    duplicate_contacts_skipped: int = 0
    duplicate_contracts_skipped: int = 0
    invalid_department_parents: int = 0
    department_parents_repaired: int = 0
    department_managers_repaired: int = 0
    person_managers_repaired: int = 0
    orphaned_references: dict[str, int] = field(default_factory=dict)
    primary_managers_updated: int = 0
    detected_primary_manager_logic: PrimaryManagerLogic | None = None

    def freeze(
        self,
        *,
        success: bool,
        phase: ImportPhase,
        duration_seconds: float,
        error_message: str | None = None,
        error_code: str | None = None,
        failed_phase: ImportPhase | None = None,
    ) -> "ImportResult":
        return ImportResult(
            success=success,
            phase=phase,
            failed_phase=failed_phase,
            error_message=error_message,
            error_code=error_code,
            duration_seconds=duration_seconds,
            source_systems_imported=self.source_systems,
            persons_imported=self.persons,
            departments_imported=self.departments,
            departments_auto_created=self.departments_auto_created,
            contacts_imported=self.contacts,
            contracts_imported=self.contracts,
            lookups_imported=dict(self.lookups),
            custom_field_persons_imported=self.custom_field_schemas_persons,
            custom_field_contracts_imported=self.custom_field_schemas_contracts,
            custom_field_person_values=self.custom_field_values_persons,
            custom_field_contract_values=self.custom_field_values_contracts,
            empty_manager_guids_replaced=self.empty_manager_guids_replaced,
            duplicate_persons_skipped=self.duplicate_persons_skipped,
            persons_without_id_skipped=self.persons_without_id_skipped,
            duplicate_contacts_skipped=self.duplicate_contacts_skipped,
            duplicate_contracts_skipped=self.duplicate_contracts_skipped,
            invalid_department_parents=self.invalid_department_parents,
            department_parents_repaired=self.department_parents_repaired,
            department_managers_repaired=self.department_managers_repaired,
            person_managers_repaired=self.person_managers_repaired,
            orphaned_references=dict(self.orphaned_references),
            primary_managers_updated=self.primary_managers_updated,
            detected_primary_manager_logic=self.detected_primary_manager_logic,
        )


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one import run. Never raised; always returned."""

    success: bool
    phase: ImportPhase
    failed_phase: ImportPhase | None = None
    duration_seconds: float = 0.0
    error_message: str | None = None
    error_code: str | None = None
    source_systems_imported: int = 0
    persons_imported: int = 0
    departments_imported: int = 0
    departments_auto_created: int = 0
    contacts_imported: int = 0
    contracts_imported: int = 0
    lookups_imported: Mapping[str, int] = field(default_factory=dict)
    custom_field_persons_imported: int = 0
    custom_field_contracts_imported: int = 0
    custom_field_person_values: int = 0
    custom_field_contract_values: int = 0
    empty_manager_guids_replaced: int = 0
    duplicate_persons_skipped: int = 0
    persons_without_id_skipped: int = 0
    duplicate_contacts_skipped: int = 0
    duplicate_contracts_skipped: int = 0
    invalid_department_parents: int = 0
    department_parents_repaired: int = 0
    department_managers_repaired: int = 0
    person_managers_repaired: int = 0
    orphaned_references: Mapping[str, int] = field(default_factory=dict)
    primary_managers_updated: int = 0
    detected_primary_manager_logic: PrimaryManagerLogic | None = None

    @property
    def custom_field_schemas_imported(self) -> int:
        return self.custom_field_persons_imported + self.custom_field_contracts_imported

    @property
    def total_orphaned_references(self) -> int:
        return sum(self.orphaned_references.values())

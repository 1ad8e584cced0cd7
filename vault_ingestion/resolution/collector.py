"""
ReferenceDataCollector -- one pass over the document, no DB access.

Walks persons and their contracts in document order and gathers everything
the import inserts before persons and contracts:

    source_systems        every Source seen on persons, contracts and departments
    lookups               per category, deduplicated on (external_id, source);
                          the first occurrence wins
    source_map            per category, external_id -> first source seen;
                          reference validation uses it to name the source
                          an orphaned reference is known under
    seen                  per category, the "<source>|<Name>" -> generated id
                          maps; the contract mapper reuses them read-only
    departments           the top-level Departments list, or the contract
                          department references when that list is empty
    contract_departments  (external_id, source) -> display name for every
                          department a contract points at, used to auto-create
                          departments missing from the tree

A lookup reference on a contract without a source system has no identity
and is not collected; the contract still stores its external id and the
reference validation reports it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from vault_ingestion.domain.types import (
    LOOKUP_CATEGORIES,
    DepartmentRecord,
    LookupEntity,
    SourceSystemRecord,
    VaultDocument,
    VaultSource,
)
from vault_ingestion.mappers.base import blank_to_none, department_reference
from vault_ingestion.mappers.department import to_department_record
from vault_ingestion.resolution.identity import ReferenceIdentityResolver
from vault_kernel.logging_config import get_logger

logger = get_logger("ingestion.collector")

UNKNOWN_SOURCE_NAME = "Unknown"


@dataclass
class CollectedReferences:
    source_systems: dict[str, SourceSystemRecord] = field(default_factory=dict)
    lookups: dict[str, list[LookupEntity]] = field(
        default_factory=lambda: {c: [] for c in LOOKUP_CATEGORIES}
    )
    source_map: dict[str, dict[str, str]] = field(
        default_factory=lambda: {c: {} for c in LOOKUP_CATEGORIES + ("department",)}
    )
    seen: dict[str, dict[str, str]] = field(
        default_factory=lambda: {c: {} for c in LOOKUP_CATEGORIES + ("department",)}
    )
    departments: list[DepartmentRecord] = field(default_factory=list)
    contract_departments: dict[tuple[str, str], str] = field(default_factory=dict)
    invalid_department_parents: int = 0

    @property
    def lookup_count(self) -> int:
        return sum(len(v) for v in self.lookups.values())


class ReferenceDataCollector:
    def __init__(self, resolver: ReferenceIdentityResolver | None = None):
        self._resolver = resolver or ReferenceIdentityResolver()

    @property
    def resolver(self) -> ReferenceIdentityResolver:
        return self._resolver

    def collect(self, document: VaultDocument) -> CollectedReferences:
        refs = CollectedReferences()
        self._collect_source_systems(document, refs)
        self._collect_lookups(document, refs)
        self._collect_departments(document, refs)
        logger.info(
            "references_collected",
            extra={
                "source_systems": len(refs.source_systems),
                "lookups": {c: len(v) for c, v in refs.lookups.items()},
                "departments": len(refs.departments),
                "contract_departments": len(refs.contract_departments),
                "invalid_department_parents": refs.invalid_department_parents,
            },
        )
        return refs

    # -------------------------------------------------------------------------

    @staticmethod
    def _add_source(refs: CollectedReferences, source: VaultSource | None) -> None:
        if source is None:
            return
        system_id = blank_to_none(source.system_id)
        if system_id is None or system_id in refs.source_systems:
            return
        refs.source_systems[system_id] = SourceSystemRecord(
            system_id=system_id,
            display_name=blank_to_none(source.display_name) or UNKNOWN_SOURCE_NAME,
            identification_key=blank_to_none(source.identification_key) or system_id,
        )

    def _collect_source_systems(self, document: VaultDocument, refs: CollectedReferences) -> None:
        for person in document.persons:
            self._add_source(refs, person.source)
        for _, contract in document.iter_contracts():
            self._add_source(refs, contract.source)
            if contract.department is not None:
                self._add_source(refs, contract.department.source)
        for dept in document.departments:
            self._add_source(refs, dept.source)

    def _collect_lookups(self, document: VaultDocument, refs: CollectedReferences) -> None:
        keys: dict[str, set[tuple[str, str]]] = {c: set() for c in LOOKUP_CATEGORIES}
        for _, contract in document.iter_contracts():
            source = blank_to_none(contract.source_id)
            for category in LOOKUP_CATEGORIES:
                ref = contract.reference(category)
                external_id = self._resolver.resolve(ref, source, refs.seen[category])
                if external_id is None or source is None:
                    continue
                refs.source_map[category].setdefault(external_id, source)
                key = (external_id, source)
                if key in keys[category]:
                    continue
                keys[category].add(key)
                refs.lookups[category].append(
                    LookupEntity(
                        category=category,
                        external_id=external_id,
                        source=source,
                        code=ref.code,
                        name=ref.name,
                    )
                )

            if contract.department is None or source is None:
                continue
            dept_ref = department_reference(contract)
            external_id = self._resolver.resolve(dept_ref, source, refs.seen["department"])
            if external_id is None:
                continue
            refs.source_map["department"].setdefault(external_id, source)
            refs.contract_departments.setdefault(
                (external_id, source), contract.department.display_name or external_id
            )

    def _collect_departments(self, document: VaultDocument, refs: CollectedReferences) -> None:
        candidates: list[DepartmentRecord | None]
        if document.departments:
            candidates = [to_department_record(d) for d in document.departments]
        else:
            candidates = [
                to_department_record(contract.department, contract.source_id)
                for _, contract in document.iter_contracts()
                if contract.department is not None
            ]

        seen_keys: set[tuple[str, str]] = set()
        for record in candidates:
            if record is None or record.key in seen_keys:
                continue
            seen_keys.add(record.key)
            refs.departments.append(record)

        refs.invalid_department_parents = sum(
            1
            for d in refs.departments
            if d.parent_key is not None and d.parent_key not in seen_keys
        )

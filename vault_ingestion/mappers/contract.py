"""
VaultContract -> contracts row.

Every reference is stored as an (external_id, source) pair where the source
is the contract's own source system.  A department reference is only kept
when that source is known, because departments are scoped per source.
"""

from __future__ import annotations

from typing import Mapping, MutableMapping

from vault_ingestion.domain.types import (
    LOOKUP_CATEGORIES,
    VaultContract,
    VaultPerson,
    VaultReference,
)
from vault_ingestion.mappers.base import blank_to_none, department_reference, is_empty_guid
from vault_ingestion.resolution.identity import ReferenceIdentityResolver
from vault_kernel.domain.text import value_as_text


def custom_values_as_text(custom: Mapping) -> dict[str, str | None]:
    return {str(k): value_as_text(v) for k, v in custom.items()}


class ContractMapper:
    """Maps contracts using the seen-maps filled by the reference collector."""

    def __init__(
        self,
        resolver: ReferenceIdentityResolver,
        seen: Mapping[str, MutableMapping[str, str]],
    ):
        self._resolver = resolver
        self._seen = seen
        self.empty_manager_guids_replaced = 0

    def _manager(self, contract: VaultContract) -> str | None:
        if contract.manager is None:
            return None
        if is_empty_guid(contract.manager.person_id):
            self.empty_manager_guids_replaced += 1
            return None
        return blank_to_none(contract.manager.person_id)

    def _resolve(self, category: str, ref: VaultReference | None, source: str | None) -> str | None:
        return self._resolver.resolve(ref, source, self._seen.setdefault(category, {}))

    def to_row(self, person: VaultPerson, contract: VaultContract) -> dict:
        source = blank_to_none(contract.source_id)
        row = {
            "external_id": blank_to_none(contract.external_id),
            "person_id": person.person_id,
            "start_date": contract.start_date,
            "end_date": contract.end_date,
            "type_code": contract.type_code,
            "type_description": contract.type_description,
            "fte": contract.fte,
            "hours_per_week": contract.hours_per_week,
            "percentage": contract.percentage,
            "sequence": contract.sequence,
            "manager_person_external_id": self._manager(contract),
            "source": source,
            "custom_fields": custom_values_as_text(contract.custom) or None,
        }

        for category in LOOKUP_CATEGORIES:
            external_id = self._resolve(category, contract.reference(category), source)
            row[f"{category}_external_id"] = external_id
            row[f"{category}_source"] = source if external_id is not None else None

        department_id = None
        if contract.department is not None and source is not None:
            department_id = self._resolve(
                "department", department_reference(contract), source
            )
        row["department_external_id"] = department_id
        row["department_source"] = source if department_id is not None else None
        return row


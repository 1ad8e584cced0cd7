"""Small conversions shared by the row mappers."""

from __future__ import annotations

from vault_ingestion.domain.types import VaultContract, VaultManagerReference, VaultReference
from vault_kernel.domain.values import EMPTY_GUID


def blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


def is_empty_guid(value: str | None) -> bool:
    return value is not None and value.strip().lower() == EMPTY_GUID


def manager_person_id(manager: VaultManagerReference | None) -> str | None:
    """Manager's person id, with blanks and the all-zero GUID as None."""
    if manager is None:
        return None
    value = blank_to_none(manager.person_id)
    if is_empty_guid(value):
        return None
    return value


def department_reference(contract: VaultContract) -> VaultReference | None:
    """The contract's department seen as a plain {ExternalId, Name} reference."""
    dept = contract.department
    if dept is None:
        return None
    return VaultReference(external_id=dept.external_id, code=dept.code, name=dept.display_name)

"""VaultDepartment -> DepartmentRecord."""

from __future__ import annotations

from vault_ingestion.domain.types import DepartmentRecord, VaultDepartment
from vault_ingestion.mappers.base import blank_to_none, manager_person_id


def to_department_record(
    department: VaultDepartment, fallback_source: str | None = None
) -> DepartmentRecord | None:
    """
    Build the row for a department, or None when it has no identity.

    A department needs both an external id and a source system; the source
    of the department itself wins over ``fallback_source``.
    """
    external_id = blank_to_none(department.external_id)
    source = blank_to_none(department.source.system_id if department.source else None)
    source = source or blank_to_none(fallback_source)
    if external_id is None or source is None:
        return None
    return DepartmentRecord(
        external_id=external_id,
        source=source,
        display_name=department.display_name or external_id,
        code=blank_to_none(department.code),
        parent_external_id=blank_to_none(department.parent_external_id),
        manager_person_id=manager_person_id(department.manager),
    )


def orphan_department_row(external_id: str, source: str, display_name: str) -> dict:
    """Row for a department known only from a contract reference."""
    return {
        "external_id": external_id,
        "source": source,
        "display_name": display_name,
        "code": None,
        "parent_external_id": None,
        "manager_person_id": None,
    }

"""Map vault document objects to table rows."""

from vault_ingestion.mappers.base import (
    blank_to_none,
    department_reference,
    is_empty_guid,
    manager_person_id,
)
from vault_ingestion.mappers.contact import BUSINESS, PERSONAL, contact_rows
from vault_ingestion.mappers.contract import ContractMapper, custom_values_as_text
from vault_ingestion.mappers.department import orphan_department_row, to_department_record
from vault_ingestion.mappers.person import PersonMapper

__all__ = [
    "BUSINESS",
    "PERSONAL",
    "ContractMapper",
    "PersonMapper",
    "blank_to_none",
    "contact_rows",
    "custom_values_as_text",
    "department_reference",
    "is_empty_guid",
    "manager_person_id",
    "orphan_department_row",
    "to_department_record",
]

"""
Pure domain layer.

Value types, the injectable clock and the primary contract cascade, with no
dependency on the ORM, the database or I/O.
"""

from vault_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from vault_kernel.domain.primary_contract import (
    ContractSnapshot,
    ContractSummary,
    PrimaryContractSelection,
    ReferenceSnapshot,
    SelectionStep,
    contract_status,
    field_display_name,
    field_value,
    is_core_field,
    resolve_primary_contract,
    resolve_with_steps,
)
from vault_kernel.domain.text import format_display_name, value_as_text
from vault_kernel.domain.values import (
    DEFAULT_PRIMARY_CONTRACT_FIELDS,
    EMPTY_GUID,
    ContractStatus,
    PrimaryContractField,
    PrimaryManagerLogic,
    SortOrder,
)

__all__ = [
    "DEFAULT_PRIMARY_CONTRACT_FIELDS",
    "EMPTY_GUID",
    "Clock",
    "ContractSnapshot",
    "ContractStatus",
    "ContractSummary",
    "DeterministicClock",
    "PrimaryContractField",
    "PrimaryContractSelection",
    "PrimaryManagerLogic",
    "ReferenceSnapshot",
    "SelectionStep",
    "SortOrder",
    "SystemClock",
    "contract_status",
    "field_display_name",
    "field_value",
    "format_display_name",
    "is_core_field",
    "resolve_primary_contract",
    "resolve_with_steps",
    "value_as_text",
]

"""
Value types shared by the kernel and the ingestion layer.

Pure definitions, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Vault exports use the all-zero GUID to mean "no manager".
EMPTY_GUID = "00000000-0000-0000-0000-000000000000"


class PrimaryManagerLogic(str, Enum):
    """Policy that decides where a person's primary manager comes from."""

    CONTRACT_BASED = "contract_based"  # manager on the primary contract
    DEPARTMENT_BASED = "department_based"  # manager of the primary contract's department
    FROM_IMPORT = "from_import"  # trust the PrimaryManager carried by the document

    @property
    def provenance(self) -> str:
        """Value written to persons.primary_manager_source."""
        return _PROVENANCE[self]


_PROVENANCE = {
    PrimaryManagerLogic.CONTRACT_BASED: "contract",
    PrimaryManagerLogic.DEPARTMENT_BASED: "department",
    PrimaryManagerLogic.FROM_IMPORT: "import",
}


class ContractStatus(str, Enum):
    """Status of a contract relative to today."""

    ACTIVE = "Active"
    FUTURE = "Future"
    PAST = "Past"
    NO_DATES = "No Dates"

    @property
    def rank(self) -> int:
        """Priority used before any configured field; lower wins."""
        return _STATUS_RANK.get(self, 4)


_STATUS_RANK = {
    ContractStatus.ACTIVE: 1,
    ContractStatus.FUTURE: 2,
    ContractStatus.PAST: 3,
}


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class PrimaryContractField:
    """One configured step of the primary contract cascade."""

    field_name: str
    sort_order: SortOrder = SortOrder.DESC
    priority_order: int = 1
    is_active: bool = True
    display_name: str | None = None

    @property
    def descending(self) -> bool:
        return self.sort_order != SortOrder.ASC


# Seeded into primary_contract_config on first initialization and restored
# by "reset to default".
DEFAULT_PRIMARY_CONTRACT_FIELDS: tuple[PrimaryContractField, ...] = (
    PrimaryContractField("fte", SortOrder.DESC, 1, True, "FTE"),
    PrimaryContractField("hours_per_week", SortOrder.DESC, 2, True, "Hours Per Week"),
    PrimaryContractField("sequence", SortOrder.DESC, 3, True, "Sequence"),
    PrimaryContractField("end_date", SortOrder.DESC, 4, True, "End Date"),
    PrimaryContractField("start_date", SortOrder.ASC, 5, True, "Start Date"),
    PrimaryContractField("contract_id", SortOrder.ASC, 6, True, "Contract ID"),
)

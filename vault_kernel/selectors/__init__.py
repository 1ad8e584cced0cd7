"""Selectors for the vault kernel (read side)."""

from vault_kernel.selectors.contract_selector import ContractSelector
from vault_kernel.selectors.person_selector import (
    PersonSelector,
    PersonSummary,
    PrimaryManagerStatistics,
)

__all__ = [
    "ContractSelector",
    "PersonSelector",
    "PersonSummary",
    "PrimaryManagerStatistics",
]

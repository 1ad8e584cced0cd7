"""
Settings schema.

Frozen dataclasses only; parsing lives in ``vault_config.loader``.
"""

from __future__ import annotations

from dataclasses import dataclass

from vault_kernel.domain.values import (
    DEFAULT_PRIMARY_CONTRACT_FIELDS,
    PrimaryContractField,
    PrimaryManagerLogic,
)


@dataclass(frozen=True)
class VaultSettings:
    """Runtime settings for imports and primary manager computation."""

    database_url: str = "sqlite:///vault.db"
    progress_batch_size: int = 100
    detection_sample_size: int = 100
    primary_manager_logic: PrimaryManagerLogic = PrimaryManagerLogic.DEPARTMENT_BASED
    primary_contract_defaults: tuple[PrimaryContractField, ...] = DEFAULT_PRIMARY_CONTRACT_FIELDS

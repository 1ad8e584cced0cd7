"""Services for the vault kernel (write side)."""

from vault_kernel.services.preference_service import PreferenceService
from vault_kernel.services.primary_contract_config_service import PrimaryContractConfigService
from vault_kernel.services.primary_manager_service import (
    DetectionResult,
    PrimaryContractPreview,
    PrimaryManagerDetector,
    PrimaryManagerService,
)

__all__ = [
    "DetectionResult",
    "PreferenceService",
    "PrimaryContractConfigService",
    "PrimaryContractPreview",
    "PrimaryManagerDetector",
    "PrimaryManagerService",
]

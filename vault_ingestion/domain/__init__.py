"""Pure types for vault ingestion."""

from vault_ingestion.domain.types import (
    LOOKUP_CATEGORIES,
    DepartmentRecord,
    DocumentSummary,
    ImportPhase,
    ImportProgress,
    ImportResult,
    ImportTally,
    LookupEntity,
    SourceSystemRecord,
    VaultContactInfo,
    VaultContract,
    VaultDepartment,
    VaultDocument,
    VaultManagerReference,
    VaultPerson,
    VaultReference,
    VaultSource,
)

__all__ = [
    "LOOKUP_CATEGORIES",
    "DepartmentRecord",
    "DocumentSummary",
    "ImportPhase",
    "ImportProgress",
    "ImportResult",
    "ImportTally",
    "LookupEntity",
    "SourceSystemRecord",
    "VaultContactInfo",
    "VaultContract",
    "VaultDepartment",
    "VaultDocument",
    "VaultManagerReference",
    "VaultPerson",
    "VaultReference",
    "VaultSource",
]

"""Import orchestration and post-import consistency."""

from vault_ingestion.services.consistency_validator import ConsistencyValidator
from vault_ingestion.services.custom_field_service import (
    CustomFieldService,
    infer_custom_field_keys,
)
from vault_ingestion.services.import_service import ProgressCallback, VaultImportService

__all__ = [
    "ConsistencyValidator",
    "CustomFieldService",
    "ProgressCallback",
    "VaultImportService",
    "infer_custom_field_keys",
]

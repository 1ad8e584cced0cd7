"""Reference identity, collection and department ordering. No DB access."""

from vault_ingestion.resolution.collector import CollectedReferences, ReferenceDataCollector
from vault_ingestion.resolution.department_sorter import sort_departments
from vault_ingestion.resolution.identity import ReferenceIdentityResolver, seen_key

__all__ = [
    "CollectedReferences",
    "ReferenceDataCollector",
    "ReferenceIdentityResolver",
    "seen_key",
    "sort_departments",
]

"""
Document adapter protocol.

Contract:
    DocumentAdapter.read() parses a whole vault export into a VaultDocument.
    DocumentAdapter.summarize() returns a quick count without building rows.

Architecture: vault_ingestion/adapters. File I/O only, no DB imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from vault_ingestion.domain.types import DocumentSummary, VaultDocument


@runtime_checkable
class DocumentAdapter(Protocol):
    """Protocol for reading a vault export file."""

    def read(self, source_path: Path) -> VaultDocument:
        """Parse the whole file. Raises InvalidDocumentError when unusable."""
        ...

    def summarize(self, source_path: Path) -> DocumentSummary:
        """Counts of persons, contracts and departments plus source system ids."""
        ...

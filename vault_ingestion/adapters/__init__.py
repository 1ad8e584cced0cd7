"""Readers for vault export files."""

from vault_ingestion.adapters.base import DocumentAdapter
from vault_ingestion.adapters.json_adapter import VaultJsonAdapter, strip_trailing_commas

__all__ = ["DocumentAdapter", "VaultJsonAdapter", "strip_trailing_commas"]

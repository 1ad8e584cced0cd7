"""
vault_config -- settings for the vault import tooling.

``load_settings()`` is the entry point: bundled YAML defaults, an optional
user file and the ``VAULT_DATABASE_URL`` environment override, parsed into a
frozen ``VaultSettings``.  The kernel never imports from this package;
callers pass the values they need into kernel and ingestion services.
"""

from vault_config.loader import DATABASE_URL_ENV, load_settings, load_yaml_file, parse_settings
from vault_config.schema import VaultSettings

__all__ = [
    "DATABASE_URL_ENV",
    "VaultSettings",
    "load_settings",
    "load_yaml_file",
    "parse_settings",
]

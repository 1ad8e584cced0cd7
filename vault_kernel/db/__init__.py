"""Database layer - engine, base classes and schema initialization."""

from vault_kernel.db.base import Base, ExternalIdentityMixin, LookupMixin
from vault_kernel.db.engine import (
    create_tables,
    drop_tables,
    foreign_keys_suspended,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "ExternalIdentityMixin",
    "LookupMixin",
    "create_tables",
    "drop_tables",
    "foreign_keys_suspended",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]

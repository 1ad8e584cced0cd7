"""
Module: vault_kernel.db.schema
Responsibility: Create the vault schema and verify it is present.
Architecture position: Kernel > DB.  Imports models to register tables.

Invariants enforced:
    - initialize() is idempotent: existing tables and rows are untouched.
    - primary_contract_config is seeded with the default cascade only when it
      is empty, so user edits survive re-initialization.

Failure modes:
    - SchemaInitializationError if tables are still missing after creation.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import func, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from vault_kernel.db.base import Base
from vault_kernel.db.engine import create_tables
from vault_kernel.domain.values import DEFAULT_PRIMARY_CONTRACT_FIELDS, PrimaryContractField
from vault_kernel.exceptions import SchemaInitializationError
from vault_kernel.logging_config import get_logger
from vault_kernel.models.settings import PrimaryContractConfigEntry

logger = get_logger("db.schema")


class SchemaInitializer:
    """Creates tables and seeds default settings."""

    def __init__(
        self,
        engine: Engine,
        default_fields: Iterable[PrimaryContractField] = DEFAULT_PRIMARY_CONTRACT_FIELDS,
    ):
        self._engine = engine
        self._default_fields = tuple(default_fields)

    @property
    def table_names(self) -> tuple[str, ...]:
        import vault_kernel.models  # noqa: F401

        return tuple(Base.metadata.tables.keys())

    def table_exists(self, table_name: str) -> bool:
        return inspect(self._engine).has_table(table_name)

    def missing_tables(self) -> list[str]:
        existing = set(inspect(self._engine).get_table_names())
        return [name for name in self.table_names if name not in existing]

    def initialize(self) -> None:
        """Create any missing tables and seed an empty primary contract config."""
        missing = self.missing_tables()
        if missing:
            logger.info("schema_creating_tables", extra={"missing_tables": missing})
            create_tables(self._engine)
            still_missing = self.missing_tables()
            if still_missing:
                raise SchemaInitializationError(still_missing)

        with Session(self._engine) as session:
            count = session.scalar(select(func.count()).select_from(PrimaryContractConfigEntry))
            if not count:
                seed_primary_contract_config(session, self._default_fields)
                session.commit()
                logger.info(
                    "primary_contract_config_seeded",
                    extra={"fields": [f.field_name for f in self._default_fields]},
                )


def seed_primary_contract_config(
    session: Session, fields: Iterable[PrimaryContractField]
) -> None:
    """Add one configuration row per field. Caller commits."""
    for f in fields:
        session.add(
            PrimaryContractConfigEntry(
                field_name=f.field_name,
                display_name=f.display_name or f.field_name,
                sort_order=f.sort_order.value,
                priority_order=f.priority_order,
                is_active=f.is_active,
            )
        )
    session.flush()

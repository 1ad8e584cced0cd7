"""
Custom field schemas and values.

Schemas are inferred from every ``Custom`` object in the document, once per
(table, key).  The ``persons`` and ``contracts`` namespaces are separate.
New keys are appended after the ones already registered for that table;
existing schema rows are never touched.

Values are merged into the owning row's ``custom_fields`` JSON, keyed by the
field key and always stored as text.  Persons are matched on person_id,
contracts on external_id; a contract without an external_id cannot be
addressed and is skipped.  The first occurrence of an id in the document
wins, as for the rows themselves.
"""

from __future__ import annotations

from typing import Iterator, Mapping, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from vault_ingestion.domain.types import VaultDocument
from vault_ingestion.mappers.base import blank_to_none
from vault_ingestion.mappers.contract import custom_values_as_text
from vault_kernel.domain.text import format_display_name
from vault_kernel.logging_config import get_logger
from vault_kernel.models.contract import Contract
from vault_kernel.models.custom_field import CustomFieldSchema
from vault_kernel.models.person import Person

logger = get_logger("ingestion.custom_fields")

PERSONS = "persons"
CONTRACTS = "contracts"

_CHUNK_SIZE = 500


def _chunks(items: Sequence, size: int = _CHUNK_SIZE) -> Iterator[Sequence]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


def infer_custom_field_keys(document: VaultDocument) -> dict[str, list[str]]:
    """Distinct custom field keys per table, in order of first appearance."""
    keys: dict[str, list[str]] = {PERSONS: [], CONTRACTS: []}
    seen: dict[str, set[str]] = {PERSONS: set(), CONTRACTS: set()}

    def add(table: str, custom: Mapping) -> None:
        for key in custom:
            key = str(key)
            if key.strip() and key not in seen[table]:
                seen[table].add(key)
                keys[table].append(key)

    for person in document.persons:
        add(PERSONS, person.custom)
        for contract in person.contracts:
            add(CONTRACTS, contract.custom)
    return keys


def person_custom_values(document: VaultDocument) -> dict[str, dict[str, str | None]]:
    values: dict[str, dict[str, str | None]] = {}
    for person in document.persons:
        person_id = blank_to_none(person.person_id)
        if person_id is None or person_id in values or not person.custom:
            continue
        values[person_id] = custom_values_as_text(person.custom)
    return values


def contract_custom_values(document: VaultDocument) -> dict[str, dict[str, str | None]]:
    values: dict[str, dict[str, str | None]] = {}
    for _, contract in document.iter_contracts():
        external_id = blank_to_none(contract.external_id)
        if external_id is None or external_id in values or not contract.custom:
            continue
        values[external_id] = custom_values_as_text(contract.custom)
    return values


class CustomFieldService:
    """Writes custom field schemas and values. Caller owns the transaction."""

    def __init__(self, session: Session):
        self._session = session

    def register_schemas(self, keys_by_table: Mapping[str, Sequence[str]]) -> dict[str, int]:
        """INSERT OR IGNORE one schema row per key. Returns rows added per table."""
        table = CustomFieldSchema.__table__
        added: dict[str, int] = {}
        for table_name, keys in keys_by_table.items():
            next_order = (
                self._session.scalar(
                    select(func.max(table.c.sort_order)).where(table.c.table_name == table_name)
                )
                or 0
            )
            count = 0
            for key in keys:
                stmt = (
                    sqlite_insert(table)
                    .values(
                        table_name=table_name,
                        field_key=key,
                        display_name=format_display_name(key),
                        sort_order=next_order + 1,
                    )
                    .on_conflict_do_nothing()
                )
                written = self._session.execute(stmt).rowcount or 0
                next_order += written
                count += written
            added[table_name] = count
            logger.info(
                "custom_field_schemas_registered",
                extra={"table_name": table_name, "keys": len(keys), "added": count},
            )
        return added

    def _merge_values(self, table, key_col, values: Mapping[str, Mapping[str, str | None]]) -> int:
        written = 0
        ids = list(values)
        for chunk in _chunks(ids):
            existing = dict(
                self._session.execute(
                    select(key_col, table.c.custom_fields).where(key_col.in_(chunk))
                ).all()
            )
            for row_id in chunk:
                if row_id not in existing:
                    continue
                merged = dict(existing[row_id] or {})
                merged.update(values[row_id])
                self._session.execute(
                    update(table).where(key_col == row_id).values(custom_fields=merged)
                )
                written += len(values[row_id])
        return written

    def upsert_person_values(self, values: Mapping[str, Mapping[str, str | None]]) -> int:
        table = Person.__table__
        return self._merge_values(table, table.c.person_id, values)

    def upsert_contract_values(self, values: Mapping[str, Mapping[str, str | None]]) -> int:
        table = Contract.__table__
        return self._merge_values(table, table.c.external_id, values)

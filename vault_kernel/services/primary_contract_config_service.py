"""
PrimaryContractConfigService -- edit the primary contract cascade.

Responsibility:
    Reads and writes ``primary_contract_config`` and converts rows to the
    domain ``PrimaryContractField`` used by the resolver.

Invariants enforced:
    - At least one row stays active after any update or delete.  The check
      runs before anything is written.
    - sort_order is ASC or DESC.
    - An empty active list is still a valid read result: the resolver then
      orders by contract status alone.

Failure modes:
    - NoActivePrimaryContractFieldError on a change that leaves nothing active.
    - InvalidSortOrderError on any other sort order.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import delete, select

from vault_kernel.domain.values import (
    DEFAULT_PRIMARY_CONTRACT_FIELDS,
    PrimaryContractField,
    SortOrder,
)
from vault_kernel.exceptions import InvalidSortOrderError, NoActivePrimaryContractFieldError
from vault_kernel.logging_config import get_logger
from vault_kernel.models.settings import PrimaryContractConfigEntry
from vault_kernel.services.base import BaseService

logger = get_logger("services.primary_contract_config")


def _to_field(row: PrimaryContractConfigEntry) -> PrimaryContractField:
    return PrimaryContractField(
        field_name=row.field_name,
        sort_order=SortOrder.ASC if row.sort_order == "ASC" else SortOrder.DESC,
        priority_order=row.priority_order,
        is_active=bool(row.is_active),
        display_name=row.display_name,
    )


def _check_sort_order(f: PrimaryContractField) -> str:
    value = f.sort_order.value if isinstance(f.sort_order, SortOrder) else str(f.sort_order)
    if value not in ("ASC", "DESC"):
        raise InvalidSortOrderError(f.field_name, value)
    return value


class PrimaryContractConfigService(BaseService):
    def get_all(self) -> list[PrimaryContractField]:
        rows = self.session.scalars(
            select(PrimaryContractConfigEntry).order_by(PrimaryContractConfigEntry.priority_order)
        )
        return [_to_field(r) for r in rows]

    def get_active(self) -> list[PrimaryContractField]:
        return [f for f in self.get_all() if f.is_active]

    def _rows_by_name(self) -> dict[str, PrimaryContractConfigEntry]:
        return {r.field_name: r for r in self.session.scalars(select(PrimaryContractConfigEntry))}

    def update(self, fields: Iterable[PrimaryContractField]) -> None:
        """Update sort order, priority and active flag of existing fields."""
        rows = self._rows_by_name()
        changes = [(f, _check_sort_order(f)) for f in fields if f.field_name in rows]

        active = {name: bool(r.is_active) for name, r in rows.items()}
        active.update({f.field_name: f.is_active for f, _ in changes})
        if not any(active.values()):
            raise NoActivePrimaryContractFieldError()

        for f, sort_order in changes:
            row = rows[f.field_name]
            row.sort_order = sort_order
            row.priority_order = f.priority_order
            row.is_active = f.is_active
        self.session.flush()
        logger.info(
            "primary_contract_config_updated",
            extra={"field_names": [f.field_name for f, _ in changes]},
        )

    def add(self, fields: Iterable[PrimaryContractField]) -> None:
        for f in fields:
            self.session.add(
                PrimaryContractConfigEntry(
                    field_name=f.field_name,
                    display_name=f.display_name or f.field_name,
                    sort_order=_check_sort_order(f),
                    priority_order=f.priority_order,
                    is_active=f.is_active,
                )
            )
        self.session.flush()

    def delete(self, field_names: Iterable[str]) -> None:
        names = set(field_names)
        if not names:
            return
        remaining = [r for name, r in self._rows_by_name().items() if name not in names]
        if not any(r.is_active for r in remaining):
            raise NoActivePrimaryContractFieldError()

        self.session.execute(
            delete(PrimaryContractConfigEntry).where(
                PrimaryContractConfigEntry.field_name.in_(sorted(names))
            )
        )
        self.session.flush()
        logger.info("primary_contract_config_deleted", extra={"field_names": sorted(names)})

    def reset_to_default(
        self, defaults: Iterable[PrimaryContractField] = DEFAULT_PRIMARY_CONTRACT_FIELDS
    ) -> None:
        """Restore the default cascade; fields outside it are deactivated."""
        defaults = list(defaults)
        if not defaults:
            raise NoActivePrimaryContractFieldError()

        rows = self._rows_by_name()
        default_names = {f.field_name for f in defaults}
        for name, row in rows.items():
            if name not in default_names:
                row.is_active = False
        for f in defaults:
            row = rows.get(f.field_name)
            if row is None:
                self.add([f])
                continue
            row.sort_order = _check_sort_order(f)
            row.priority_order = f.priority_order
            row.is_active = True
        self.session.flush()
        logger.info("primary_contract_config_reset")

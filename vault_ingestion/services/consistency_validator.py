"""
ConsistencyValidator -- post-insert repair and reference diagnostics.

Foreign keys are suspended while the import runs, so nothing stops a row
from pointing at a row that never arrives.  After the relevant phase the
orchestrator asks this validator to:

    repair_department_parents     null a parent that has no department row
                                  with that external_id under the same source
    repair_department_managers    null a manager that is not a person
    repair_person_primary_managers  null a primary manager that is not a person
    count_orphaned_references     per category, contracts whose reference has
                                  no row matching BOTH external_id and source
    orphaned_keys                 the distinct (external_id, source) pairs
                                  behind one category's count

Repairs return the number of rows changed.  Orphaned contract references are
reported only: clearing a contract's department or location would change
what the contract means.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from sqlalchemy import and_, exists, func, select, update
from sqlalchemy.orm import Session

from vault_kernel.logging_config import get_logger
from vault_kernel.models.contract import Contract
from vault_kernel.models.department import Department
from vault_kernel.models.lookups import LOOKUP_MODELS
from vault_kernel.models.person import Person

logger = get_logger("ingestion.consistency")

_departments = Department.__table__
_persons = Person.__table__
_contracts = Contract.__table__


class ConsistencyValidator:
    def __init__(self, session: Session):
        self._session = session

    def repair_department_parents(self) -> int:
        parent = _departments.alias("parent")
        stmt = (
            update(_departments)
            .where(
                _departments.c.parent_external_id.is_not(None),
                ~exists().where(
                    parent.c.external_id == _departments.c.parent_external_id,
                    parent.c.source == _departments.c.source,
                ),
            )
            .values(parent_external_id=None)
        )
        repaired = self._session.execute(stmt).rowcount or 0
        if repaired:
            logger.warning("department_parents_repaired", extra={"count": repaired})
        return repaired

    def repair_department_managers(self) -> int:
        stmt = (
            update(_departments)
            .where(
                _departments.c.manager_person_id.is_not(None),
                ~exists().where(_persons.c.person_id == _departments.c.manager_person_id),
            )
            .values(manager_person_id=None)
        )
        repaired = self._session.execute(stmt).rowcount or 0
        if repaired:
            logger.warning("department_managers_repaired", extra={"count": repaired})
        return repaired

    def clear_department_managers(self) -> int:
        """Drop every department manager (used when no persons are imported)."""
        stmt = (
            update(_departments)
            .where(_departments.c.manager_person_id.is_not(None))
            .values(manager_person_id=None)
        )
        return self._session.execute(stmt).rowcount or 0

    def repair_person_primary_managers(self) -> int:
        manager = _persons.alias("manager")
        stmt = (
            update(_persons)
            .where(
                _persons.c.primary_manager_person_id.is_not(None),
                ~exists().where(manager.c.person_id == _persons.c.primary_manager_person_id),
            )
            .values(
                primary_manager_person_id=None,
                primary_manager_source=None,
                primary_manager_updated_at=None,
            )
        )
        repaired = self._session.execute(stmt).rowcount or 0
        if repaired:
            logger.warning("person_primary_managers_repaired", extra={"count": repaired})
        return repaired

    def _orphan_condition(self, category: str, table):
        ext_col = _contracts.c[f"{category}_external_id"]
        src_col = _contracts.c[f"{category}_source"]
        return ext_col, src_col, and_(
            ext_col.is_not(None),
            ~exists().where(
                table.c.external_id == ext_col,
                table.c.source == src_col,
            ),
        )

    def _table(self, category: str):
        if category == "department":
            return _departments
        return LOOKUP_MODELS[category].__table__

    def _orphan_count(self, category: str) -> int:
        _, _, orphaned = self._orphan_condition(category, self._table(category))
        stmt = select(func.count()).select_from(_contracts).where(orphaned)
        return self._session.scalar(stmt) or 0

    def orphaned_keys(self, category: str) -> list[tuple[str, str | None]]:
        """Distinct (external_id, source) pairs behind the orphan count."""
        ext_col, src_col, orphaned = self._orphan_condition(category, self._table(category))
        stmt = (
            select(ext_col, src_col)
            .where(orphaned)
            .distinct()
            .order_by(ext_col, src_col)
        )
        return [(ext, src) for ext, src in self._session.execute(stmt)]

    def count_orphaned_references(self) -> dict[str, int]:
        counts = {category: self._orphan_count(category) for category in LOOKUP_MODELS}
        counts["department"] = self._orphan_count("department")
        orphaned = {k: v for k, v in counts.items() if v}
        if orphaned:
            logger.warning("orphaned_contract_references", extra={"counts": orphaned})
        return counts


def source_mismatches(
    orphaned: Iterable[tuple[str, str | None]], known_sources: Mapping[str, str]
) -> dict[str, str]:
    """
    external_id -> source the document gave it, for orphaned references
    whose external_id does exist, only under another source.
    """
    return {
        ext: known_sources[ext]
        for ext, src in orphaned
        if ext in known_sources and known_sources[ext] != src
    }

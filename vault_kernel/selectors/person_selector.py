"""Read side for persons: summaries and primary manager statistics."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select

from vault_kernel.models.person import Person
from vault_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class PersonSummary:
    person_id: str
    display_name: str
    external_id: str | None
    source: str | None
    primary_manager_person_id: str | None
    primary_manager_source: str | None


@dataclass(frozen=True)
class PrimaryManagerStatistics:
    """Counts of persons by primary manager presence and provenance."""

    total_persons: int
    persons_with_manager: int
    persons_without_manager: int
    contract_based: int
    department_based: int
    from_import: int


class PersonSelector(BaseSelector):
    def get_summary(self, person_id: str) -> PersonSummary | None:
        p = self.session.get(Person, person_id)
        if p is None:
            return None
        return PersonSummary(
            person_id=p.person_id,
            display_name=p.display_name,
            external_id=p.external_id,
            source=p.source,
            primary_manager_person_id=p.primary_manager_person_id,
            primary_manager_source=p.primary_manager_source,
        )

    def all_person_ids(self) -> list[str]:
        return list(self.session.scalars(select(Person.person_id).order_by(Person.person_id)))

    def sample_with_primary_manager(self, limit: int) -> list[tuple[str, str]]:
        """Up to ``limit`` (person_id, primary_manager_person_id) pairs."""
        rows = self.session.execute(
            select(Person.person_id, Person.primary_manager_person_id)
            .where(Person.primary_manager_person_id.is_not(None))
            .order_by(Person.person_id)
            .limit(limit)
        ).all()
        return [(r[0], r[1]) for r in rows]

    def primary_manager_statistics(self) -> PrimaryManagerStatistics:
        total = self.session.scalar(select(func.count()).select_from(Person)) or 0
        with_manager = self.session.scalar(
            select(func.count())
            .select_from(Person)
            .where(Person.primary_manager_person_id.is_not(None))
        ) or 0
        by_source = dict(
            self.session.execute(
                select(Person.primary_manager_source, func.count())
                .where(Person.primary_manager_source.is_not(None))
                .group_by(Person.primary_manager_source)
            ).all()
        )
        return PrimaryManagerStatistics(
            total_persons=total,
            persons_with_manager=with_manager,
            persons_without_manager=total - with_manager,
            contract_based=by_source.get("contract", 0),
            department_based=by_source.get("department", 0),
            from_import=by_source.get("import", 0),
        )

"""
Module: vault_kernel.selectors.contract_selector
Responsibility: Load a person's contracts as ContractSnapshot read models,
    with lookup references, department hierarchy fields and manager names
    joined in, and the status computed against the injected clock.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Lookup and department references are resolved on the
      (external_id, source) pair; a reference that does not resolve keeps
      its external_id with no code or name.
    - Contracts are returned in contract_id order so the cascade's final
      tie-break is deterministic.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from vault_kernel.domain.clock import Clock, SystemClock
from vault_kernel.domain.primary_contract import (
    ContractSnapshot,
    ReferenceSnapshot,
    contract_status,
)
from vault_kernel.models.contract import Contract
from vault_kernel.models.department import Department
from vault_kernel.models.lookups import LOOKUP_MODELS
from vault_kernel.models.person import Person
from vault_kernel.selectors.base import BaseSelector


class ContractSelector(BaseSelector):
    """Read side for contracts."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def contracts_for_person(self, person_id: str) -> list[ContractSnapshot]:
        rows = self.session.scalars(
            select(Contract)
            .where(Contract.person_id == person_id)
            .order_by(Contract.contract_id)
        ).all()
        if not rows:
            return []
        person = self.session.get(Person, person_id)
        return [self._snapshot(c, person) for c in rows]

    def _person_name(self, person_id: str | None) -> str | None:
        if not person_id:
            return None
        p = self.session.get(Person, person_id)
        return p.display_name if p is not None else None

    def _snapshot(self, c: Contract, person: Person | None) -> ContractSnapshot:
        today = self._clock.today()
        references: dict[str, ReferenceSnapshot] = {}

        for category, model in LOOKUP_MODELS.items():
            ext = getattr(c, f"{category}_external_id")
            if not ext:
                continue
            src = getattr(c, f"{category}_source")
            row = self.session.get(model, (ext, src)) if src else None
            references[category] = ReferenceSnapshot(
                external_id=ext,
                code=row.code if row is not None else None,
                name=row.name if row is not None else None,
            )

        dept = None
        parent = None
        if c.department_external_id and c.department_source:
            dept = self.session.get(Department, (c.department_external_id, c.department_source))
        if c.department_external_id:
            references["department"] = ReferenceSnapshot(
                external_id=c.department_external_id,
                code=dept.code if dept is not None else None,
                name=dept.display_name if dept is not None else None,
            )
        if dept is not None and dept.parent_external_id:
            parent = self.session.get(Department, (dept.parent_external_id, dept.source))

        return ContractSnapshot(
            contract_id=c.contract_id,
            person_id=c.person_id,
            status=contract_status(c.start_date, c.end_date, today).value,
            external_id=c.external_id,
            start_date=c.start_date,
            end_date=c.end_date,
            type_code=c.type_code,
            type_description=c.type_description,
            fte=c.fte,
            hours_per_week=c.hours_per_week,
            percentage=c.percentage,
            sequence=c.sequence,
            source=c.source,
            person_name=person.display_name if person is not None else None,
            person_external_id=person.external_id if person is not None else None,
            manager_person_external_id=c.manager_person_external_id,
            manager_person_name=self._person_name(c.manager_person_external_id),
            department_source=c.department_source,
            department_manager_person_id=dept.manager_person_id if dept is not None else None,
            department_manager_name=(
                self._person_name(dept.manager_person_id) if dept is not None else None
            ),
            department_parent_external_id=dept.parent_external_id if dept is not None else None,
            department_parent_name=parent.display_name if parent is not None else None,
            references=references,
            custom_fields=dict(c.custom_fields or {}),
        )

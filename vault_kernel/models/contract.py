"""
Module: vault_kernel.models.contract
Responsibility: ORM persistence for employment contracts.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - A contract belongs to exactly one person.
    - Each of the nine organizational references is stored as an
      (``<ref>_external_id``, ``<ref>_source``) pair.  A reference is only
      valid when a lookup row matches on BOTH columns; a matching
      external_id under another source is an orphaned reference.
    - manager_person_external_id is null when the document carried the
      all-zero GUID sentinel.
    - start_date / end_date are ISO ``YYYY-MM-DD`` text.

Failure modes:
    - Orphaned references are reported by the import, never repaired here:
      nulling a contract's department or location changes business meaning.
"""

from typing import Any

from sqlalchemy import JSON, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from vault_kernel.db.base import Base

# Reference categories stored on a contract, in column order.  "department"
# is the only one backed by the department tree rather than a lookup table.
CONTRACT_REFERENCES: tuple[str, ...] = (
    "location",
    "cost_center",
    "cost_bearer",
    "employer",
    "team",
    "department",
    "division",
    "title",
    "organization",
)


class Contract(Base):
    """A person's contract with its scheduling data and references."""

    __tablename__ = "contracts"

    __table_args__ = (
        UniqueConstraint("external_id", name="uq_contracts_external_id"),
        Index("idx_contracts_person", "person_id"),
        Index("idx_contracts_department", "department_external_id", "department_source"),
    )

    contract_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[str | None] = mapped_column(nullable=True)
    person_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("persons.person_id"), nullable=False
    )

    start_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    end_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    type_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    type_description: Mapped[str | None] = mapped_column(nullable=True)

    fte: Mapped[float | None] = mapped_column(Float, nullable=True)
    hours_per_week: Mapped[float | None] = mapped_column(Float, nullable=True)
    percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    sequence: Mapped[int | None] = mapped_column(Integer, nullable=True)

    manager_person_external_id: Mapped[str | None] = mapped_column(nullable=True)

    location_external_id: Mapped[str | None] = mapped_column(nullable=True)
    location_source: Mapped[str | None] = mapped_column(nullable=True)
    cost_center_external_id: Mapped[str | None] = mapped_column(nullable=True)
    cost_center_source: Mapped[str | None] = mapped_column(nullable=True)
    cost_bearer_external_id: Mapped[str | None] = mapped_column(nullable=True)
    cost_bearer_source: Mapped[str | None] = mapped_column(nullable=True)
    employer_external_id: Mapped[str | None] = mapped_column(nullable=True)
    employer_source: Mapped[str | None] = mapped_column(nullable=True)
    team_external_id: Mapped[str | None] = mapped_column(nullable=True)
    team_source: Mapped[str | None] = mapped_column(nullable=True)
    department_external_id: Mapped[str | None] = mapped_column(nullable=True)
    department_source: Mapped[str | None] = mapped_column(nullable=True)
    division_external_id: Mapped[str | None] = mapped_column(nullable=True)
    division_source: Mapped[str | None] = mapped_column(nullable=True)
    title_external_id: Mapped[str | None] = mapped_column(nullable=True)
    title_source: Mapped[str | None] = mapped_column(nullable=True)
    organization_external_id: Mapped[str | None] = mapped_column(nullable=True)
    organization_source: Mapped[str | None] = mapped_column(nullable=True)

    source: Mapped[str | None] = mapped_column(nullable=True)

    custom_fields: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Contract {self.contract_id} ({self.external_id}) person={self.person_id}>"

"""
Module: vault_kernel.models.person
Responsibility: ORM persistence for persons and their contact records.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - person_id is the document-supplied surrogate key; a person is created
      once per unique person_id during import and never deleted by the
      pipeline.
    - primary_manager_person_id is computed, never hand-entered.  Its
      provenance is recorded in primary_manager_source
      (contract / department / import) together with the time it was
      last computed.  It is deliberately NOT a foreign key: a recomputed
      manager may reference a person absent from the store, and the
      post-import repair clears such values.
    - At most one contact per (person_id, type).

Failure modes:
    - IntegrityError on contact insert for an unknown person_id when
      foreign keys are enforced (they are suspended during import).
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from vault_kernel.db.base import Base


class Person(Base):
    """A person from the vault document."""

    __tablename__ = "persons"

    __table_args__ = (
        Index("idx_persons_external_id", "external_id"),
        Index("idx_persons_primary_manager", "primary_manager_person_id"),
    )

    person_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    external_id: Mapped[str | None] = mapped_column(nullable=True)
    user_name: Mapped[str | None] = mapped_column(nullable=True)

    # Details
    gender: Mapped[str | None] = mapped_column(String(50), nullable=True)
    honorific_prefix: Mapped[str | None] = mapped_column(String(50), nullable=True)
    honorific_suffix: Mapped[str | None] = mapped_column(String(50), nullable=True)
    birth_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    birth_locality: Mapped[str | None] = mapped_column(nullable=True)
    marital_status: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Name
    initials: Mapped[str | None] = mapped_column(String(50), nullable=True)
    given_name: Mapped[str | None] = mapped_column(nullable=True)
    family_name: Mapped[str | None] = mapped_column(nullable=True)
    family_name_prefix: Mapped[str | None] = mapped_column(String(50), nullable=True)
    family_name_partner: Mapped[str | None] = mapped_column(nullable=True)
    family_name_partner_prefix: Mapped[str | None] = mapped_column(String(50), nullable=True)
    convention: Mapped[str | None] = mapped_column(String(50), nullable=True)
    nick_name: Mapped[str | None] = mapped_column(nullable=True)

    # Status and exclusion
    blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status_reason: Mapped[str | None] = mapped_column(nullable=True)
    excluded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hr_excluded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    manual_excluded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    source: Mapped[str | None] = mapped_column(nullable=True)

    # Computed primary manager and its provenance
    primary_manager_person_id: Mapped[str | None] = mapped_column(nullable=True)
    primary_manager_source: Mapped[str | None] = mapped_column(String(20), nullable=True)
    primary_manager_updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    custom_fields: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Person {self.person_id}: {self.display_name}>"


class Contact(Base):
    """Personal or business contact details of a person."""

    __tablename__ = "contacts"

    __table_args__ = (
        UniqueConstraint("person_id", "type", name="uq_contacts_person_type"),
    )

    contact_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    person_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("persons.person_id"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    email: Mapped[str | None] = mapped_column(nullable=True)
    phone_mobile: Mapped[str | None] = mapped_column(String(50), nullable=True)
    phone_fixed: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address_street: Mapped[str | None] = mapped_column(nullable=True)
    address_house_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address_postal: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address_locality: Mapped[str | None] = mapped_column(nullable=True)
    address_country: Mapped[str | None] = mapped_column(nullable=True)

"""
Module: vault_kernel.models.department
Responsibility: ORM persistence for the self-referential department tree.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Identity is (external_id, source); the parent is scoped to the same
      source through a composite foreign key.
    - After import, every parent_external_id resolves to a department row and
      every manager_person_id resolves to a person, or the column is null
      (enforced by the consistency validator, not by the ORM).
    - Departments referenced only by contracts are auto-created with
      display name and source only.
"""

from sqlalchemy import ForeignKey, ForeignKeyConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from vault_kernel.db.base import Base, ExternalIdentityMixin


class Department(ExternalIdentityMixin, Base):
    """Organizational unit; a tree per source system."""

    __tablename__ = "departments"

    __table_args__ = (
        ForeignKeyConstraint(
            ["parent_external_id", "source"],
            ["departments.external_id", "departments.source"],
            name="fk_departments_parent",
        ),
        Index("idx_departments_parent", "parent_external_id"),
    )

    display_name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    code: Mapped[str | None] = mapped_column(nullable=True)
    parent_external_id: Mapped[str | None] = mapped_column(nullable=True)
    manager_person_id: Mapped[str | None] = mapped_column(
        String(255), ForeignKey("persons.person_id"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Department {self.external_id}@{self.source}: {self.display_name}>"

"""
Module: vault_kernel.db.base
Responsibility: Declarative base and shared column conventions for every
    SQLAlchemy ORM model in the vault store.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel; all model files import from here.  MUST NOT import from models/,
    services/, selectors/ or outer layers.

Invariants enforced:
    - Organizational entities have no surrogate key: identity is the pair
      (external_id, source), expressed by ExternalIdentityMixin as a composite
      primary key so ``INSERT OR IGNORE`` absorbs repeats.
    - Dates from the vault document are stored as ISO ``YYYY-MM-DD`` text so
      they compare lexically in SQL and in the primary contract cascade.
    - Timestamps are timezone-aware.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all vault models."""

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        str: String(255),
    }


class ExternalIdentityMixin:
    """
    Composite (external_id, source) primary key.

    The same external identifier may exist independently in several source
    systems, so neither column identifies a row on its own.
    """

    external_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    source: Mapped[str] = mapped_column(String(255), primary_key=True)


class LookupMixin(ExternalIdentityMixin):
    """Columns shared by the eight organizational lookup tables."""

    code: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name: Mapped[str | None] = mapped_column(String(500), nullable=True)

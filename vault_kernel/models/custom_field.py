"""
Module: vault_kernel.models.custom_field
Responsibility: Schema rows for free-form custom fields found on persons and
    contracts.  Values live in the owning row's ``custom_fields`` JSON column.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One schema row per (table_name, field_key); the ``persons`` and
      ``contracts`` namespaces are disjoint.
    - Values are stored as text; no type inference.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from vault_kernel.db.base import Base

CUSTOM_FIELD_TABLES: tuple[str, ...] = ("persons", "contracts")


class CustomFieldSchema(Base):
    __tablename__ = "custom_field_schemas"

    table_name: Mapped[str] = mapped_column(String(50), primary_key=True)
    field_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<CustomFieldSchema {self.table_name}.{self.field_key}>"

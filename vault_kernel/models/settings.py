"""
Module: vault_kernel.models.settings
Responsibility: Persisted, user-editable settings: the primary contract
    priority configuration and simple key/value preferences.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - primary_contract_config.field_name is unique.
    - sort_order is 'ASC' or 'DESC' (checked by the configuration service).
    - At least one configuration row stays active (configuration service).
"""

from datetime import datetime

from sqlalchemy import Boolean, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from vault_kernel.db.base import Base


class PrimaryContractConfigEntry(Base):
    """One field in the primary contract tie-break cascade."""

    __tablename__ = "primary_contract_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    field_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sort_order: Mapped[str] = mapped_column(String(4), nullable=False, default="DESC")
    priority_order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<PrimaryContractConfigEntry {self.priority_order}: "
            f"{self.field_name} {self.sort_order}{'' if self.is_active else ' (inactive)'}>"
        )


class UserPreference(Base):
    """Process-wide key/value preference."""

    __tablename__ = "user_preferences"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str | None] = mapped_column(String(1000), nullable=True)

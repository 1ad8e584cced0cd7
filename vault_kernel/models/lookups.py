"""
Module: vault_kernel.models.lookups
Responsibility: ORM persistence for source systems and the eight
    organizational lookup tables referenced from contracts (location,
    employer, cost center, cost bearer, team, division, title, organization).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - A lookup row is identified by (external_id, source).  Inserts use
      ``INSERT OR IGNORE`` so the first occurrence in a document wins and
      re-importing the same document leaves row counts unchanged.
    - source_system rows are keyed by system_id alone.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from vault_kernel.db.base import Base, LookupMixin


class SourceSystem(Base):
    """Upstream system that produced persons, contracts or departments."""

    __tablename__ = "source_system"

    system_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    identification_key: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<SourceSystem {self.system_id}: {self.display_name}>"


class Location(LookupMixin, Base):
    __tablename__ = "locations"


class Employer(LookupMixin, Base):
    __tablename__ = "employers"


class CostCenter(LookupMixin, Base):
    __tablename__ = "cost_centers"


class CostBearer(LookupMixin, Base):
    __tablename__ = "cost_bearers"


class Team(LookupMixin, Base):
    __tablename__ = "teams"


class Division(LookupMixin, Base):
    __tablename__ = "divisions"


class Title(LookupMixin, Base):
    __tablename__ = "titles"


class Organization(LookupMixin, Base):
    __tablename__ = "organizations"


# Reference category (as used in contract column prefixes) -> lookup model.
# Order matches the order lookup tables are populated during import.
LOOKUP_MODELS: dict[str, type[LookupMixin]] = {
    "location": Location,
    "employer": Employer,
    "cost_center": CostCenter,
    "cost_bearer": CostBearer,
    "team": Team,
    "division": Division,
    "title": Title,
    "organization": Organization,
}

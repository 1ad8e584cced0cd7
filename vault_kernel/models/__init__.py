"""ORM models for the vault store."""

from vault_kernel.models.contract import CONTRACT_REFERENCES, Contract
from vault_kernel.models.custom_field import CUSTOM_FIELD_TABLES, CustomFieldSchema
from vault_kernel.models.department import Department
from vault_kernel.models.lookups import (
    LOOKUP_MODELS,
    CostBearer,
    CostCenter,
    Division,
    Employer,
    Location,
    Organization,
    SourceSystem,
    Team,
    Title,
)
from vault_kernel.models.person import Contact, Person
from vault_kernel.models.settings import PrimaryContractConfigEntry, UserPreference

__all__ = [
    "CONTRACT_REFERENCES",
    "CUSTOM_FIELD_TABLES",
    "LOOKUP_MODELS",
    "Contact",
    "Contract",
    "CostBearer",
    "CostCenter",
    "CustomFieldSchema",
    "Department",
    "Division",
    "Employer",
    "Location",
    "Organization",
    "Person",
    "PrimaryContractConfigEntry",
    "SourceSystem",
    "Team",
    "Title",
    "UserPreference",
]

"""VaultPerson -> persons row."""

from __future__ import annotations

from vault_ingestion.domain.types import VaultPerson
from vault_ingestion.mappers.base import manager_person_id
from vault_ingestion.mappers.contract import custom_values_as_text
from vault_kernel.domain.clock import Clock
from vault_kernel.domain.values import PrimaryManagerLogic


class PersonMapper:
    def __init__(self, clock: Clock):
        self._clock = clock

    def to_row(self, person: VaultPerson, logic: PrimaryManagerLogic) -> dict:
        row = {
            "person_id": person.person_id,
            "display_name": person.display_name,
            "external_id": person.external_id,
            "user_name": person.user_name,
            "gender": person.gender,
            "honorific_prefix": person.honorific_prefix,
            "honorific_suffix": person.honorific_suffix,
            "birth_date": person.birth_date,
            "birth_locality": person.birth_locality,
            "marital_status": person.marital_status,
            "initials": person.initials,
            "given_name": person.given_name,
            "family_name": person.family_name,
            "family_name_prefix": person.family_name_prefix,
            "family_name_partner": person.family_name_partner,
            "family_name_partner_prefix": person.family_name_partner_prefix,
            "convention": person.convention,
            "nick_name": person.nick_name,
            "blocked": person.blocked,
            "status_reason": person.status_reason,
            "excluded": person.excluded,
            "hr_excluded": person.hr_excluded,
            "manual_excluded": person.manual_excluded,
            "source": person.source_id,
            "primary_manager_person_id": None,
            "primary_manager_source": None,
            "primary_manager_updated_at": None,
            "custom_fields": custom_values_as_text(person.custom) or None,
        }
        # Under from_import the document's own PrimaryManager is kept as-is.
        if logic == PrimaryManagerLogic.FROM_IMPORT:
            manager = manager_person_id(person.primary_manager)
            if manager is not None:
                row["primary_manager_person_id"] = manager
                row["primary_manager_source"] = logic.provenance
                row["primary_manager_updated_at"] = self._clock.now()
        return row

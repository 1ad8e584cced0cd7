"""Person contact blocks -> contacts rows."""

from __future__ import annotations

from vault_ingestion.domain.types import VaultContactInfo, VaultPerson

PERSONAL = "Personal"
BUSINESS = "Business"


def _row(person_id: str, contact_type: str, info: VaultContactInfo) -> dict:
    return {
        "person_id": person_id,
        "type": contact_type,
        "email": info.email,
        "phone_mobile": info.phone_mobile,
        "phone_fixed": info.phone_fixed,
        "address_street": info.street,
        "address_house_number": info.house_number,
        "address_postal": info.postal_code,
        "address_locality": info.locality,
        "address_country": info.country,
    }


def contact_rows(person: VaultPerson) -> list[dict]:
    """Personal then Business; blocks with no data at all are skipped."""
    rows = []
    for contact_type, info in (
        (PERSONAL, person.personal_contact),
        (BUSINESS, person.business_contact),
    ):
        if info is not None and not info.is_empty:
            rows.append(_row(person.person_id, contact_type, info))
    return rows

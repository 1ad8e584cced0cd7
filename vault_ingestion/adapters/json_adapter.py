"""
Vault JSON adapter.

Reads the ``vault.json`` export: a root object with ``Persons`` and
``Departments``.  Property names match case-insensitively and trailing
commas before ``]`` or ``}`` are tolerated.  The keys inside ``Custom``
objects keep their original casing because they become custom field keys.

Dates are stored as ISO ``YYYY-MM-DD`` text; a time part is dropped.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

from vault_ingestion.domain.types import (
    DocumentSummary,
    VaultContactInfo,
    VaultContract,
    VaultDepartment,
    VaultDocument,
    VaultManagerReference,
    VaultPerson,
    VaultReference,
    VaultSource,
)
from vault_kernel.exceptions import InvalidDocumentError
from vault_kernel.logging_config import get_logger

logger = get_logger("ingestion.json_adapter")

NO_PERSONS_MESSAGE = "Invalid vault.json file or no persons found."

# Lowercased JSON property -> reference category.
_REFERENCE_KEYS = {
    "location": "location",
    "employer": "employer",
    "costcenter": "cost_center",
    "costbearer": "cost_bearer",
    "team": "team",
    "division": "division",
    "title": "title",
    "organization": "organization",
}

# Objects whose own keys are data, not property names.
_VERBATIM_KEYS = {"custom"}


def strip_trailing_commas(text: str) -> str:
    """Remove commas that directly precede a closing bracket or brace."""
    out: list[str] = []
    in_string = False
    escaped = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
            out.append(ch)
        elif ch == ",":
            j = i + 1
            while j < n and text[j] in " \t\r\n":
                j += 1
            if j >= n or text[j] not in "]}":
                out.append(ch)
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def _normalize_keys(value: Any) -> Any:
    """Recursively lowercase property names, leaving custom field keys alone."""
    if isinstance(value, dict):
        result: dict[str, Any] = {}
        for k, v in value.items():
            if not isinstance(k, str):
                continue
            key = k.strip().lower()
            result[key] = v if key in _VERBATIM_KEYS else _normalize_keys(v)
        return result
    if isinstance(value, list):
        return [_normalize_keys(v) for v in value]
    return value


def _obj(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return value if isinstance(value, str) else str(value)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


class VaultJsonAdapter:
    """Parse a vault JSON export into a VaultDocument."""

    def __init__(self, encoding: str = "utf-8-sig"):
        self._encoding = encoding

    def read(self, source_path: Path) -> VaultDocument:
        source_path = Path(source_path)
        try:
            text = source_path.read_text(encoding=self._encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise InvalidDocumentError(str(source_path), str(exc)) from exc
        return self.parse_text(text, source_name=str(source_path))

    def parse_text(self, text: str, source_name: str = "<memory>") -> VaultDocument:
        root = self._load(text, source_name)
        persons = root.get("persons")
        if not isinstance(persons, list):
            raise InvalidDocumentError(source_name, NO_PERSONS_MESSAGE)

        document = VaultDocument(
            persons=tuple(
                self._person(p, source_name) for p in persons if isinstance(p, dict)
            ),
            departments=tuple(
                self._department(d)
                for d in root.get("departments") or ()
                if isinstance(d, dict)
            ),
        )
        logger.info(
            "vault_document_parsed",
            extra={
                "source": source_name,
                "persons": len(document.persons),
                "departments": len(document.departments),
            },
        )
        return document

    def summarize(self, source_path: Path) -> DocumentSummary:
        document = self.read(source_path)
        systems: list[str] = []
        for person in document.persons:
            for system_id in [person.source_id] + [c.source_id for c in person.contracts]:
                if system_id and system_id not in systems:
                    systems.append(system_id)
        return DocumentSummary(
            person_count=len(document.persons),
            contract_count=sum(len(p.contracts) for p in document.persons),
            department_count=len(document.departments),
            source_systems=tuple(systems),
        )

    # -------------------------------------------------------------------------
    # Parsing helpers
    # -------------------------------------------------------------------------

    def _load(self, text: str, source_name: str) -> dict[str, Any]:
        try:
            data = json.loads(strip_trailing_commas(text))
        except json.JSONDecodeError as exc:
            raise InvalidDocumentError(
                source_name, f"{exc.msg} at line {exc.lineno} column {exc.colno}"
            ) from exc
        if not isinstance(data, dict):
            raise InvalidDocumentError(source_name, NO_PERSONS_MESSAGE)
        return _normalize_keys(data)

    @staticmethod
    def _date(value: Any, source_name: str) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text[:10]).isoformat()
        except ValueError as exc:
            raise InvalidDocumentError(source_name, f"invalid date {text!r}") from exc

    @staticmethod
    def _number(value: Any, source_name: str) -> float | None:
        if value is None or value == "":
            return None
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidDocumentError(source_name, f"invalid number {value!r}") from exc

    @staticmethod
    def _source(data: Any) -> VaultSource | None:
        if not isinstance(data, dict):
            return None
        return VaultSource(
            system_id=_optional_str(data.get("systemid")),
            display_name=_optional_str(data.get("displayname")),
            identification_key=_optional_str(data.get("identificationkey")),
        )

    @staticmethod
    def _reference(data: Any) -> VaultReference | None:
        if not isinstance(data, dict):
            return None
        return VaultReference(
            external_id=_optional_str(data.get("externalid")),
            code=_optional_str(data.get("code")),
            name=_optional_str(data.get("name")),
        )

    @staticmethod
    def _manager(data: Any) -> VaultManagerReference | None:
        if not isinstance(data, dict):
            return None
        return VaultManagerReference(
            person_id=_optional_str(data.get("personid")),
            external_id=_optional_str(data.get("externalid")),
            display_name=_optional_str(data.get("displayname")),
            email=_optional_str(data.get("email")),
        )

    def _department(self, data: dict[str, Any]) -> VaultDepartment:
        return VaultDepartment(
            external_id=_optional_str(data.get("externalid")),
            display_name=_optional_str(data.get("displayname")),
            code=_optional_str(data.get("code")),
            parent_external_id=_optional_str(data.get("parentexternalid")),
            manager=self._manager(data.get("manager")),
            source=self._source(data.get("source")),
        )

    @staticmethod
    def _contact(data: Any) -> VaultContactInfo | None:
        if not isinstance(data, dict):
            return None
        address = _obj(data.get("address"))
        phone = _obj(data.get("phone"))
        return VaultContactInfo(
            email=_optional_str(data.get("email")),
            phone_mobile=_optional_str(phone.get("mobile")),
            phone_fixed=_optional_str(phone.get("fixed")),
            street=_optional_str(address.get("street")),
            house_number=_optional_str(address.get("housenumber")),
            postal_code=_optional_str(address.get("postalcode")),
            locality=_optional_str(address.get("locality")),
            country=_optional_str(address.get("country")),
        )

    def _contract(self, data: dict[str, Any], source_name: str) -> VaultContract:
        contract_type = _obj(data.get("type"))
        details = _obj(data.get("details"))
        references = {}
        for key, category in _REFERENCE_KEYS.items():
            ref = self._reference(data.get(key))
            if ref is not None:
                references[category] = ref
        department = data.get("department")
        sequence = self._number(details.get("sequence"), source_name)
        return VaultContract(
            external_id=_optional_str(data.get("externalid")),
            start_date=self._date(data.get("startdate"), source_name),
            end_date=self._date(data.get("enddate"), source_name),
            type_code=_optional_str(contract_type.get("code")),
            type_description=_optional_str(contract_type.get("description")),
            fte=self._number(details.get("fte"), source_name),
            hours_per_week=self._number(details.get("hoursperweek"), source_name),
            percentage=self._number(details.get("percentage"), source_name),
            sequence=int(sequence) if sequence is not None else None,
            references=references,
            department=self._department(department) if isinstance(department, dict) else None,
            manager=self._manager(data.get("manager")),
            source=self._source(data.get("source")),
            custom=dict(_obj(data.get("custom"))),
        )

    def _person(self, data: dict[str, Any], source_name: str) -> VaultPerson:
        details = _obj(data.get("details"))
        name = _obj(data.get("name"))
        status = _obj(data.get("status"))
        exclusion = _obj(data.get("exclusiondetails"))
        contact = _obj(data.get("contact"))
        return VaultPerson(
            person_id=_optional_str(data.get("personid")) or "",
            display_name=_optional_str(data.get("displayname")) or "",
            external_id=_optional_str(data.get("externalid")),
            user_name=_optional_str(data.get("username")),
            gender=_optional_str(details.get("gender")),
            honorific_prefix=_optional_str(details.get("honorificprefix")),
            honorific_suffix=_optional_str(details.get("honorificsuffix")),
            birth_date=self._date(details.get("birthdate"), source_name),
            birth_locality=_optional_str(details.get("birthlocality")),
            marital_status=_optional_str(details.get("maritalstatus")),
            initials=_optional_str(name.get("initials")),
            given_name=_optional_str(name.get("givenname")),
            nick_name=_optional_str(name.get("nickname")),
            family_name=_optional_str(name.get("familyname")),
            family_name_prefix=_optional_str(name.get("familynameprefix")),
            family_name_partner=_optional_str(name.get("familynamepartner")),
            family_name_partner_prefix=_optional_str(name.get("familynamepartnerprefix")),
            convention=_optional_str(name.get("convention")),
            blocked=_flag(status.get("blocked")),
            status_reason=_optional_str(status.get("reason")),
            excluded=_flag(data.get("excluded")),
            hr_excluded=_flag(exclusion.get("hr")),
            manual_excluded=_flag(exclusion.get("manual")),
            primary_manager=self._manager(data.get("primarymanager")),
            source=self._source(data.get("source")),
            personal_contact=self._contact(contact.get("personal")),
            business_contact=self._contact(contact.get("business")),
            custom=dict(_obj(data.get("custom"))),
            contracts=tuple(
                self._contract(c, source_name)
                for c in data.get("contracts") or ()
                if isinstance(c, dict)
            ),
        )


__all__ = ["NO_PERSONS_MESSAGE", "VaultJsonAdapter", "strip_trailing_commas"]

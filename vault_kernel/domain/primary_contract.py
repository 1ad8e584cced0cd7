"""
Primary contract resolution -- pure functional core, zero I/O.

A person may hold several contracts; exactly one is "primary".  The winner is
chosen by a cascade:

    1. Contract status, always first and not configurable:
       Active (1) < Future (2) < Past (3) < anything else (4).
    2. Each active configured field, in ascending priority_order, as a stable
       secondary key (ASC or DESC).
    3. Remaining ties keep the input order.

Field values resolve against built-in contract attributes first (fte,
dates, every lookup's id/code/name, department hierarchy fields, ...).  Any
other name is looked up case-insensitively in the contract's custom fields,
compared as a number when it parses as one and as text otherwise.

The step-recording variant replays the same cascade one field at a time so
a preview always agrees with the real winner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Sequence

from vault_kernel.domain.text import format_display_name
from vault_kernel.domain.values import ContractStatus, PrimaryContractField

# Lookup categories whose id/external_id/code/name are addressable by field name.
REFERENCE_CATEGORIES: tuple[str, ...] = (
    "location",
    "cost_center",
    "cost_bearer",
    "employer",
    "team",
    "department",
    "division",
    "title",
    "organization",
)

_NUMERIC_FIELDS = {"fte", "hours_per_week", "percentage"}

_TEXT_FIELDS = {
    "start_date": "start_date",
    "end_date": "end_date",
    "external_id": "external_id",
    "type_code": "type_code",
    "type_description": "type_description",
    "person_name": "person_name",
    "person_external_id": "person_external_id",
    "manager_person_id": "manager_person_external_id",
    "manager_person_external_id": "manager_person_external_id",
    "manager_external_id": "manager_person_external_id",
    "manager_person_name": "manager_person_name",
    "department_manager_person_id": "department_manager_person_id",
    "department_manager_name": "department_manager_name",
    "department_parent_external_id": "department_parent_external_id",
    "department_parent_department_name": "department_parent_name",
    "contract_status": "status",
}

_DISPLAY_NAMES = {
    "fte": "FTE",
    "hours_per_week": "Hours Per Week",
    "percentage": "Percentage",
    "sequence": "Sequence",
    "start_date": "Start Date",
    "end_date": "End Date",
    "contract_id": "Contract ID",
    "external_id": "External ID",
    "type_code": "Type Code",
    "type_description": "Type Description",
    "manager_person_id": "Manager Person ID",
    "manager_person_external_id": "Manager Person External ID",
    "contract_status": "Contract Status",
    "contract_date_range": "Contract Date Range",
}


@dataclass(frozen=True)
class ReferenceSnapshot:
    """Resolved lookup reference on a contract."""

    external_id: str | None = None
    code: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class ContractSnapshot:
    """Read model of one contract with its references joined in."""

    contract_id: int
    person_id: str
    status: str = ContractStatus.NO_DATES.value
    external_id: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    type_code: str | None = None
    type_description: str | None = None
    fte: float | None = None
    hours_per_week: float | None = None
    percentage: float | None = None
    sequence: int | None = None
    source: str | None = None
    person_name: str | None = None
    person_external_id: str | None = None
    manager_person_external_id: str | None = None
    manager_person_name: str | None = None
    department_source: str | None = None
    department_manager_person_id: str | None = None
    department_manager_name: str | None = None
    department_parent_external_id: str | None = None
    department_parent_name: str | None = None
    references: Mapping[str, ReferenceSnapshot] = field(default_factory=dict)
    custom_fields: Mapping[str, Any] = field(default_factory=dict)

    @property
    def date_range(self) -> str:
        return f"{self.start_date or ''} - {self.end_date or ''}"

    def reference(self, category: str) -> ReferenceSnapshot:
        return self.references.get(category) or ReferenceSnapshot()


@dataclass(frozen=True)
class ContractSummary:
    """One line of a selection step's top-N ordering."""

    contract_id: int
    contract_status: str
    display_value: str
    is_winner: bool


@dataclass(frozen=True)
class SelectionStep:
    """Ordering of the contracts after one step of the cascade."""

    step_number: int
    field_name: str
    sort_direction: str
    description: str
    contract_order: tuple[ContractSummary, ...]


@dataclass(frozen=True)
class PrimaryContractSelection:
    """Winner plus the step-by-step explanation of how it was chosen."""

    winner: ContractSnapshot | None
    steps: tuple[SelectionStep, ...] = ()


# -----------------------------------------------------------------------------
# Status
# -----------------------------------------------------------------------------


def contract_status(start_date: str | None, end_date: str | None, today: date) -> ContractStatus:
    """Classify a contract relative to ``today`` (dates are ISO text)."""
    if not start_date:
        return ContractStatus.NO_DATES
    today_iso = today.isoformat()
    if start_date[:10] > today_iso:
        return ContractStatus.FUTURE
    if end_date and end_date[:10] < today_iso:
        return ContractStatus.PAST
    return ContractStatus.ACTIVE


def status_rank(status: str | None) -> int:
    if status == ContractStatus.ACTIVE.value:
        return 1
    if status == ContractStatus.FUTURE.value:
        return 2
    if status == ContractStatus.PAST.value:
        return 3
    return 4


# -----------------------------------------------------------------------------
# Field resolution
# -----------------------------------------------------------------------------


def _reference_field(contract: ContractSnapshot, name: str) -> tuple[bool, str]:
    for category in REFERENCE_CATEGORIES:
        prefix = f"{category}_"
        if not name.startswith(prefix):
            continue
        attr = name[len(prefix):]
        ref = contract.reference(category)
        if attr in ("id", "external_id"):
            return True, ref.external_id or ""
        if attr == "code":
            return True, ref.code or ""
        if attr == "name":
            return True, ref.name or ""
    return False, ""


def _custom_field_value(contract: ContractSnapshot, key: str) -> Any:
    wanted = key.lower()
    for k, v in contract.custom_fields.items():
        if k.lower() != wanted:
            continue
        if v is None:
            return ""
        text = str(v)
        try:
            return float(text)
        except ValueError:
            return text
    return ""


def field_value(contract: ContractSnapshot, field_name: str) -> Any:
    """Value of ``field_name`` on ``contract`` as used by the cascade."""
    name = field_name.strip().lower()
    if name in _NUMERIC_FIELDS:
        value = getattr(contract, name)
        return float(value) if value is not None else 0.0
    if name == "sequence":
        return contract.sequence if contract.sequence is not None else 0
    if name == "contract_id":
        return contract.contract_id
    if name == "contract_date_range":
        return contract.date_range
    if name in _TEXT_FIELDS:
        return getattr(contract, _TEXT_FIELDS[name]) or ""
    found, value = _reference_field(contract, name)
    if found:
        return value
    return _custom_field_value(contract, field_name)


def is_core_field(field_name: str) -> bool:
    """True when ``field_name`` is a built-in contract attribute."""
    name = field_name.strip().lower()
    if name in _NUMERIC_FIELDS or name in _TEXT_FIELDS or name in _DISPLAY_NAMES:
        return True
    return any(
        name == f"{category}_{attr}"
        for category in REFERENCE_CATEGORIES
        for attr in ("id", "external_id", "code", "name")
    )


def field_display_name(field_name: str) -> str:
    name = field_name.strip().lower()
    if name in _DISPLAY_NAMES:
        return _DISPLAY_NAMES[name]
    return format_display_name(field_name)


def _sort_key(value: Any) -> tuple:
    # Numbers order before text so mixed custom values stay comparable.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, float(value), "")
    return (1, 0.0, str(value))


# -----------------------------------------------------------------------------
# Cascade
# -----------------------------------------------------------------------------


def active_fields(config: Iterable[PrimaryContractField]) -> list[PrimaryContractField]:
    """Active configuration rows in ascending priority_order."""
    return sorted((f for f in config if f.is_active), key=lambda f: f.priority_order)


def order_contracts(
    contracts: Sequence[ContractSnapshot],
    fields: Sequence[PrimaryContractField],
) -> list[ContractSnapshot]:
    """
    Order ``contracts`` by status, then by each of ``fields`` in turn.

    Stable sorts applied from the least significant key to the most
    significant one give the same result as a single multi-key sort.
    """
    ordered = list(contracts)
    for f in reversed(fields):
        ordered.sort(
            key=lambda c, name=f.field_name: _sort_key(field_value(c, name)),
            reverse=f.descending,
        )
    ordered.sort(key=lambda c: status_rank(c.status))
    return ordered


def resolve_primary_contract(
    contracts: Sequence[ContractSnapshot],
    config: Iterable[PrimaryContractField],
) -> ContractSnapshot | None:
    """Return the primary contract, or None when there are no contracts."""
    if not contracts:
        return None
    ordered = order_contracts(contracts, active_fields(config))
    return ordered[0]


def _display_value(contract: ContractSnapshot, field_name: str) -> str:
    value = field_value(contract, field_name)
    text = str(value) if value is not None else ""
    return text if text.strip() else "-"


def _summaries(ordered: list[ContractSnapshot], display, top_n: int) -> tuple[ContractSummary, ...]:
    winner = ordered[0] if ordered else None
    return tuple(
        ContractSummary(
            contract_id=c.contract_id,
            contract_status=c.status,
            display_value=display(c),
            is_winner=winner is not None and c.contract_id == winner.contract_id,
        )
        for c in ordered[:top_n]
    )


def resolve_with_steps(
    contracts: Sequence[ContractSnapshot],
    config: Iterable[PrimaryContractField],
    top_n: int = 3,
) -> PrimaryContractSelection:
    """Resolve the primary contract and record the leader after every step."""
    if not contracts:
        return PrimaryContractSelection(winner=None, steps=())

    fields = active_fields(config)
    steps: list[SelectionStep] = []

    ordered = order_contracts(contracts, [])
    if not fields:
        steps.append(
            SelectionStep(
                step_number=1,
                field_name="Contract Status",
                sort_direction="Ascending",
                description="No configuration - using fallback ordering",
                contract_order=_summaries(ordered, lambda c: c.status, top_n),
            )
        )
        return PrimaryContractSelection(winner=ordered[0], steps=tuple(steps))

    steps.append(
        SelectionStep(
            step_number=1,
            field_name="Contract Status",
            sort_direction="Active > Future > Past",
            description="Active contracts prioritized",
            contract_order=_summaries(ordered, lambda c: c.status, top_n),
        )
    )

    for i, f in enumerate(fields, start=1):
        ordered = order_contracts(contracts, fields[:i])
        label = f.display_name or field_display_name(f.field_name)
        direction = "Descending" if f.descending else "Ascending"
        steps.append(
            SelectionStep(
                step_number=i + 1,
                field_name=label,
                sort_direction=direction,
                description=f"{label} ({direction})",
                contract_order=_summaries(
                    ordered, lambda c, name=f.field_name: _display_value(c, name), top_n
                ),
            )
        )

    return PrimaryContractSelection(winner=ordered[0], steps=tuple(steps))

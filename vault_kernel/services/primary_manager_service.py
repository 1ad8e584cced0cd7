"""
PrimaryManagerService -- compute, persist and detect primary managers.

Responsibility:
    Derives each person's primary manager from the primary contract chosen
    by the configured cascade:

        contract_based    the primary contract's manager
        department_based  the manager of the primary contract's department
        from_import       the value carried by the vault document (never
                          computed here; only detected)

    ``refresh_all`` recomputes every person one at a time: the cascade runs
    in memory per person, so this cannot be a single UPDATE statement.

    ``PrimaryManagerDetector`` infers which policy produced the managers
    already stored, by sampling persons and counting which recomputation
    agrees with the stored value more often.  It only writes a preference,
    never a person row.

Failure modes:
    - UnsupportedPrimaryManagerPolicyError when asked to compute from_import.
    - PersonNotFoundError from update_for_person for an unknown person_id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select

from vault_kernel.domain.clock import Clock, SystemClock
from vault_kernel.domain.primary_contract import (
    ContractSnapshot,
    SelectionStep,
    resolve_primary_contract,
    resolve_with_steps,
)
from vault_kernel.domain.values import PrimaryContractField, PrimaryManagerLogic
from vault_kernel.exceptions import PersonNotFoundError, UnsupportedPrimaryManagerPolicyError
from vault_kernel.logging_config import get_logger
from vault_kernel.models.contract import Contract
from vault_kernel.models.person import Person
from vault_kernel.selectors.contract_selector import ContractSelector
from vault_kernel.selectors.person_selector import (
    PersonSelector,
    PersonSummary,
    PrimaryManagerStatistics,
)
from vault_kernel.services.base import BaseService
from vault_kernel.services.preference_service import PreferenceService
from vault_kernel.services.primary_contract_config_service import PrimaryContractConfigService

logger = get_logger("services.primary_manager")

DEFAULT_DETECTION_SAMPLE_SIZE = 100


@dataclass(frozen=True)
class PrimaryContractPreview:
    """Winning contract for one person plus how it was chosen."""

    person: PersonSummary
    winning_contract: ContractSnapshot | None
    all_contracts: tuple[ContractSnapshot, ...]
    selection_steps: tuple[SelectionStep, ...]


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of sampling stored primary managers."""

    logic: PrimaryManagerLogic | None
    sample_size: int
    contract_matches: int
    department_matches: int


def manager_from_contract(
    primary: ContractSnapshot | None, logic: PrimaryManagerLogic
) -> str | None:
    """Manager id for ``primary`` under ``logic``."""
    if primary is None:
        return None
    if logic == PrimaryManagerLogic.CONTRACT_BASED:
        return primary.manager_person_external_id or None
    if logic == PrimaryManagerLogic.DEPARTMENT_BASED:
        return primary.department_manager_person_id or None
    raise UnsupportedPrimaryManagerPolicyError(logic.value)


def choose_policy(contract_matches: int, department_matches: int) -> PrimaryManagerLogic | None:
    """Majority vote; no votes is undetermined, a tie favours department_based."""
    if contract_matches == 0 and department_matches == 0:
        return None
    if contract_matches > department_matches:
        return PrimaryManagerLogic.CONTRACT_BASED
    return PrimaryManagerLogic.DEPARTMENT_BASED


class PrimaryManagerService(BaseService):
    """Computes and persists primary managers. Flush-only."""

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        config: Sequence[PrimaryContractField] | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._contracts = ContractSelector(session, self._clock)
        self._persons = PersonSelector(session)
        self._config = list(config) if config is not None else None

    def _active_config(self) -> list[PrimaryContractField]:
        if self._config is None:
            self._config = PrimaryContractConfigService(self.session).get_active()
        return self._config

    def primary_contract(self, person_id: str) -> ContractSnapshot | None:
        contracts = self._contracts.contracts_for_person(person_id)
        return resolve_primary_contract(contracts, self._active_config())

    def calculate_for_person(self, person_id: str, logic: PrimaryManagerLogic) -> str | None:
        if logic == PrimaryManagerLogic.FROM_IMPORT:
            raise UnsupportedPrimaryManagerPolicyError(logic.value)
        return manager_from_contract(self.primary_contract(person_id), logic)

    def update_for_person(self, person_id: str, logic: PrimaryManagerLogic) -> str | None:
        person = self.session.get(Person, person_id)
        if person is None:
            raise PersonNotFoundError(person_id)
        manager_id = self.calculate_for_person(person_id, logic)
        person.primary_manager_person_id = manager_id
        person.primary_manager_source = logic.provenance
        person.primary_manager_updated_at = self._clock.now()
        self.session.flush()
        return manager_id

    def update_for_department(
        self, department_external_id: str, source: str, logic: PrimaryManagerLogic
    ) -> int:
        """Recompute every person holding a contract in the given department."""
        person_ids = list(
            self.session.scalars(
                select(Contract.person_id)
                .where(
                    Contract.department_external_id == department_external_id,
                    Contract.department_source == source,
                )
                .distinct()
                .order_by(Contract.person_id)
            )
        )
        for person_id in person_ids:
            self.update_for_person(person_id, logic)
        logger.info(
            "primary_manager_department_refreshed",
            extra={
                "department_external_id": department_external_id,
                "source": source,
                "persons_updated": len(person_ids),
            },
        )
        return len(person_ids)

    def refresh_all(self, logic: PrimaryManagerLogic) -> int:
        """Recompute every person sequentially. Returns persons updated."""
        if logic == PrimaryManagerLogic.FROM_IMPORT:
            raise UnsupportedPrimaryManagerPolicyError(logic.value)
        updated = 0
        for person_id in self._persons.all_person_ids():
            self.update_for_person(person_id, logic)
            updated += 1
        logger.info(
            "primary_manager_refresh_completed",
            extra={"logic": logic.value, "persons_updated": updated},
        )
        return updated

    def get_statistics(self) -> PrimaryManagerStatistics:
        return self._persons.primary_manager_statistics()

    def preview_primary_contract(self, person_id: str) -> PrimaryContractPreview | None:
        person = self._persons.get_summary(person_id)
        if person is None:
            return None
        contracts = self._contracts.contracts_for_person(person_id)
        if not contracts:
            return None
        selection = resolve_with_steps(contracts, self._active_config())
        return PrimaryContractPreview(
            person=person,
            winning_contract=selection.winner,
            all_contracts=tuple(contracts),
            selection_steps=selection.steps,
        )


class PrimaryManagerDetector:
    """Infers which policy produced the stored primary managers."""

    def __init__(
        self,
        session,
        clock: Clock | None = None,
        sample_size: int = DEFAULT_DETECTION_SAMPLE_SIZE,
    ):
        self._session = session
        self._service = PrimaryManagerService(session, clock)
        self._persons = PersonSelector(session)
        self._sample_size = sample_size

    def detect(self) -> DetectionResult:
        sample = self._persons.sample_with_primary_manager(self._sample_size)
        contract_matches = 0
        department_matches = 0
        for person_id, stored in sample:
            primary = self._service.primary_contract(person_id)
            if manager_from_contract(primary, PrimaryManagerLogic.CONTRACT_BASED) == stored:
                contract_matches += 1
            if manager_from_contract(primary, PrimaryManagerLogic.DEPARTMENT_BASED) == stored:
                department_matches += 1

        result = DetectionResult(
            logic=choose_policy(contract_matches, department_matches),
            sample_size=len(sample),
            contract_matches=contract_matches,
            department_matches=department_matches,
        )
        logger.info(
            "primary_manager_policy_detected",
            extra={
                "logic": result.logic.value if result.logic else None,
                "sample_size": result.sample_size,
                "contract_matches": contract_matches,
                "department_matches": department_matches,
            },
        )
        return result

    def detect_and_store(self) -> DetectionResult:
        """Detect and, when determined, save the policy as a preference."""
        result = self.detect()
        if result.logic is not None:
            PreferenceService(self._session).set_primary_manager_logic(result.logic)
        return result

"""Key/value preferences persisted in ``user_preferences``."""

from __future__ import annotations

from vault_kernel.domain.values import PrimaryManagerLogic
from vault_kernel.logging_config import get_logger
from vault_kernel.models.settings import UserPreference
from vault_kernel.services.base import BaseService

logger = get_logger("services.preferences")

LAST_PRIMARY_MANAGER_LOGIC = "last_primary_manager_logic"


class PreferenceService(BaseService):
    def get(self, key: str, default: str | None = None) -> str | None:
        row = self.session.get(UserPreference, key)
        if row is None or row.value is None:
            return default
        return row.value

    def set(self, key: str, value: str | None) -> None:
        row = self.session.get(UserPreference, key)
        if row is None:
            self.session.add(UserPreference(key=key, value=value))
        else:
            row.value = value
        self.session.flush()
        logger.debug("preference_set", extra={"key": key, "value": value})

    def get_primary_manager_logic(self) -> PrimaryManagerLogic | None:
        raw = self.get(LAST_PRIMARY_MANAGER_LOGIC)
        if raw is None:
            return None
        try:
            return PrimaryManagerLogic(raw)
        except ValueError:
            logger.warning("preference_value_unrecognized", extra={"key": LAST_PRIMARY_MANAGER_LOGIC, "value": raw})
            return None

    def set_primary_manager_logic(self, logic: PrimaryManagerLogic) -> None:
        self.set(LAST_PRIMARY_MANAGER_LOGIC, logic.value)

"""
Settings loader (``vault_config.loader``).

Responsibility
--------------
Reads the bundled ``defaults.yaml``, overlays an optional user file
(top-level keys replace the defaults) and applies environment overrides,
then parses the result into a frozen ``VaultSettings``.

Failure modes
-------------
* Missing user file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong shape or values  -> ``SettingsFileError`` naming the file and key.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from vault_config.schema import VaultSettings
from vault_kernel.domain.values import PrimaryContractField, PrimaryManagerLogic, SortOrder
from vault_kernel.exceptions import SettingsFileError

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

DATABASE_URL_ENV = "VAULT_DATABASE_URL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        SettingsFileError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise SettingsFileError(str(path), "top level must be a mapping")
    return data


def _positive_int(data: Mapping[str, Any], key: str, origin: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise SettingsFileError(origin, f"{key} must be a positive integer, got {value!r}")
    return value


def parse_primary_contract_field(data: Any, origin: str) -> PrimaryContractField:
    if not isinstance(data, dict) or not data.get("field_name"):
        raise SettingsFileError(origin, f"primary contract field needs field_name: {data!r}")
    raw_order = str(data.get("sort_order", "DESC")).upper()
    try:
        sort_order = SortOrder(raw_order)
    except ValueError:
        raise SettingsFileError(origin, f"sort_order must be ASC or DESC, got {raw_order!r}")
    return PrimaryContractField(
        field_name=str(data["field_name"]),
        sort_order=sort_order,
        priority_order=int(data.get("priority_order", 1)),
        is_active=bool(data.get("is_active", True)),
        display_name=data.get("display_name"),
    )


def parse_settings(data: Mapping[str, Any], origin: str = "<settings>") -> VaultSettings:
    try:
        logic = PrimaryManagerLogic(data["primary_manager_logic"])
    except ValueError:
        raise SettingsFileError(
            origin, f"unknown primary_manager_logic {data['primary_manager_logic']!r}"
        )

    fields = data.get("primary_contract_defaults") or []
    if not isinstance(fields, list) or not fields:
        raise SettingsFileError(origin, "primary_contract_defaults must be a non-empty list")

    return VaultSettings(
        database_url=str(data["database_url"]),
        progress_batch_size=_positive_int(data, "progress_batch_size", origin),
        detection_sample_size=_positive_int(data, "detection_sample_size", origin),
        primary_manager_logic=logic,
        primary_contract_defaults=tuple(parse_primary_contract_field(f, origin) for f in fields),
    )


def load_settings(
    path: Path | None = None, environ: Mapping[str, str] | None = None
) -> VaultSettings:
    """Defaults, overlaid by ``path`` when given, then by the environment."""
    data = load_yaml_file(DEFAULTS_PATH)
    origin = str(DEFAULTS_PATH)
    if path is not None:
        data.update(load_yaml_file(Path(path)))
        origin = str(path)

    env = os.environ if environ is None else environ
    if env.get(DATABASE_URL_ENV):
        data["database_url"] = env[DATABASE_URL_ENV]

    return parse_settings(data, origin)

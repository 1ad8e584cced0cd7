"""
Reference identity resolution.

A contract references lookup entities as ``{ExternalId?, Name?}``.  The
stored identity is:

    ExternalId present     -> that ExternalId, unchanged
    only Name present      -> one generated id per (source, Name) pair
    neither                -> None

Generated ids are remembered in a caller-owned "seen" map keyed by
``"<source>|<Name>"``, so every contract naming the same entity under the
same source ends up with the same id.  The default id is a name-based
UUID (uuid5) of that key, so importing the same document again yields the
same ids and INSERT OR IGNORE finds the existing lookup rows.
"""

from __future__ import annotations

from typing import Callable, MutableMapping
from uuid import NAMESPACE_URL, uuid5

from vault_ingestion.domain.types import VaultReference


def seen_key(source: str | None, name: str) -> str:
    return f"{source or ''}|{name}"


_NAMESPACE = uuid5(NAMESPACE_URL, "vault-import/reference")


def _name_based_uuid(key: str) -> str:
    return str(uuid5(_NAMESPACE, key))


class ReferenceIdentityResolver:
    """Pick or generate the external id stored for a reference."""

    def __init__(self, id_factory: Callable[[str], str] = _name_based_uuid):
        self._new_id = id_factory

    def resolve(
        self,
        reference: VaultReference | None,
        source: str | None,
        seen: MutableMapping[str, str],
    ) -> str | None:
        if reference is None:
            return None
        if reference.external_id and reference.external_id.strip():
            return reference.external_id
        if not reference.name or not reference.name.strip():
            return None

        key = seen_key(source, reference.name)
        existing = seen.get(key)
        if existing is not None:
            return existing
        generated = self._new_id(key)
        seen[key] = generated
        return generated

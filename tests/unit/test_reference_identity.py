"""Tests for ReferenceIdentityResolver."""

from itertools import count

from hypothesis import given
from hypothesis import strategies as st

from vault_ingestion.domain.types import VaultReference
from vault_ingestion.resolution.identity import ReferenceIdentityResolver, seen_key


def _sequential_ids():
    counter = count(1)
    return lambda _key: f"gen-{next(counter)}"


class TestResolve:
    def test_none_reference(self):
        assert ReferenceIdentityResolver().resolve(None, "S1", {}) is None

    def test_external_id_returned_unchanged(self):
        seen: dict[str, str] = {}
        ref = VaultReference(external_id="L1", name="Amsterdam")
        assert ReferenceIdentityResolver().resolve(ref, "S1", seen) == "L1"
        assert seen == {}

    def test_no_external_id_and_no_name(self):
        ref = VaultReference(external_id="  ", code="X", name="")
        assert ReferenceIdentityResolver().resolve(ref, "S1", {}) is None

    def test_name_only_generates_and_records(self):
        resolver = ReferenceIdentityResolver(id_factory=_sequential_ids())
        seen: dict[str, str] = {}
        result = resolver.resolve(VaultReference(name="Engineer"), "S1", seen)
        assert result == "gen-1"
        assert seen == {"S1|Engineer": "gen-1"}

    def test_same_name_same_source_reuses_id(self):
        resolver = ReferenceIdentityResolver(id_factory=_sequential_ids())
        seen: dict[str, str] = {}
        first = resolver.resolve(VaultReference(name="Engineer"), "S1", seen)
        second = resolver.resolve(VaultReference(name="Engineer"), "S1", seen)
        assert first == second == "gen-1"

    def test_same_name_other_source_gets_new_id(self):
        resolver = ReferenceIdentityResolver(id_factory=_sequential_ids())
        seen: dict[str, str] = {}
        a = resolver.resolve(VaultReference(name="Engineer"), "S1", seen)
        b = resolver.resolve(VaultReference(name="Engineer"), "S2", seen)
        assert a != b
        assert set(seen) == {"S1|Engineer", "S2|Engineer"}

    def test_missing_source_keys_on_empty_prefix(self):
        assert seen_key(None, "Engineer") == "|Engineer"

    def test_default_ids_are_stable_across_runs(self):
        first = ReferenceIdentityResolver().resolve(VaultReference(name="X"), "S1", {})
        second = ReferenceIdentityResolver().resolve(VaultReference(name="X"), "S1", {})
        other = ReferenceIdentityResolver().resolve(VaultReference(name="X"), "S2", {})
        assert first == second
        assert first != other
        assert len(first) == 36


_names = st.text(alphabet="abcdefgh ", min_size=1, max_size=6).filter(lambda s: s.strip())


class TestResolveProperties:
    @given(st.lists(st.tuples(st.sampled_from(["S1", "S2", None]), _names), max_size=30))
    def test_one_id_per_source_and_name(self, pairs):
        resolver = ReferenceIdentityResolver()
        seen: dict[str, str] = {}
        ids = {}
        for source, name in pairs:
            ids.setdefault((source, name), set()).add(
                resolver.resolve(VaultReference(name=name), source, seen)
            )
        assert all(len(v) == 1 for v in ids.values())
        assert len({next(iter(v)) for v in ids.values()}) == len(ids)

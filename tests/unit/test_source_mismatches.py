"""Tests for the orphaned-reference source diagnostic."""

from vault_ingestion.services.consistency_validator import source_mismatches


class TestSourceMismatches:
    def test_known_under_other_source(self):
        orphaned = [("L1", "S2"), ("L1", None)]
        assert source_mismatches(orphaned, {"L1": "S1"}) == {"L1": "S1"}

    def test_unknown_external_id_is_not_a_mismatch(self):
        assert source_mismatches([("L7", None)], {"L1": "S1"}) == {}

    def test_same_source_is_not_a_mismatch(self):
        assert source_mismatches([("L1", "S1")], {"L1": "S1"}) == {}

    def test_empty(self):
        assert source_mismatches([], {}) == {}

"""Tests for the parent-before-child department ordering."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from vault_ingestion.domain.types import DepartmentRecord
from vault_ingestion.resolution.department_sorter import sort_departments
from vault_kernel.exceptions import DepartmentCycleError


def _dept(external_id, parent=None, source="S1", name=None):
    return DepartmentRecord(
        external_id=external_id,
        source=source,
        display_name=name or external_id,
        parent_external_id=parent,
    )


def _ids(departments):
    return [d.external_id for d in departments]


class TestSortDepartments:
    def test_parent_moves_before_child(self):
        ordered = sort_departments([_dept("C", "B"), _dept("B", "A"), _dept("A")])
        assert _ids(ordered) == ["A", "B", "C"]

    def test_roots_keep_input_order(self):
        assert _ids(sort_departments([_dept("X"), _dept("Y"), _dept("Z")])) == ["X", "Y", "Z"]

    def test_missing_parent_sorts_as_root(self):
        ordered = sort_departments([_dept("B", "nowhere"), _dept("A")])
        assert _ids(ordered) == ["B", "A"]

    def test_parent_scoped_to_source(self):
        # B's parent "A" only exists under S2, so under S1 it is a root.
        ordered = sort_departments([_dept("B", "A", source="S1"), _dept("A", source="S2")])
        assert _ids(ordered) == ["B", "A"]

    def test_duplicate_key_first_wins(self):
        ordered = sort_departments([_dept("A", name="first"), _dept("A", name="second")])
        assert len(ordered) == 1
        assert ordered[0].display_name == "first"

    def test_empty(self):
        assert sort_departments([]) == []


class TestCycleDetection:
    def test_two_node_cycle(self):
        with pytest.raises(DepartmentCycleError) as exc_info:
            sort_departments([_dept("A", "B", name="Alpha"), _dept("B", "A", name="Beta")])
        err = exc_info.value
        assert err.code == "DEPARTMENT_CYCLE"
        assert err.external_id == "A"
        assert err.display_name == "Alpha"
        assert err.chain == ["A", "B", "A"]
        assert str(err).startswith(
            "Circular dependency detected in department hierarchy at: A (Alpha)"
        )

    def test_self_parent(self):
        with pytest.raises(DepartmentCycleError) as exc_info:
            sort_departments([_dept("A", "A")])
        assert exc_info.value.chain == ["A", "A"]

    def test_cycle_below_a_valid_root(self):
        with pytest.raises(DepartmentCycleError) as exc_info:
            sort_departments([_dept("R"), _dept("X", "Y"), _dept("Y", "Z"), _dept("Z", "X")])
        assert exc_info.value.chain[0] == exc_info.value.chain[-1]
        assert set(exc_info.value.chain) == {"X", "Y", "Z"}


@st.composite
def _forests(draw):
    """Random acyclic trees: each node may only point at an earlier node."""
    n = draw(st.integers(min_value=0, max_value=25))
    nodes = []
    for i in range(n):
        parent = draw(st.one_of(st.none(), st.integers(min_value=0, max_value=max(i - 1, 0))))
        nodes.append(_dept(f"D{i}", f"D{parent}" if parent is not None and i > 0 else None))
    return draw(st.permutations(nodes))


class TestSortProperties:
    @given(_forests())
    def test_every_parent_precedes_its_children(self, departments):
        ordered = sort_departments(departments)
        position = {d.external_id: i for i, d in enumerate(ordered)}
        assert len(ordered) == len(departments)
        for dept in ordered:
            if dept.parent_external_id is not None:
                assert position[dept.parent_external_id] < position[dept.external_id]

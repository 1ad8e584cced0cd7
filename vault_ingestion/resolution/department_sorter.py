"""
Topological ordering of departments, parents before children.

Depth-first over (external_id, source) keys in input order.  A parent that
is not among the given departments is treated as absent, so its child sorts
as a root; the dangling reference is repaired after insertion.  A parent
chain that loops back on itself raises DepartmentCycleError naming the
department where the loop was detected.
"""

from __future__ import annotations

from typing import Sequence

from vault_ingestion.domain.types import DepartmentRecord
from vault_kernel.exceptions import DepartmentCycleError


def sort_departments(departments: Sequence[DepartmentRecord]) -> list[DepartmentRecord]:
    by_key: dict[tuple[str, str], DepartmentRecord] = {}
    for dept in departments:
        by_key.setdefault(dept.key, dept)

    ordered: list[DepartmentRecord] = []
    done: set[tuple[str, str]] = set()
    path: list[tuple[str, str]] = []
    on_path: set[tuple[str, str]] = set()

    def visit(dept: DepartmentRecord) -> None:
        key = dept.key
        if key in done:
            return
        if key in on_path:
            start = path.index(key)
            chain = [k[0] for k in path[start:]] + [key[0]]
            raise DepartmentCycleError(dept.external_id, dept.display_name, chain)

        path.append(key)
        on_path.add(key)
        parent_key = dept.parent_key
        if parent_key is not None and parent_key != key and parent_key in by_key:
            visit(by_key[parent_key])
        elif parent_key == key:
            raise DepartmentCycleError(dept.external_id, dept.display_name, [key[0], key[0]])
        path.pop()
        on_path.discard(key)

        done.add(key)
        ordered.append(dept)

    for dept in by_key.values():
        visit(dept)
    return ordered

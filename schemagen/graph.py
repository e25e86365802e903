# File: schemagen/graph.py
"""
schemagen - Table Dependency Graph
====================================
Orders a set of tables so every table comes after the tables it references.

Edges are built only among the requested tables (self-references and
references leaving the set are ignored).  Ordering is a depth-first
post-order walk, dependencies first:

    - each node is marked *in progress* on entry and *done* on exit;
    - reaching an *in-progress* node means a cycle: the walk returns without
      descending, so the cycle is broken at that edge instead of failing;
    - roots are visited in the requested order and dependencies in foreign
      key order, which makes the result deterministic.

Across a cycle the order is not guaranteed dependency-correct; the trailing
foreign-key migration still adds every constraint after all tables exist.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Sequence, Set

from schemagen.models import ForeignKeyEdge
from schemagen.utils import unique_preserving_order

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.graph")

_IN_PROGRESS: int = 1
_DONE: int = 2


class SchemaGraph:
    """Dependency graph over a fixed table set."""

    def __init__(self, tables: Sequence[str], dependencies: Dict[str, List[str]]) -> None:
        self._tables: List[str] = unique_preserving_order(tables)
        members: Set[str] = set(self._tables)
        self._dependencies: Dict[str, List[str]] = {
            table: unique_preserving_order(
                dep for dep in dependencies.get(table, []) if dep in members and dep != table
            )
            for table in self._tables
        }

    @classmethod
    def build(
        cls,
        tables: Sequence[str],
        foreign_keys_for: Callable[[str], Iterable[ForeignKeyEdge]],
    ) -> "SchemaGraph":
        """
        Build the graph from each table's outgoing foreign keys.

        ``foreign_keys_for`` is usually ``MetadataProvider.foreign_keys``.
        """
        dependencies: Dict[str, List[str]] = {}
        for table in unique_preserving_order(tables):
            dependencies[table] = [edge.to_table for edge in foreign_keys_for(table)]
        return cls(tables, dependencies)

    @property
    def tables(self) -> List[str]:
        return list(self._tables)

    @property
    def dependencies(self) -> Dict[str, List[str]]:
        return {table: list(deps) for table, deps in self._dependencies.items()}

    def dependencies_of(self, table: str) -> List[str]:
        return list(self._dependencies.get(table, []))

    def processing_order(self) -> List[str]:
        """Every table exactly once, referenced tables before referencing ones."""
        state: Dict[str, int] = {}
        visited: List[str] = []

        def visit(table: str) -> None:
            mark: int = state.get(table, 0)
            if mark == _DONE:
                return
            if mark == _IN_PROGRESS:
                logger.debug("Cycle detected at '%s'; edge treated as non-blocking.", table)
                return
            state[table] = _IN_PROGRESS
            for dependency in self.dependencies_of(table):
                visit(dependency)
            state[table] = _DONE
            visited.append(table)

        for table in self._tables:
            visit(table)

        order: List[str] = unique_preserving_order(visited)
        logger.debug("Processing order: %s", " → ".join(order))
        return order

    def has_cycle(self) -> bool:
        state: Dict[str, int] = {}
        found: List[bool] = [False]

        def visit(table: str) -> None:
            state[table] = _IN_PROGRESS
            for dependency in self.dependencies_of(table):
                mark: int = state.get(dependency, 0)
                if mark == _IN_PROGRESS:
                    found[0] = True
                elif mark == 0:
                    visit(dependency)
            state[table] = _DONE

        for table in self._tables:
            if state.get(table, 0) == 0:
                visit(table)
        return found[0]

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        edges: int = sum(len(deps) for deps in self._dependencies.values())
        return f"<SchemaGraph tables={len(self._tables)} edges={edges}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = ["SchemaGraph"]

logger.debug("schemagen.graph loaded.")

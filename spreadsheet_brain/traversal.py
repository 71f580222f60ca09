# spreadsheet_brain/traversal.py
"""Transitive dependency / dependent search over DEPENDS_ON edges."""
from typing import Callable

from .graph_store import SheetGraph
from .model import EdgeKind


class TraversalEngine:
    """Reachability queries against one SheetGraph snapshot.

    Both directions use a visited-set guarded depth-first search, so cycles
    terminate and each node is expanded once. The start node is marked
    visited up front; it only shows up in a result when a cycle leads back.
    """

    def __init__(self, graph: SheetGraph):
        self.graph = graph

    def direct_dependencies(self, node_id: str) -> set[str]:
        return self.graph.forward_edges_of(node_id, EdgeKind.DEPENDS_ON)

    def direct_dependents(self, node_id: str) -> set[str]:
        return self.graph.reverse_edges_of(node_id, EdgeKind.DEPENDS_ON)

    def transitive_dependencies(self, node_id: str) -> set[str]:
        """Every cell ``node_id`` reads from, directly or through other formulas."""
        return self._reach(node_id, self.direct_dependencies)

    def transitive_dependents(self, node_id: str) -> set[str]:
        """Every cell whose value changes when ``node_id`` changes."""
        return self._reach(node_id, self.direct_dependents)

    @staticmethod
    def _reach(start: str, neighbours: Callable[[str], set[str]]) -> set[str]:
        visited = {start}
        result: set[str] = set()
        stack = [start]
        while stack:
            current = stack.pop()
            for nxt in neighbours(current):
                result.add(nxt)
                if nxt not in visited:
                    visited.add(nxt)
                    stack.append(nxt)
        return result

# spreadsheet_brain/graph_store.py
"""
In-memory node store + edge index for one graph snapshot.

Nodes live as the ``node`` attribute of a networkx DiGraph; the DiGraph's
successor/predecessor maps are the forward/reverse adjacency, so both
directions change together on every insertion.
"""
import logging
from typing import Iterator

import networkx as nx

from .model import CellNode, EdgeKind, Node, NodeKind, SheetNode, cell_id

logger = logging.getLogger(__name__)


class SheetGraph:
    """Sheets and cells of one document, with CONTAINS and DEPENDS_ON edges."""

    def __init__(self) -> None:
        self._g = nx.DiGraph()
        # sheet names in load order; the first one is the active sheet
        self.sheet_order: list[str] = []

    # ----------------------------------------------------------------- writes
    def put(self, node: Node) -> None:
        """Insert or replace a node. Existing adjacency for the id is kept."""
        self._g.add_node(node.id, node=node)
        if isinstance(node, SheetNode) and node.id not in self.sheet_order:
            self.sheet_order.append(node.id)
        logger.debug("Added node: %s", node.id)

    def add_edge(self, source: str, target: str, kind: EdgeKind) -> bool:
        """Add ``source -> target``. Unknown ids make this a logged no-op."""
        if source not in self._g or target not in self._g:
            logger.warning(
                "Cannot add %s edge: node not found (source=%s, target=%s)",
                kind.value, source, target,
            )
            return False
        self._g.add_edge(source, target, kind=kind)
        logger.debug("[EDGE] %s -> %s (%s)", source, target, kind.value)
        return True

    def clear(self) -> None:
        self._g.clear()
        self.sheet_order.clear()
        logger.debug("Cleared graph")

    # ------------------------------------------------------------------ reads
    def get(self, node_id: str) -> Node | None:
        if node_id not in self._g:
            return None
        return self._g.nodes[node_id]["node"]

    def get_cell(self, sheet: str, a1: str) -> CellNode | None:
        node = self.get(cell_id(sheet, a1))
        return node if isinstance(node, CellNode) else None

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._g

    def _nodes(self) -> Iterator[Node]:
        for _, node in self._g.nodes(data="node"):
            yield node

    def nodes_of_kind(self, kind: NodeKind) -> list[Node]:
        return [n for n in self._nodes() if n.kind == kind]

    def cells(self) -> list[CellNode]:
        return self.nodes_of_kind(NodeKind.CELL)

    def sheets(self) -> list[SheetNode]:
        return self.nodes_of_kind(NodeKind.SHEET)

    def formula_cells(self) -> list[CellNode]:
        return [c for c in self.cells() if c.has_formula]

    def cells_in_sheet(self, sheet: str) -> list[CellNode]:
        """Cells owned by ``sheet``, found through its CONTAINS edges."""
        if not isinstance(self.get(sheet), SheetNode):
            return []
        return [
            self._g.nodes[t]["node"]
            for t in self.forward_edges_of(sheet, EdgeKind.CONTAINS)
        ]

    def forward_edges_of(self, node_id: str, kind: EdgeKind | None = None) -> set[str]:
        """Targets of edges leaving ``node_id``."""
        if node_id not in self._g:
            return set()
        return {
            t for t, attrs in self._g.succ[node_id].items()
            if kind is None or attrs["kind"] == kind
        }

    def reverse_edges_of(self, node_id: str, kind: EdgeKind | None = None) -> set[str]:
        """Sources of edges entering ``node_id``."""
        if node_id not in self._g:
            return set()
        return {
            s for s, attrs in self._g.pred[node_id].items()
            if kind is None or attrs["kind"] == kind
        }

    def node_count(self) -> int:
        return self._g.number_of_nodes()

    def edge_count(self, kind: EdgeKind | None = None) -> int:
        if kind is None:
            return self._g.number_of_edges()
        return sum(1 for _, _, k in self._g.edges(data="kind") if k == kind)

    def edges(self, kind: EdgeKind | None = None) -> set[tuple[str, str]]:
        return {
            (s, t) for s, t, k in self._g.edges(data="kind")
            if kind is None or k == kind
        }


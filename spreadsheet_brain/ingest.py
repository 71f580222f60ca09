# spreadsheet_brain/ingest.py
"""
Builds a SheetGraph from a snapshot of every sheet.

Two passes, in this order:
  1) per sheet: sheet node, every cell + CONTAINS edge, then DEPENDS_ON edges
     for unqualified references within that sheet;
  2) once all sheets exist: DEPENDS_ON edges for sheet-qualified references,
     including column ranges into sheets that loaded after the formula's sheet.
"""
import logging
from typing import Mapping, Sequence

from .graph_store import SheetGraph
from .model import CellNode, CellSnapshot, EdgeKind, SheetNode
from .parser import FormulaReferenceResolver

logger = logging.getLogger(__name__)

Snapshot = Mapping[str, Sequence[CellSnapshot]]


class GraphBuilder:

    def rebuild(self, sheets: Snapshot, into: SheetGraph | None = None) -> SheetGraph:
        """
        Build the graph for ``sheets`` (sheet name -> ordered cell snapshots).

        With ``into`` the given graph is cleared and repopulated in place and
        is left partially built if anything raises. Without it a fresh graph
        is returned, so the caller can publish it only once it is complete.
        """
        graph = into if into is not None else SheetGraph()
        graph.clear()
        resolver = FormulaReferenceResolver(graph)

        for sheet_name, cells in sheets.items():
            self._load_sheet(graph, resolver, sheet_name, cells)
            logger.info(
                f"Loaded sheet '{sheet_name}': {len(cells)} cells "
                f"(graph now holds {graph.node_count()} nodes)"
            )

        self._link_qualified_references(graph, resolver)
        logger.info(
            f"Graph built: {len(graph.cells())} cells, {len(sheets)} sheets, "
            f"{graph.edge_count(EdgeKind.DEPENDS_ON)} dependencies"
        )
        return graph

    def _load_sheet(
        self,
        graph: SheetGraph,
        resolver: FormulaReferenceResolver,
        sheet_name: str,
        cells: Sequence[CellSnapshot],
    ) -> None:
        graph.put(SheetNode(sheet_name))

        # materialise the whole sheet before resolving any of its formulas
        nodes: list[CellNode] = []
        for snap in cells:
            node = CellNode.from_snapshot(sheet_name, snap)
            graph.put(node)
            graph.add_edge(sheet_name, node.id, EdgeKind.CONTAINS)
            nodes.append(node)

        for node in nodes:
            if not node.has_formula:
                continue
            for target in resolver.resolve_same_sheet(node.formula, sheet_name):
                graph.add_edge(node.id, target, EdgeKind.DEPENDS_ON)

    def _link_qualified_references(
        self, graph: SheetGraph, resolver: FormulaReferenceResolver
    ) -> None:
        formula_cells = graph.formula_cells()
        logger.debug(f"Resolving qualified references for {len(formula_cells)} formula cells")
        for node in formula_cells:
            for target in resolver.resolve_qualified(node.formula):
                graph.add_edge(node.id, target, EdgeKind.DEPENDS_ON)

# spreadsheet_brain/brain.py
"""
Query layer over the current graph snapshot.

A reload builds a brand-new SheetGraph off to the side and publishes it with a
single reference assignment, so readers see either the old graph or the new
one, never a half-built one. Readers take the reference once per query.
"""
import logging
import threading
from dataclasses import dataclass

from .errors import SnapshotFetchError
from .graph_store import SheetGraph
from .ingest import GraphBuilder, Snapshot
from .model import CellNode, unquote_sheet
from .sources import SnapshotSource
from .traversal import TraversalEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphSummary:
    cell_count: int
    sheet_count: int
    formula_count: int
    edge_count: int

    def __str__(self) -> str:
        return (
            f"Graph Summary: {self.cell_count} cells, {self.sheet_count} sheets, "
            f"{self.formula_count} formulas, {self.edge_count} edges"
        )


def split_cell_ref(cell_ref: str, default_sheet: str | None) -> tuple[str | None, str]:
    """'Sales!b2' -> ('Sales', 'B2'); 'B2' -> (default_sheet, 'B2')."""
    ref = cell_ref.strip()
    if "!" in ref:
        sheet, a1 = ref.rsplit("!", 1)
        sheet = unquote_sheet(sheet.strip())
    else:
        sheet, a1 = default_sheet, ref
    return sheet, a1.replace("$", "").strip().upper()


class SpreadsheetBrain:
    """Holds the published graph for one document and answers queries on it."""

    def __init__(
        self,
        source: SnapshotSource,
        document_id: str,
        builder: GraphBuilder | None = None,
    ):
        self.source = source
        self.document_id = document_id
        self.builder = builder or GraphBuilder()
        self._graph = SheetGraph()
        # source timestamp read just before the fetch behind the published graph
        self.loaded_modified: float | None = None
        self._reload_lock = threading.Lock()

    # --------------------------------------------------------------- loading
    @property
    def graph(self) -> SheetGraph:
        return self._graph

    def reload(self) -> SheetGraph:
        """Fetch a fresh snapshot, rebuild, then publish.

        Raises SnapshotFetchError when the source fails; the published graph
        is left as it was.
        """
        with self._reload_lock:
            logger.info(f"Loading all sheets from {self.document_id}")
            try:
                modified = self.source.fetch_last_modified(self.document_id)
                sheets = self.source.fetch_all_sheets(self.document_id)
            except SnapshotFetchError:
                raise
            except Exception as e:
                raise SnapshotFetchError(self.document_id, str(e)) from e
            graph = self._publish(sheets)
            self.loaded_modified = modified
            return graph

    def load_snapshot(self, sheets: Snapshot) -> SheetGraph:
        """Rebuild from an already fetched snapshot and publish it."""
        with self._reload_lock:
            return self._publish(sheets)

    def _publish(self, sheets: Snapshot) -> SheetGraph:
        graph = self.builder.rebuild(sheets)
        self._graph = graph
        logger.info(str(self.summary()))
        return graph

    @property
    def active_sheet(self) -> str | None:
        """The first sheet loaded; assumed for references without a sheet."""
        order = self._graph.sheet_order
        return order[0] if order else None

    def resolve_cell(self, cell_ref: str, graph: SheetGraph | None = None) -> CellNode | None:
        graph = graph or self._graph
        order = graph.sheet_order
        sheet, a1 = split_cell_ref(cell_ref, order[0] if order else None)
        if sheet is None:
            return None
        return graph.get_cell(sheet, a1)

    # --------------------------------------------------------------- queries
    def dependencies_of(self, cell_ref: str) -> set[str]:
        """Cells ``cell_ref`` depends on, transitively. Unknown cells give an empty set."""
        graph = self._graph
        cell = self.resolve_cell(cell_ref, graph)
        if cell is None:
            logger.warning(f"Cell not found: {cell_ref}")
            return set()
        engine = TraversalEngine(graph)
        result = engine.transitive_dependencies(cell.id)
        logger.info(
            f"Dependency analysis for {cell.id}: {len(engine.direct_dependencies(cell.id))} direct, "
            f"{len(result)} total"
        )
        return result

    def dependents_of(self, cell_ref: str) -> set[str]:
        """Cells affected when ``cell_ref`` changes. Unknown cells give an empty set."""
        graph = self._graph
        cell = self.resolve_cell(cell_ref, graph)
        if cell is None:
            logger.warning(f"Cell not found: {cell_ref}")
            return set()
        engine = TraversalEngine(graph)
        result = engine.transitive_dependents(cell.id)
        logger.info(
            f"Impact analysis for {cell.id}: {len(engine.direct_dependents(cell.id))} direct, "
            f"{len(result)} total"
        )
        return result

    def formula_cells(self) -> list[CellNode]:
        return self._graph.formula_cells()

    def all_cells(self) -> list[CellNode]:
        return self._graph.cells()

    def sheet_names(self) -> list[str]:
        return list(self._graph.sheet_order)

    def summary(self) -> GraphSummary:
        graph = self._graph
        return GraphSummary(
            cell_count=len(graph.cells()),
            sheet_count=len(graph.sheets()),
            formula_count=len(graph.formula_cells()),
            edge_count=graph.edge_count(),
        )

    # ---------------------------------------------------------------- writes
    def update_cell(self, cell_ref: str, new_value: str) -> bool:
        """Write through the source, then reload so the graph reflects it."""
        sheet, a1 = split_cell_ref(cell_ref, self.active_sheet)
        if sheet is None:
            logger.error(f"No sheet loaded to resolve {cell_ref}")
            return False
        logger.info(f"Updating cell {sheet}!{a1} to: {new_value}")
        if not self.source.write_cell(self.document_id, sheet, a1, new_value):
            logger.error(f"Failed to update cell {sheet}!{a1}")
            return False
        try:
            self.reload()
        except SnapshotFetchError as e:
            logger.error(f"Cell {sheet}!{a1} written but reload failed: {e}")
            return False
        return True

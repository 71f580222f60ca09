# spreadsheet_brain/parser.py
"""
Formula reference extraction.

The lexer classifies every reference-shaped substring of a formula:

    A1, $B$2            -> BARE_CELL
    A:B, C:C            -> BARE_RANGE       (never resolved, see below)
    Sales!A1, 'Q 1'!B2  -> QUALIFIED_CELL
    'Bob''s'!A1         -> QUALIFIED_CELL   (sheet "Bob's")
    Employees!A:B       -> QUALIFIED_RANGE

A row-bounded range such as A1:B5 yields its two endpoint cells.

Bare cells are resolved per sheet while that sheet loads; qualified references
are resolved in a later global pass once every sheet exists. Only the
qualified path expands column ranges, so a bare ``C:C`` produces no edges.
Column ranges compare column letters as plain strings, which puts "AA"
before "J".
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum

from .graph_store import SheetGraph
from .model import CellNode, cell_id, column_letters

logger = logging.getLogger(__name__)


# Matches:
#   A1, $B$2, A1:B2, C:C, Sales!A1, 'My Sheet'!A3:C5, Employees!A:B
_REFERENCE_RE = re.compile(
    r"(?<![A-Za-z0-9_.$'])"
    r"(?:(?:'(?P<sheet_quoted>(?:[^']|'')+)'|(?P<sheet_unquoted>[A-Za-z0-9_]+))!)?"
    r"(?:"
    r"(?P<start_col>\$?[A-Za-z]+)\s*:\s*(?P<end_col>\$?[A-Za-z]+)(?![A-Za-z0-9_$(!])"
    r"|"
    r"(?P<start>\$?[A-Za-z]+\$?\d+)"
    r"(?:\s*:\s*(?P<end>\$?[A-Za-z]+\$?\d+))?(?![A-Za-z0-9_(!])"
    r")"
)

# String literals, so refs inside quotes aren't matched
_STRING_RE = re.compile(r'"[^"]*"')


class ReferenceShape(str, Enum):
    BARE_CELL = "bare_cell"
    BARE_RANGE = "bare_range"
    QUALIFIED_CELL = "qualified_cell"
    QUALIFIED_RANGE = "qualified_range"


@dataclass(frozen=True)
class Reference:
    shape: ReferenceShape
    token: str               # 'A1' for cells, 'A:B' for column ranges
    sheet: str | None = None

    @property
    def qualified(self) -> bool:
        return self.sheet is not None

    def __str__(self) -> str:
        return f"{self.sheet}!{self.token}" if self.qualified else self.token


def _clean(token: str) -> str:
    return token.replace("$", "").upper()


def scan_references(formula: str) -> list[Reference]:
    """Lex a formula into references, in order of appearance, without duplicates."""
    refs: list[Reference] = []
    seen: set[Reference] = set()

    def emit(ref: Reference) -> None:
        if ref not in seen:
            seen.add(ref)
            refs.append(ref)

    for m in _REFERENCE_RE.finditer(_STRING_RE.sub("", formula)):
        quoted = m.group("sheet_quoted")
        sheet = quoted.replace("''", "'") if quoted else m.group("sheet_unquoted")
        if m.group("start_col"):
            token = f"{_clean(m.group('start_col'))}:{_clean(m.group('end_col'))}"
            shape = ReferenceShape.QUALIFIED_RANGE if sheet else ReferenceShape.BARE_RANGE
            emit(Reference(shape, token, sheet))
            continue
        shape = ReferenceShape.QUALIFIED_CELL if sheet else ReferenceShape.BARE_CELL
        emit(Reference(shape, _clean(m.group("start")), sheet))
        if m.group("end"):
            emit(Reference(shape, _clean(m.group("end")), sheet))
    return refs


def split_column_range(token: str) -> tuple[str, str]:
    """'A:B' -> ('A', 'B')."""
    start, _, end = token.partition(":")
    return start, end


class FormulaReferenceResolver:
    """Turns formula text into ids of cells that currently exist in ``graph``.

    Resolution never raises: tokens that match nothing are logged and dropped.
    """

    def __init__(self, graph: SheetGraph):
        self.graph = graph

    def resolve_same_sheet(self, formula: str, sheet: str) -> set[str]:
        """Targets of unqualified single-cell references, looked up in ``sheet``."""
        targets: set[str] = set()
        for ref in scan_references(formula):
            if ref.shape is ReferenceShape.BARE_CELL:
                target = cell_id(sheet, ref.token)
                if isinstance(self.graph.get(target), CellNode):
                    targets.add(target)
                else:
                    logger.debug("Reference %s in sheet %s matches no cell", ref, sheet)
            elif ref.shape is ReferenceShape.BARE_RANGE:
                logger.debug("Bare column range %s in sheet %s is not expanded", ref, sheet)
        return targets

    def resolve_qualified(self, formula: str) -> set[str]:
        """Targets of sheet-qualified cells and column ranges."""
        targets: set[str] = set()
        for ref in scan_references(formula):
            if ref.shape is ReferenceShape.QUALIFIED_CELL:
                target = cell_id(ref.sheet, ref.token)
                if isinstance(self.graph.get(target), CellNode):
                    targets.add(target)
                else:
                    logger.warning("Cross-sheet reference not found: %s", ref)
            elif ref.shape is ReferenceShape.QUALIFIED_RANGE:
                found = self.expand_column_range(ref.sheet, ref.token)
                if not found:
                    logger.warning("Column range %s matches no cells", ref)
                targets |= found
        return targets

    def expand_column_range(self, sheet: str, token: str) -> set[str]:
        """Cells of ``sheet`` whose column letters sort between the range ends."""
        start, end = split_column_range(token)
        return {
            cell.id
            for cell in self.graph.cells_in_sheet(sheet)
            if start <= column_letters(cell.a1_notation) <= end
        }

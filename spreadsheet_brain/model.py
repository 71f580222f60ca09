# spreadsheet_brain/model.py
"""
Node and edge types for the spreadsheet dependency graph.

A node is either a SheetNode or a CellNode. Cells are keyed 'SheetName!A1'.
"""
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, NamedTuple, Union

from openpyxl.utils import column_index_from_string, get_column_letter


class NodeKind(str, Enum):
    SHEET = "SHEET"
    CELL = "CELL"


class EdgeKind(str, Enum):
    CONTAINS = "CONTAINS"      # sheet -> cell
    DEPENDS_ON = "DEPENDS_ON"  # formula cell -> referenced cell


def a1_notation(row: int, column: int) -> str:
    """(3, 28) -> 'AB3'. Both indices are 1-based."""
    if row < 1 or column < 1:
        raise ValueError(f"row and column are 1-based, got ({row}, {column})")
    return f"{get_column_letter(column)}{row}"


def split_a1(a1: str) -> tuple[str, int]:
    """'AB3' -> ('AB', 3)."""
    letters = a1.rstrip("0123456789")
    digits = a1[len(letters):]
    if not letters or not digits:
        raise ValueError(f"not an A1 reference: {a1!r}")
    return letters.upper(), int(digits)


def column_index(letters: str) -> int:
    """'AB' -> 28."""
    return column_index_from_string(letters.upper())


def column_letters(a1: str) -> str:
    """Column part of an A1 token with the row digits stripped."""
    return "".join(ch for ch in a1 if not ch.isdigit())


def cell_id(sheet: str, a1: str) -> str:
    return f"{sheet}!{a1}"


def unquote_sheet(name: str) -> str:
    """Strip sheet-name quoting: 'Bob''s Data' -> Bob's Data. Unquoted names pass through."""
    if len(name) >= 2 and name[0] == name[-1] == "'":
        return name[1:-1].replace("''", "'")
    return name


class CellSnapshot(NamedTuple):
    """One cell as read from the snapshot source, before it becomes a node."""

    row: int
    column: int
    value: str = ""
    formula: str | None = None


@dataclass(frozen=True)
class SheetNode:
    name: str

    kind: ClassVar[NodeKind] = NodeKind.SHEET

    @property
    def id(self) -> str:
        return self.name


@dataclass(frozen=True)
class CellNode:
    sheet_id: str
    row: int
    column: int
    value: str = ""
    formula: str | None = None

    kind: ClassVar[NodeKind] = NodeKind.CELL

    @classmethod
    def from_snapshot(cls, sheet: str, snap: CellSnapshot) -> "CellNode":
        return cls(
            sheet_id=sheet,
            row=snap.row,
            column=snap.column,
            value=snap.value if snap.value is not None else "",
            formula=snap.formula,
        )

    @property
    def a1_notation(self) -> str:
        return a1_notation(self.row, self.column)

    @property
    def id(self) -> str:
        return cell_id(self.sheet_id, self.a1_notation)

    @property
    def has_formula(self) -> bool:
        return self.formula is not None and bool(self.formula.strip())

    @property
    def display_name(self) -> str:
        return self.id + (" (formula)" if self.has_formula else "")


Node = Union[SheetNode, CellNode]
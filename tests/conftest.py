"""Shared fixtures: an in-memory snapshot source and a sample workbook."""

from __future__ import annotations

import pytest

from spreadsheet_brain.brain import SpreadsheetBrain
from spreadsheet_brain.model import CellSnapshot, column_index, split_a1


class MemorySource:
    """Snapshot source backed by a dict; counts fetches and can be told to fail."""

    def __init__(self, sheets: dict[str, list[CellSnapshot]]) -> None:
        self.sheets = {name: list(cells) for name, cells in sheets.items()}
        self.modified = 1.0
        self.fail = False
        self.fetches = 0

    def fetch_all_sheets(self, document_id: str) -> dict[str, list[CellSnapshot]]:
        self.fetches += 1
        if self.fail:
            raise RuntimeError("backend down")
        return {name: list(cells) for name, cells in self.sheets.items()}

    def fetch_last_modified(self, document_id: str) -> float:
        return self.modified

    def write_cell(self, document_id: str, sheet: str, a1: str, value: str) -> bool:
        if sheet not in self.sheets:
            return False
        letters, row = split_a1(a1)
        col = column_index(letters)
        formula = value if value.startswith("=") else None
        cells = [c for c in self.sheets[sheet] if (c.row, c.column) != (row, col)]
        cells.append(CellSnapshot(row, col, "" if formula else value, formula))
        self.sheets[sheet] = cells
        self.modified += 1
        return True


def employees_sheet() -> list[CellSnapshot]:
    """Five populated rows in columns A, B and C."""
    cells = []
    for row in range(1, 6):
        cells.append(CellSnapshot(row, 1, f"emp{row}"))
        cells.append(CellSnapshot(row, 2, str(1000 * row)))
        cells.append(CellSnapshot(row, 3, f"note{row}"))
    return cells


def sample_sheets() -> dict[str, list[CellSnapshot]]:
    # Sales loads before Employees, so its range needs the second pass.
    return {
        "Sheet1": [
            CellSnapshot(1, 1, "10"),
            CellSnapshot(1, 2, "20", "=A1*2"),
            CellSnapshot(1, 3, "21", "=B1+1"),
            CellSnapshot(1, 4, "21", "=SUM(C:C)"),
        ],
        "Sales": [
            CellSnapshot(2, 1, "Alice"),
            CellSnapshot(2, 2, "$1,200"),
            CellSnapshot(2, 5, "1000", "=VLOOKUP(A2,Employees!A:B,2,FALSE)"),
        ],
        "Employees": employees_sheet(),
    }


@pytest.fixture
def source() -> MemorySource:
    return MemorySource(sample_sheets())


@pytest.fixture
def brain(source: MemorySource) -> SpreadsheetBrain:
    b = SpreadsheetBrain(source, "doc-1")
    b.reload()
    return b

"""Tests for the openpyxl-backed snapshot source."""

from __future__ import annotations

import pytest
from openpyxl import Workbook

from spreadsheet_brain.brain import SpreadsheetBrain
from spreadsheet_brain.errors import SnapshotFetchError
from spreadsheet_brain.model import CellSnapshot
from spreadsheet_brain.sources import SnapshotSource, XlsxSnapshotSource


@pytest.fixture
def workbook_path(tmp_path) -> str:
    wb = Workbook()
    ws = wb.active
    ws.title = "Sales"
    ws["A1"] = 10
    ws["B1"] = "=A1*2"
    ws["C1"] = "hello"
    ws["D1"] = 2.5
    costs = wb.create_sheet("Costs")
    costs["A1"] = "=Sales!B1"
    path = tmp_path / "book.xlsx"
    wb.save(path)
    return str(path)


class TestXlsxSnapshotSource:
    def test_is_a_snapshot_source(self) -> None:
        assert isinstance(XlsxSnapshotSource(), SnapshotSource)

    def test_fetch_all_sheets(self, workbook_path) -> None:
        sheets = XlsxSnapshotSource().fetch_all_sheets(workbook_path)
        assert list(sheets) == ["Sales", "Costs"]
        assert sheets["Sales"] == [
            CellSnapshot(1, 1, "10", None),
            # never calculated, so no cached value
            CellSnapshot(1, 2, "", "=A1*2"),
            CellSnapshot(1, 3, "hello", None),
            CellSnapshot(1, 4, "2.5", None),
        ]
        assert sheets["Costs"] == [CellSnapshot(1, 1, "", "=Sales!B1")]

    def test_missing_file(self, tmp_path) -> None:
        source = XlsxSnapshotSource()
        with pytest.raises(SnapshotFetchError):
            source.fetch_all_sheets(str(tmp_path / "nope.xlsx"))
        with pytest.raises(SnapshotFetchError):
            source.fetch_last_modified(str(tmp_path / "nope.xlsx"))

    def test_last_modified(self, workbook_path) -> None:
        assert XlsxSnapshotSource().fetch_last_modified(workbook_path) > 0

    def test_write_cell(self, workbook_path) -> None:
        source = XlsxSnapshotSource()
        assert source.write_cell(workbook_path, "Sales", "A1", "42")
        assert source.write_cell(workbook_path, "Sales", "E1", "=D1+1")
        cells = {(c.row, c.column): c for c in source.fetch_all_sheets(workbook_path)["Sales"]}
        assert cells[(1, 1)].value == "42"
        assert cells[(1, 5)].formula == "=D1+1"
        assert cells[(1, 2)].formula == "=A1*2"

    def test_write_to_missing_sheet(self, workbook_path) -> None:
        assert not XlsxSnapshotSource().write_cell(workbook_path, "Nope", "A1", "1")

    def test_write_rejects_bad_address(self, workbook_path) -> None:
        assert not XlsxSnapshotSource().write_cell(workbook_path, "Sales", "A", "1")


class TestWorkbookGraph:
    def test_dependencies_across_sheets(self, workbook_path) -> None:
        brain = SpreadsheetBrain(XlsxSnapshotSource(), workbook_path)
        brain.reload()
        assert brain.active_sheet == "Sales"
        assert brain.dependents_of("A1") == {"Sales!B1", "Costs!A1"}
        assert brain.dependencies_of("Costs!A1") == {"Sales!A1", "Sales!B1"}

    def test_update_cell_round_trip(self, workbook_path) -> None:
        brain = SpreadsheetBrain(XlsxSnapshotSource(), workbook_path)
        brain.reload()
        assert brain.update_cell("Costs!B1", "=Sales!D1")
        assert brain.dependents_of("Sales!D1") == {"Costs!B1"}

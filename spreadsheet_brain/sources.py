# spreadsheet_brain/sources.py
"""
Snapshot sources: where the cell contents of a document come from.

The engine only pulls; it never subscribes to change events. A document id is
whatever the source uses to locate a document (a file path for .xlsx).
"""
import logging
import os
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from openpyxl import load_workbook
from openpyxl.worksheet.formula import ArrayFormula

from .errors import SnapshotFetchError
from .model import CellSnapshot, column_index, split_a1

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"-?\d+")
_FLOAT_RE = re.compile(r"-?\d*\.\d+")


@runtime_checkable
class SnapshotSource(Protocol):
    """Pull-based access to a multi-sheet document."""

    def fetch_all_sheets(self, document_id: str) -> dict[str, list[CellSnapshot]]:
        """Sheet name -> ordered cells, sheets in document order."""
        ...

    def fetch_last_modified(self, document_id: str) -> float:
        """Modification timestamp (epoch seconds)."""
        ...

    def write_cell(self, document_id: str, sheet: str, a1: str, value: str) -> bool:
        """Write ``value`` into ``sheet!a1``; False when the write failed."""
        ...


def _formula_text(raw) -> str | None:
    if isinstance(raw, str) and raw.startswith("="):
        return raw
    if isinstance(raw, ArrayFormula):
        return raw.text
    return None


def _display(value) -> str:
    return "" if value is None else str(value)


def _coerce(value: str):
    """Numeric text becomes a number; anything else (incl. '=...') stays text."""
    text = value.strip()
    if _INT_RE.fullmatch(text):
        return int(text)
    if _FLOAT_RE.fullmatch(text):
        return float(text)
    return value


class XlsxSnapshotSource:
    """Reads .xlsx workbooks with openpyxl.

    Formulas come from the workbook as written; display values come from the
    cached results Excel stored next to them, which are empty for files that
    were never opened in a spreadsheet application.
    """

    def fetch_all_sheets(self, document_id: str) -> dict[str, list[CellSnapshot]]:
        path = Path(document_id)
        try:
            formulas_wb = load_workbook(path, data_only=False)
            values_wb = load_workbook(path, data_only=True)
        except Exception as e:
            raise SnapshotFetchError(document_id, str(e)) from e

        sheets: dict[str, list[CellSnapshot]] = {}
        for ws in formulas_wb.worksheets:
            cached = values_wb[ws.title]
            cells: list[CellSnapshot] = []
            for row in ws.iter_rows():
                for cell in row:
                    if cell.value is None:
                        continue
                    formula = _formula_text(cell.value)
                    value = cached.cell(row=cell.row, column=cell.column).value
                    if formula is None:
                        value = cell.value
                    cells.append(CellSnapshot(cell.row, cell.column, _display(value), formula))
            sheets[ws.title] = cells
            logger.info(f"Read {len(cells)} cells from sheet '{ws.title}'")
        return sheets

    def fetch_last_modified(self, document_id: str) -> float:
        try:
            return os.stat(document_id).st_mtime
        except OSError as e:
            raise SnapshotFetchError(document_id, str(e)) from e

    def write_cell(self, document_id: str, sheet: str, a1: str, value: str) -> bool:
        try:
            letters, row = split_a1(a1)
            wb = load_workbook(document_id)
            wb[sheet].cell(row=row, column=column_index(letters), value=_coerce(value))
            wb.save(document_id)
        except Exception as e:
            logger.error(f"Error updating cell {sheet}!{a1}: {e}")
            return False
        logger.info(f"Updated {sheet}!{a1} in {document_id}")
        return True

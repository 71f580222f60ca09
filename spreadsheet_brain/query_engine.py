# spreadsheet_brain/query_engine.py
"""
Executes structured commands against a SpreadsheetBrain.

Nothing here raises to the caller: malformed descriptors, unknown commands
and missing fields all come back as a failed QueryResult with a message.
"""
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from .brain import SpreadsheetBrain
from .commands import (
    DEPENDENCY_ANALYSIS,
    ERROR,
    FIND_CELLS,
    IMPACT_ANALYSIS,
    LIST_FORMULAS,
    LIST_SHEETS,
    UPDATE_CELL,
    CommandDescriptor,
)
from .model import CellNode

logger = logging.getLogger(__name__)

SHEET_CELL_LIMIT = 20
SEARCH_LIMIT = 10

_DATE_WORDS = ("july", "date", "2024")
_FINANCIAL_WORDS = ("revenue", "$", "price")


@dataclass
class QueryResult:
    success: bool
    message: str
    data: Any = None


def _fail(message: str) -> QueryResult:
    return QueryResult(False, message, None)


def _format_formulas(cells: list[CellNode]) -> str:
    lines = [f"Found {len(cells)} cells with formulas:"]
    lines += [f"{i}. {c.id}: {c.formula}" for i, c in enumerate(cells, 1)]
    return "\n".join(lines)


def _target(descriptor: CommandDescriptor, what: str) -> str | QueryResult:
    if descriptor.target_cell is None:
        return _fail(f"{what} requires a target cell")
    if not descriptor.target_cell.strip():
        return _fail("Target cell cannot be empty")
    return descriptor.target_cell.strip()


def impact_analysis(descriptor: CommandDescriptor, brain: SpreadsheetBrain) -> QueryResult:
    target = _target(descriptor, "Impact analysis")
    if isinstance(target, QueryResult):
        return target
    affected = brain.dependents_of(target)
    lines = [f"Impact analysis for {target}: {len(affected)} cells affected"]
    if affected:
        lines.append("Cells affected:")
        lines += [f"  {c}" for c in sorted(affected)]
    else:
        lines.append(f"No cells are affected by changes to {target}")
    return QueryResult(True, "\n".join(lines), affected)


def dependency_analysis(descriptor: CommandDescriptor, brain: SpreadsheetBrain) -> QueryResult:
    target = _target(descriptor, "Dependency analysis")
    if isinstance(target, QueryResult):
        return target
    deps = brain.dependencies_of(target)
    lines = [f"Dependency analysis for {target}: {len(deps)} dependencies"]
    if deps:
        lines.append("Dependencies:")
        lines += [f"  {c}" for c in sorted(deps)]
    else:
        lines.append(f"No dependencies found for {target}")
    return QueryResult(True, "\n".join(lines), deps)


def list_formulas(descriptor: CommandDescriptor, brain: SpreadsheetBrain) -> QueryResult:
    cells = brain.formula_cells()
    return QueryResult(True, _format_formulas(cells), cells)


def list_sheets(descriptor: CommandDescriptor, brain: SpreadsheetBrain) -> QueryResult:
    sheets = brain.sheet_names()
    lines = ["Sheets in this spreadsheet:"]
    lines += [f"{i}. {name}" for i, name in enumerate(sheets, 1)]
    return QueryResult(True, "\n".join(lines), sheets)


def _matching(cells: list[CellNode], words: tuple[str, ...]) -> list[CellNode]:
    return [c for c in cells if c.value and any(w in c.value.lower() for w in words)][:SEARCH_LIMIT]


def find_cells(descriptor: CommandDescriptor, brain: SpreadsheetBrain) -> QueryResult:
    cells = brain.all_cells()

    sheet = (descriptor.sheet_name or "").strip()
    if sheet:
        in_sheet = [c for c in cells if c.sheet_id.lower() == sheet.lower()]
        shown = in_sheet[:SHEET_CELL_LIMIT]
        lines = [f"Cells in sheet '{sheet}':"]
        lines += [f"{i}. {c.a1_notation}: {c.value or '(empty)'}" for i, c in enumerate(shown, 1)]
        if len(in_sheet) > SHEET_CELL_LIMIT:
            lines.append(f"... and {len(in_sheet) - SHEET_CELL_LIMIT} more cells")
        return QueryResult(True, "\n".join(lines), shown)

    wanted = f"{descriptor.criteria or ''} {descriptor.description or ''}".lower()
    if "july" in wanted or "date" in wanted:
        found = _matching(cells, _DATE_WORDS)
        return QueryResult(True, f"Found {len(found)} cells containing date-related data", found)
    if any(w in wanted for w in ("financial", "revenue", "money")):
        found = _matching(cells, _FINANCIAL_WORDS)
        return QueryResult(True, f"Found {len(found)} cells containing financial data", found)
    if "formula" in wanted:
        formulas = brain.formula_cells()
        return QueryResult(True, _format_formulas(formulas), formulas)

    sample = cells[:SEARCH_LIMIT]
    return QueryResult(
        True,
        f"Found {len(sample)} sample cells across all sheets (use more specific search terms)",
        sample,
    )


def update_cell(descriptor: CommandDescriptor, brain: SpreadsheetBrain) -> QueryResult:
    target = _target(descriptor, "Update cell")
    if isinstance(target, QueryResult):
        return target
    if descriptor.new_value is None:
        return _fail("Update cell requires a new value")
    if brain.update_cell(target, descriptor.new_value):
        return QueryResult(True, f"Cell {target} updated to {descriptor.new_value}")
    return _fail(f"Failed to update cell {target}")


def error(descriptor: CommandDescriptor, brain: SpreadsheetBrain) -> QueryResult:
    return _fail(descriptor.error or "Unknown error")


HANDLERS = {
    IMPACT_ANALYSIS: impact_analysis,
    DEPENDENCY_ANALYSIS: dependency_analysis,
    LIST_FORMULAS: list_formulas,
    LIST_SHEETS: list_sheets,
    FIND_CELLS: find_cells,
    UPDATE_CELL: update_cell,
    ERROR: error,
}


def execute_command(
    descriptor: CommandDescriptor | Mapping[str, Any], brain: SpreadsheetBrain
) -> QueryResult:
    """Run one structured command; failures are returned, not raised."""
    if not isinstance(descriptor, CommandDescriptor):
        try:
            descriptor = CommandDescriptor.model_validate(descriptor)
        except ValidationError as e:
            return _fail(f"Invalid query: {e.errors()[0]['msg']}")

    command = (descriptor.command or "").strip()
    if not command:
        return _fail("Invalid query: missing 'command' field")

    handler = HANDLERS.get(command)
    if handler is None:
        return _fail(f"Unknown command: {command}")

    try:
        return handler(descriptor, brain)
    except Exception as e:
        logger.exception(f"Error executing {command}")
        return _fail(f"Error executing query: {e}")


def ask(question: str, brain: SpreadsheetBrain, translator) -> QueryResult:
    """Natural language -> CommandDescriptor -> QueryResult."""
    descriptor = translator.translate(question, brain)
    logger.info(f"Translated {question!r} -> {descriptor.model_dump(exclude_none=True)}")
    return execute_command(descriptor, brain)

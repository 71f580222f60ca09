# spreadsheet_brain/commands.py
"""
Structured commands and the keyword translator used when no LLM is available.
"""
import logging
import re

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

IMPACT_ANALYSIS = "impact_analysis"
DEPENDENCY_ANALYSIS = "dependency_analysis"
LIST_FORMULAS = "list_formulas"
LIST_SHEETS = "list_sheets"
FIND_CELLS = "find_cells"
UPDATE_CELL = "update_cell"
ERROR = "error"

COMMANDS = (
    IMPACT_ANALYSIS,
    DEPENDENCY_ANALYSIS,
    LIST_FORMULAS,
    LIST_SHEETS,
    FIND_CELLS,
    UPDATE_CELL,
    ERROR,
)


# ──────────────────────────────────────────────────────────────
# Function-style schema the LLM fills in, also used for raw JSON
# ──────────────────────────────────────────────────────────────
class CommandDescriptor(BaseModel):
    """
    One spreadsheet operation, translated from a natural-language question.
    """
    command: str | None = Field(None, description="One of: " + ", ".join(COMMANDS))
    target_cell: str | None = Field(
        None, description="Cell reference such as A1 or Sales!B2, when the command needs one"
    )
    new_value: str | None = Field(None, description="Value or =formula to write, for update_cell")
    sheet_name: str | None = Field(None, description="Sheet to restrict find_cells to")
    criteria: str | None = Field(None, description="Keyword filter for find_cells, e.g. date or financial")
    description: str | None = Field(None, description="Short description of what this query does")
    error: str | None = Field(None, description="Why the question could not be understood, for error")


# Cell refs like A1, b2, Sales!C3 (sheet keeps its case)
_CELL_RE = re.compile(r"\b(?:([A-Za-z0-9_]+)!)?([A-Za-z]{1,3}[0-9]+)\b")
_SHEET_RE = re.compile(
    r"(?:cells?\s+(?:in|from)\s+(?:the\s+)?|list\s+cells?\s+in\s+(?:the\s+)?)"
    r"([A-Za-z0-9 _-]+?)(?:\s+sheet)?[.?!]?$",
    re.IGNORECASE,
)
_VALUE_RE = re.compile(r"\bto\s+(.+)$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\b\d+(?:\.\d+)?\b")
_DEPENDENCY_RE = re.compile(
    r"dependencies\s+of|does\s+\S+\s+depend\s+on|\buses\b|\breferences\b|\bprecedents?\b",
    re.IGNORECASE,
)


def extract_cell_reference(question: str) -> str | None:
    m = _CELL_RE.search(question)
    if not m:
        return None
    sheet, a1 = m.group(1), m.group(2).upper()
    return f"{sheet}!{a1}" if sheet else a1


def extract_sheet_name(question: str) -> str | None:
    m = _SHEET_RE.search(question.strip())
    if not m:
        return None
    return m.group(1).strip() or None


def extract_new_value(question: str) -> str | None:
    m = _VALUE_RE.search(question.strip())
    if m:
        value = re.sub(r"\s+(formula|value|cell|number|text)\b.*$", "", m.group(1).strip())
        return value or None
    m = _NUMBER_RE.search(question)
    return m.group() if m else None


def rule_based_command(question: str) -> CommandDescriptor:
    """Keyword matching, checked in a fixed priority order."""
    q = question.lower()
    cell = extract_cell_reference(question)

    if "sheets" in q:
        return CommandDescriptor(command=LIST_SHEETS, description="List all sheets in the spreadsheet")

    if "cells in" in q and "sheet" in q:
        sheet = extract_sheet_name(question)
        if sheet:
            return CommandDescriptor(
                command=FIND_CELLS, sheet_name=sheet, description=f"Show cells in the {sheet} sheet"
            )

    if re.search(r"\bdates?\b", q):
        return CommandDescriptor(command=FIND_CELLS, criteria="date", description="Find cells containing dates")

    if any(w in q for w in ("financial", "revenue", "cost", "money")):
        return CommandDescriptor(
            command=FIND_CELLS, criteria="financial", description="Find cells with financial data"
        )

    if cell and _DEPENDENCY_RE.search(question):
        return CommandDescriptor(
            command=DEPENDENCY_ANALYSIS, target_cell=cell, description=f"Find all cells that {cell} depends on"
        )

    if cell and any(w in q for w in ("impact", "affected", "depend", "break")):
        return CommandDescriptor(
            command=IMPACT_ANALYSIS, target_cell=cell, description=f"Find all cells affected by changing {cell}"
        )

    if cell and any(w in q for w in ("set", "update", "change")):
        value = extract_new_value(question)
        if value is not None:
            return CommandDescriptor(
                command=UPDATE_CELL, target_cell=cell, new_value=value,
                description=f"Update cell {cell} to {value}",
            )

    if "formula" in q:
        return CommandDescriptor(command=LIST_FORMULAS, description="List all cells containing formulas")

    if cell:
        return CommandDescriptor(
            command=IMPACT_ANALYSIS, target_cell=cell, description=f"Find all cells affected by changing {cell}"
        )

    logger.warning(f"No pattern matched for question: {question!r}")
    return CommandDescriptor(command=ERROR, error=f"Could not understand query: {question}")

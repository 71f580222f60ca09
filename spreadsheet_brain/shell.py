# spreadsheet_brain/shell.py
"""Line-oriented command loop: `impact A1`, `deps Sales!E2`, `ask ...`."""
import logging
from typing import Callable

from .brain import SpreadsheetBrain
from .query_engine import ask

logger = logging.getLogger(__name__)

PROMPT = "spreadsheet-brain> "

HELP = """Available commands:
  impact <cell>     - Analyze impact of changing a cell
  deps <cell>       - Show dependencies of a cell
  ask <question>    - Ask a natural language question
  formulas          - List all formula cells
  sheets            - List all sheets
  summary           - Show graph summary
  reload            - Re-read the spreadsheet now
  help              - Show this help
  quit              - Exit the application

Example questions:
  ask which cells break if I change A1
  ask show me all formulas"""

_USAGE = {
    "impact": "Usage: impact <cell>\nExample: impact A1",
    "deps": "Usage: deps <cell>\nExample: deps A1",
    "ask": "Usage: ask <question>\nExample: ask what cells depend on A1",
}


class CommandShell:

    def __init__(self, brain: SpreadsheetBrain, translator):
        self.brain = brain
        self.translator = translator
        self._handlers: dict[str, Callable[[str], str]] = {
            "impact": self._impact,
            "deps": self._deps,
            "ask": self._ask,
            "formulas": self._formulas,
            "sheets": self._sheets,
            "summary": lambda _: str(self.brain.summary()),
            "reload": self._reload,
            "help": lambda _: HELP,
        }

    def execute(self, line: str) -> str:
        """Run one input line and return what should be printed."""
        parts = line.strip().split(None, 1)
        if not parts:
            return ""
        cmd, arg = parts[0].lower(), (parts[1].strip() if len(parts) > 1 else "")
        handler = self._handlers.get(cmd)
        if handler is None:
            return f"Unknown command: {cmd}\nType 'help' for available commands."
        if cmd in _USAGE and not arg:
            return _USAGE[cmd]
        return handler(arg)

    def run(self, read: Callable[[str], str] = input, write: Callable[[str], None] = print) -> None:
        write(HELP + "\n")
        while True:
            try:
                line = read(PROMPT).strip()
            except EOFError:
                break
            if line.lower() in ("quit", "exit"):
                break
            if not line:
                continue
            try:
                out = self.execute(line)
            except Exception as e:
                logger.exception(f"Error processing command: {line}")
                out = f"Error: {e}"
            if out:
                write(out)
        write("Goodbye!")

    # ------------------------------------------------------------ handlers
    def _impact(self, cell: str) -> str:
        affected = self.brain.dependents_of(cell)
        if not affected:
            return f"No cells are affected by changes to {cell}"
        return "\n".join([f"Cells affected by {cell}:"] + [f"  {c}" for c in sorted(affected)])

    def _deps(self, cell: str) -> str:
        deps = self.brain.dependencies_of(cell)
        if not deps:
            return f"No dependencies found for {cell}"
        return "\n".join([f"Dependencies of {cell}:"] + [f"  {c}" for c in sorted(deps)])

    def _ask(self, question: str) -> str:
        result = ask(question, self.brain, self.translator)
        if not result.success:
            return f"Error: {result.message}"
        return f"Answer:\n{result.message}"

    def _formulas(self, _: str) -> str:
        cells = self.brain.formula_cells()
        if not cells:
            return "No formulas found in the spreadsheet."
        return "\n".join(["Formula cells:"] + [f"  {c.id}: {c.formula}" for c in cells])

    def _sheets(self, _: str) -> str:
        return "\n".join(["Sheets:"] + [f"  {s}" for s in self.brain.sheet_names()])

    def _reload(self, _: str) -> str:
        self.brain.reload()
        return f"🔄  Reloaded. {self.brain.summary()}"

"""Tests for the interactive command loop."""

from __future__ import annotations

import pytest

from spreadsheet_brain.config import Settings
from spreadsheet_brain.llm import CommandTranslator
from spreadsheet_brain.model import CellSnapshot
from spreadsheet_brain.shell import HELP, PROMPT, CommandShell


@pytest.fixture
def shell(brain) -> CommandShell:
    return CommandShell(brain, CommandTranslator(Settings(LLM_API_KEY="")))


class TestExecute:
    def test_impact(self, shell) -> None:
        assert shell.execute("impact A1") == "Cells affected by A1:\n  Sheet1!B1\n  Sheet1!C1"

    def test_impact_none(self, shell) -> None:
        assert shell.execute("impact D1") == "No cells are affected by changes to D1"

    def test_deps(self, shell) -> None:
        assert shell.execute("DEPS c1") == "Dependencies of c1:\n  Sheet1!A1\n  Sheet1!B1"
        assert shell.execute("deps A1") == "No dependencies found for A1"

    def test_usage_when_argument_missing(self, shell) -> None:
        assert shell.execute("impact").startswith("Usage: impact <cell>")
        assert shell.execute("deps  ").startswith("Usage: deps <cell>")
        assert shell.execute("ask").startswith("Usage: ask <question>")

    def test_ask(self, shell) -> None:
        out = shell.execute("ask show me all sheets")
        assert out.startswith("Answer:\nSheets in this spreadsheet:")

    def test_ask_failure(self, shell) -> None:
        assert shell.execute("ask hello there") == "Error: Could not understand query: hello there"

    def test_formulas_and_sheets(self, shell) -> None:
        assert "Sales!E2: =VLOOKUP(A2,Employees!A:B,2,FALSE)" in shell.execute("formulas")
        assert shell.execute("sheets") == "Sheets:\n  Sheet1\n  Sales\n  Employees"

    def test_no_formulas(self, shell, brain) -> None:
        brain.load_snapshot({"S": [CellSnapshot(1, 1, "1")]})
        assert shell.execute("formulas") == "No formulas found in the spreadsheet."

    def test_summary_and_reload(self, shell, source) -> None:
        assert shell.execute("summary").startswith("Graph Summary: 22 cells")
        assert "Graph Summary" in shell.execute("reload")
        assert source.fetches == 2

    def test_unknown(self, shell) -> None:
        assert shell.execute("frobnicate A1") == (
            "Unknown command: frobnicate\nType 'help' for available commands."
        )

    def test_help_and_blank(self, shell) -> None:
        assert shell.execute("help") == HELP
        assert shell.execute("   ") == ""


class TestRun:
    def test_loop_until_quit(self, shell) -> None:
        lines = iter(["summary", "", "impact A1", "quit", "sheets"])
        prompts, out = [], []

        def read(prompt):
            prompts.append(prompt)
            return next(lines)

        shell.run(read=read, write=out.append)
        assert prompts == [PROMPT] * 4
        assert out[0] == HELP + "\n"
        assert out[1].startswith("Graph Summary")
        assert out[2].startswith("Cells affected by A1:")
        assert out[-1] == "Goodbye!"

    def test_eof_ends_loop(self, shell) -> None:
        def read(prompt):
            raise EOFError

        out = []
        shell.run(read=read, write=out.append)
        assert out[-1] == "Goodbye!"

    def test_errors_do_not_stop_the_loop(self, shell, source) -> None:
        source.fail = True
        lines = iter(["reload", "exit"])
        out = []
        shell.run(read=lambda _: next(lines), write=out.append)
        assert out[1].startswith("Error: Failed to read sheets from 'doc-1'")
        assert out[-1] == "Goodbye!"

"""Tests for the LLM translator and its rule-based fallback."""

from __future__ import annotations

from spreadsheet_brain import llm
from spreadsheet_brain.commands import CommandDescriptor, LIST_FORMULAS, LIST_SHEETS
from spreadsheet_brain.config import Settings
from spreadsheet_brain.llm import CommandTranslator, build_context


def _with_key() -> Settings:
    return Settings(LLM_PROVIDER="openai", LLM_API_KEY="sk-test", LLM_MODEL="gpt-4o")


class TestCommandTranslator:
    def test_without_key_uses_rules(self, brain, monkeypatch) -> None:
        def fail(*args):
            raise AssertionError("LLM must not be used without a key")

        monkeypatch.setattr(llm, "_program", fail)
        translator = CommandTranslator(Settings(LLM_API_KEY=""))
        assert not translator.uses_llm
        assert translator.translate("show me all sheets", brain).command == LIST_SHEETS

    def test_other_provider_uses_rules(self) -> None:
        assert not CommandTranslator(Settings(LLM_PROVIDER="none", LLM_API_KEY="k")).uses_llm

    def test_program_result_is_returned(self, brain, monkeypatch) -> None:
        seen = {}

        def program(**kwargs):
            seen.update(kwargs)
            return CommandDescriptor(command=LIST_FORMULAS)

        monkeypatch.setattr(llm, "_program", lambda model, api_key: program)
        descriptor = CommandTranslator(_with_key()).translate("what is computed?", brain)
        assert descriptor.command == LIST_FORMULAS
        assert seen["question"] == "what is computed?"
        assert "Active sheet: Sheet1" in seen["context"]

    def test_llm_failure_falls_back(self, brain, monkeypatch) -> None:
        def broken(model, api_key):
            raise RuntimeError("rate limited")

        monkeypatch.setattr(llm, "_program", broken)
        descriptor = CommandTranslator(_with_key()).translate("show me all sheets", brain)
        assert descriptor.command == LIST_SHEETS


class TestBuildContext:
    def test_lists_sheets_and_formulas(self, brain) -> None:
        context = build_context(brain)
        assert "Sheets: Sheet1, Sales, Employees" in context
        assert "Graph Summary: 22 cells" in context
        assert "Sheet1!B1: =A1*2" in context

# spreadsheet_brain/llm.py
"""
Natural language -> CommandDescriptor, via a llama-index Pydantic program.

Without an API key, or whenever the LLM call fails, the keyword rules in
``commands.rule_based_command`` are used instead.
"""
import logging
from functools import lru_cache

from llama_index.core.llms import ChatMessage
from llama_index.core.prompts import ChatPromptTemplate
from llama_index.llms.openai import OpenAI
from llama_index.program.openai import OpenAIPydanticProgram

from .commands import CommandDescriptor, rule_based_command
from .config import Settings

logger = logging.getLogger(__name__)

CONTEXT_FORMULAS = 5

_prompt = ChatPromptTemplate(
    message_templates=[
        ChatMessage(
            role="system",
            content=(
                "You help analyse a spreadsheet dependency graph. Every cell is "
                "identified as SheetName!A1, and a formula cell DEPENDS_ON each cell "
                "its formula references.\n\n"
                "Translate the user's question into exactly one command:\n"
                " • list_sheets: list all sheets in the spreadsheet\n"
                " • impact_analysis: cells affected by changing target_cell\n"
                " • dependency_analysis: cells that target_cell depends on\n"
                " • list_formulas: all cells containing formulas\n"
                " • find_cells: cells matching criteria, or every cell of sheet_name\n"
                " • update_cell: write new_value (a value or =formula) into target_cell\n"
                " • error: the question cannot be answered; explain why in error\n\n"
                "Examples:\n"
                " 'what is the impact of changing B2' -> impact_analysis, target_cell B2\n"
                " 'what does Sales!E2 depend on' -> dependency_analysis, target_cell Sales!E2\n"
                " 'show me cells in the Deals sheet' -> find_cells, sheet_name Deals\n"
                " 'change B2 formula to =A1*2' -> update_cell, target_cell B2, new_value =A1*2\n"
            ),
        ),
        ChatMessage(role="user", content="Context:\n{context}\n\nUser query: {question}"),
    ]
)


@lru_cache(maxsize=4)
def _program(model: str, api_key: str) -> OpenAIPydanticProgram:
    llm = OpenAI(model=model, api_key=api_key, temperature=0)
    return OpenAIPydanticProgram.from_defaults(
        llm=llm,
        prompt=_prompt,
        output_cls=CommandDescriptor,
        verbose=False,
    )


def build_context(brain) -> str:
    """Spreadsheet facts handed to the LLM alongside the question."""
    formulas = brain.formula_cells()
    lines = [
        f"Spreadsheet: {brain.document_id}",
        f"Sheets: {', '.join(brain.sheet_names())}",
        f"Active sheet: {brain.active_sheet}",
        str(brain.summary()),
    ]
    if formulas:
        lines.append("Example formulas:")
        lines += [f"  {c.id}: {c.formula}" for c in formulas[:CONTEXT_FORMULAS]]
    return "\n".join(lines)


class CommandTranslator:

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        if not self.uses_llm:
            logger.info("No LLM configured, using rule-based query processing")

    @property
    def uses_llm(self) -> bool:
        return self.settings.LLM_PROVIDER == "openai" and bool(self.settings.LLM_API_KEY)

    def translate(self, question: str, brain) -> CommandDescriptor:
        if not self.uses_llm:
            return rule_based_command(question)
        try:
            program = _program(self.settings.LLM_MODEL, self.settings.LLM_API_KEY)
            return program(question=question, context=build_context(brain))
        except Exception as e:
            logger.warning(f"LLM error, falling back to rule-based processing: {e}")
            return rule_based_command(question)

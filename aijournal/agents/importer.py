"""Import Agent for model-backed column mapping.

This agent receives a bounded sample of raw spreadsheet rows and returns
trade drafts in the canonical schema. Its output is validated strictly:
anything that is not a JSON array of valid trades fails the import.
"""

import logging
from typing import Optional, Sequence

from agents import Agent
from pydantic import TypeAdapter, ValidationError

from aijournal.agents.base import create_agent, run_agent_sync, strip_code_fence, to_prompt_json
from aijournal.errors import EmptyImportError, InferenceError
from aijournal.importer.normalizer import RawRow
from aijournal.models import TradeDraft


logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_LIMIT = 100

_DRAFT_LIST = TypeAdapter(list[TradeDraft])


IMPORT_AGENT_INSTRUCTIONS = """You are an expert data analyst specializing in trading journals.
Your task is to interpret and standardize raw data from a spreadsheet into a structured JSON format.
The user can upload any file, so you must be flexible.

Rules:
- Be intelligent about variations in column names (e.g. 'profit', 'P&L', 'net pnl' all map to 'pnl').
- For numeric fields, return plain numbers: strip currency symbols, spaces and thousands separators.
- For enums, pick the most likely value or a sensible default.
- If a crucial field like 'pnl' is completely missing from a row, skip that row.
- Keep the rows in their original order and emit at most one trade per row.
- Return ONLY a valid JSON array of trade objects. No prose, no Markdown.
"""

TARGET_SCHEMA = """{
  "date": "YYYY-MM-DD", "pair": "string", "lotSize": number, "position": "long" | "short",
  "status": "win" | "loss" | "breakeven", "pnl": number (the profit or loss), "commission": number >= 0,
  "session": "asia" | "london" | "new york", "bias": "bullish" | "bearish" | "ranging",
  "confirmSmt": boolean, "newsImpact": "high" | "medium" | "low" | "none",
  "emotion": "string", "grade": "A" | "B" | "C" | "D" | "F", "notes": "string"
}"""


def parse_import_response(text: str) -> list[TradeDraft]:
    """Validate a model response as a list of trade drafts.

    Raises:
        InferenceError: If the response is not a JSON array of valid trades.
    """
    try:
        return _DRAFT_LIST.validate_json(strip_code_fence(text))
    except ValidationError as e:
        raise InferenceError(f"Import response did not match the trade schema: {e}") from e


class ImportAgent:
    """Normalizer that delegates column mapping to a language model.

    Only the first ``sample_limit`` rows are sent to the model.
    """

    def __init__(self, model: Optional[str] = None, sample_limit: int = DEFAULT_SAMPLE_LIMIT):
        """Initialize the Import Agent.

        Args:
            model: Optional model override.
            sample_limit: Maximum number of rows to send.
        """
        self.sample_limit = sample_limit
        self._agent = self._create_agent(model)

    def _create_agent(self, model: Optional[str]) -> Agent:
        """Create the underlying agent."""
        return create_agent(
            name="Import Agent",
            instructions=IMPORT_AGENT_INSTRUCTIONS,
            model=model,
        )

    def build_prompt(self, rows: Sequence[RawRow]) -> str:
        """Build the prompt for a row sample."""
        sample = [dict(row) for row in rows[: self.sample_limit]]
        return f"""Here is the target JSON structure for each trade record. You must adhere to it:
{TARGET_SCHEMA}

Here is the raw data from the user's file:
{to_prompt_json(sample)}

Identify the columns that correspond to each field and return the JSON array of trades."""

    def normalize(self, rows: Sequence[RawRow]) -> list[TradeDraft]:
        """Normalize rows through the model.

        Raises:
            EmptyImportError: If there are no rows.
            InferenceError: If the call fails, the response is invalid, or
                it holds more trades than rows sent.
        """
        if not rows:
            raise EmptyImportError()

        if len(rows) > self.sample_limit:
            logger.warning(
                "Sending only the first %d of %d rows to the model", self.sample_limit, len(rows)
            )

        try:
            response = run_agent_sync(self._agent, self.build_prompt(rows))
        except Exception as e:
            raise InferenceError(f"Import model call failed: {e}") from e

        drafts = parse_import_response(response)
        sent = min(len(rows), self.sample_limit)
        if len(drafts) > sent:
            raise InferenceError(f"Model returned {len(drafts)} trades for {sent} rows")
        logger.info("Model returned %d trades for %d rows", len(drafts), sent)
        return drafts

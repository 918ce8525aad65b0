"""Analysis Agent for model-backed trade statistics.

The agent receives the full trade set as CSV text and must answer with
a JSON object matching ``AnalysisResult``. Any other answer fails the
analysis; nothing partial is accepted.
"""

import csv
import io
import logging
from typing import Optional, Sequence

from agents import Agent
from pydantic import ValidationError

from aijournal.agents.base import create_agent, run_agent_sync, strip_code_fence
from aijournal.errors import InferenceError
from aijournal.models import AnalysisResult, Trade


logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "date", "pair", "lotSize", "position", "status", "pnl", "commission", "session",
    "bias", "confirmSmt", "newsImpact", "emotion", "grade",
]


ANALYSIS_AGENT_INSTRUCTIONS = """You are a trading performance analyst.
You receive a trading journal as CSV and compute statistics exactly as specified.
Return ONLY a valid JSON object. No prose, no Markdown.
"""

RESULT_SPEC = """The JSON object must have this shape (all amounts are plain numbers):
{
  "metrics": {
    "totalNetPnl": sum of (pnl - commission),
    "totalProfit": sum of all positive pnl,
    "totalLoss": sum of all negative pnl, as a positive number,
    "winRate": percentage (0-100) of trades whose status is 'win',
    "totalTrades": number of trades,
    "totalCommissions": sum of commission,
    "mostProfitableSession": 'asia', 'london' or 'new york' with the highest sum of (pnl - commission),
    "bestPerformingGrade": the grade with the highest sum of (pnl - commission)
  },
  "cumulativePnlData": {"labels": trade dates in row order, "data": running sum of (pnl - commission)},
  "outcomeDistributionData": {"labels": ["Wins", "Losses", "Breakeven"], "data": [wins, losses, breakevens]},
  "sessionPnlData": {"labels": ["asia", "london", "new york"], "data": [net pnl per session, 0 if none]},
  "gradePnlData": {"labels": grades present in A to F order, "data": [net pnl per grade]}
}
Ties go to the earlier session (asia, london, new york) or grade (A to F)."""


def trades_to_csv(trades: Sequence[Trade]) -> str:
    """Serialize trades as CSV text for the prompt."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for trade in trades:
        writer.writerow(trade.to_record())
    return buffer.getvalue()


def parse_analysis_response(text: str) -> AnalysisResult:
    """Validate a model response as an analysis result.

    Raises:
        InferenceError: If the response is not valid JSON of the right shape.
    """
    try:
        return AnalysisResult.model_validate_json(strip_code_fence(text))
    except ValidationError as e:
        raise InferenceError(f"Analysis response did not match the result schema: {e}") from e


class AnalysisAgent:
    """Analyzer that delegates the statistics to a language model."""

    def __init__(self, model: Optional[str] = None):
        """Initialize the Analysis Agent.

        Args:
            model: Optional model override.
        """
        self._agent = self._create_agent(model)

    def _create_agent(self, model: Optional[str]) -> Agent:
        """Create the underlying agent."""
        return create_agent(
            name="Analysis Agent",
            instructions=ANALYSIS_AGENT_INSTRUCTIONS,
            model=model,
        )

    def build_prompt(self, trades: Sequence[Trade]) -> str:
        return f"""Analyze the following trading journal data (CSV format):
{trades_to_csv(trades)}
{RESULT_SPEC}"""

    def analyze(self, trades: Sequence[Trade]) -> AnalysisResult:
        """Run the analysis through the model.

        Raises:
            InferenceError: If the call fails or the response is invalid.
        """
        try:
            response = run_agent_sync(self._agent, self.build_prompt(trades))
        except Exception as e:
            raise InferenceError(f"Analysis model call failed: {e}") from e

        result = parse_analysis_response(response)
        if result.metrics.total_trades != len(trades):
            raise InferenceError(
                f"Analysis covered {result.metrics.total_trades} trades, expected {len(trades)}"
            )
        return result

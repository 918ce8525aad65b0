"""Trade analytics: metrics, chart series and formatting.

``analyze_trades`` is the local, deterministic analyzer. Any other
analyzer (see ``aijournal.agents.analyst``) must return the same
``AnalysisResult`` shape.
"""

from typing import Protocol, Sequence

from aijournal.analytics.formatting import (
    METRIC_LABELS,
    format_currency,
    format_metrics,
    format_percent,
)
from aijournal.analytics.metrics import best_bucket, calculate_metrics, net_pnl_by
from aijournal.analytics.series import (
    OUTCOME_LABELS,
    cumulative_pnl_series,
    grade_pnl_series,
    outcome_distribution_series,
    session_pnl_series,
)
from aijournal.models import AnalysisResult, Trade


class Analyzer(Protocol):
    """Anything that turns a trade sequence into an analysis result."""

    def analyze(self, trades: Sequence[Trade]) -> AnalysisResult: ...


def analyze_trades(trades: Sequence[Trade]) -> AnalysisResult:
    """Compute metrics and all four chart series for a trade sequence."""
    return AnalysisResult(
        metrics=calculate_metrics(trades),
        cumulative_pnl_data=cumulative_pnl_series(trades),
        outcome_distribution_data=outcome_distribution_series(trades),
        session_pnl_data=session_pnl_series(trades),
        grade_pnl_data=grade_pnl_series(trades),
    )


class LocalAnalyzer:
    """Deterministic analyzer computing everything in-process."""

    def analyze(self, trades: Sequence[Trade]) -> AnalysisResult:
        return analyze_trades(trades)


__all__ = [
    "Analyzer",
    "LocalAnalyzer",
    "analyze_trades",
    "calculate_metrics",
    "best_bucket",
    "net_pnl_by",
    "cumulative_pnl_series",
    "outcome_distribution_series",
    "session_pnl_series",
    "grade_pnl_series",
    "OUTCOME_LABELS",
    "METRIC_LABELS",
    "format_currency",
    "format_percent",
    "format_metrics",
]

"""Data models for the trade journal."""

from aijournal.models.trade import (
    VALID_BIASES,
    VALID_GRADES,
    VALID_NEWS_IMPACTS,
    VALID_POSITIONS,
    VALID_SESSIONS,
    VALID_STATUSES,
    Bias,
    Grade,
    NewsImpact,
    Position,
    Session,
    Status,
    Trade,
    TradeDraft,
)
from aijournal.models.analysis import (
    AnalysisMetrics,
    AnalysisResult,
    AnalysisSnapshot,
    ChartSeries,
)

__all__ = [
    "Trade",
    "TradeDraft",
    "AnalysisMetrics",
    "AnalysisResult",
    "AnalysisSnapshot",
    "ChartSeries",
    "Position",
    "Status",
    "Session",
    "Bias",
    "NewsImpact",
    "Grade",
    "VALID_POSITIONS",
    "VALID_STATUSES",
    "VALID_SESSIONS",
    "VALID_BIASES",
    "VALID_NEWS_IMPACTS",
    "VALID_GRADES",
]

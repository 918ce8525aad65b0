"""Report workbook export.

Lays out the trade list and an analysis result across named sheets:
a metrics summary, every trade, and one sheet per chart series.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

from aijournal.analytics.formatting import METRIC_LABELS, format_metrics
from aijournal.config import CurrencyConfig
from aijournal.models import AnalysisResult, ChartSeries, Trade


logger = logging.getLogger(__name__)

DEFAULT_REPORT_NAME = "AI_Trading_Analysis.xlsx"

TRADE_COLUMNS = [
    "id", "date", "pair", "lotSize", "position", "status", "pnl", "commission", "session",
    "bias", "confirmSmt", "newsImpact", "emotion", "grade", "notes",
]

# Sheet name, label column, value column, result attribute.
SERIES_SHEETS = (
    ("Cumulative PnL Data", "Date", "Cumulative PnL", "cumulative_pnl_data"),
    ("Outcome Distribution Data", "Outcome", "Count", "outcome_distribution_data"),
    ("Session PnL Data", "Session", "Net PnL", "session_pnl_data"),
    ("Grade PnL Data", "Grade", "Net PnL", "grade_pnl_data"),
)


def _series_frame(series: ChartSeries, label_column: str, value_column: str):
    import pandas as pd

    return pd.DataFrame({label_column: series.labels, value_column: series.data})


def build_report_frames(
    trades: Sequence[Trade],
    result: AnalysisResult,
    currency: Optional[CurrencyConfig] = None,
) -> dict:
    """Build one DataFrame per report sheet, keyed by sheet name, in sheet order."""
    import pandas as pd

    formatted = format_metrics(result.metrics, currency)
    summary = pd.DataFrame(
        [{"Metric": label, "Value": formatted[key]} for key, label in METRIC_LABELS.items()]
    )
    all_trades = pd.DataFrame([trade.to_record() for trade in trades], columns=TRADE_COLUMNS)

    frames = {"Analysis Summary": summary, "All Trades": all_trades}
    for sheet, label_column, value_column, attribute in SERIES_SHEETS:
        frames[sheet] = _series_frame(getattr(result, attribute), label_column, value_column)
    return frames


def write_report(
    path: Path,
    trades: Sequence[Trade],
    result: AnalysisResult,
    currency: Optional[CurrencyConfig] = None,
) -> Path:
    """Write the report workbook.

    Args:
        path: Destination .xlsx path. A directory gets the default file name.
        trades: Trades in journal order.
        result: Analysis result for those trades.
        currency: Currency formatting for the summary sheet.

    Returns:
        The path written.
    """
    import pandas as pd

    if path.is_dir():
        path = path / DEFAULT_REPORT_NAME
    path.parent.mkdir(parents=True, exist_ok=True)

    frames = build_report_frames(trades, result, currency)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet, frame in frames.items():
            frame.to_excel(writer, sheet_name=sheet, index=False)

    logger.info("Wrote report with %d trades to %s", len(trades), path)
    return path

"""Presentation formatting for analysis metrics."""

from typing import Optional

from aijournal.config import CurrencyConfig
from aijournal.models import AnalysisMetrics


# Display labels in the order the summary is presented.
METRIC_LABELS = {
    "totalNetPnl": "Total Net PnL",
    "totalProfit": "Total Profit",
    "totalLoss": "Total Loss",
    "winRate": "Win Rate",
    "totalTrades": "Total Trades",
    "totalCommissions": "Total Commissions",
    "mostProfitableSession": "Most Profitable Session",
    "bestPerformingGrade": "Best Performing Grade",
}


def format_amount(amount: float, currency: Optional[CurrencyConfig] = None) -> str:
    """Format a number with the configured digit grouping.

    Trailing zero decimals are dropped, so 33000.0 renders as "33.000"
    and 1250.5 as "1.250,5" under the default settings.
    """
    currency = currency or CurrencyConfig()

    rounded = round(amount, currency.places)
    if rounded == 0:
        rounded = 0.0
    sign = "-" if rounded < 0 else ""

    text = f"{abs(rounded):,.{currency.places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    integer, _, fraction = text.partition(".")
    integer = integer.replace(",", currency.thousands_sep)

    if fraction:
        return f"{sign}{integer}{currency.decimal_sep}{fraction}"
    return f"{sign}{integer}"


def format_currency(amount: float, currency: Optional[CurrencyConfig] = None) -> str:
    """Format a monetary amount, e.g. "Rp 33.000" or "Rp -5.000"."""
    currency = currency or CurrencyConfig()
    return f"{currency.symbol} {format_amount(amount, currency)}".strip()


def format_percent(value: float, places: int = 2) -> str:
    """Format a percentage, e.g. "33.33%"."""
    return f"{value:.{places}f}%"


def format_metrics(
    metrics: AnalysisMetrics, currency: Optional[CurrencyConfig] = None
) -> dict[str, str]:
    """Render metrics as display strings keyed by their camelCase names.

    Missing session or grade values render as "-".
    """
    return {
        "totalNetPnl": format_currency(metrics.total_net_pnl, currency),
        "totalProfit": format_currency(metrics.total_profit, currency),
        "totalLoss": format_currency(metrics.total_loss, currency),
        "winRate": format_percent(metrics.win_rate),
        "totalTrades": str(metrics.total_trades),
        "totalCommissions": format_currency(metrics.total_commissions, currency),
        "mostProfitableSession": metrics.most_profitable_session or "-",
        "bestPerformingGrade": metrics.best_performing_grade or "-",
    }

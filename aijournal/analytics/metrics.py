"""Summary statistics over a collection of trades."""

from collections import defaultdict
from typing import Iterable, Optional, Sequence

from aijournal.models import VALID_GRADES, VALID_SESSIONS, AnalysisMetrics, Trade, TradeDraft


def net_pnl_by(trades: Iterable[TradeDraft], attribute: str) -> dict[str, float]:
    """Sum net P&L per value of a trade attribute, in first-seen order."""
    totals: dict[str, float] = defaultdict(float)
    for trade in trades:
        totals[getattr(trade, attribute)] += trade.net_pnl
    return dict(totals)


def best_bucket(totals: dict[str, float], order: Sequence[str]) -> Optional[str]:
    """Pick the bucket with the highest total.

    Ties go to the bucket that comes first in ``order``. Only buckets
    present in ``totals`` are considered.
    """
    best: Optional[str] = None
    for bucket in order:
        if bucket not in totals:
            continue
        if best is None or totals[bucket] > totals[best]:
            best = bucket
    return best


def calculate_metrics(trades: Sequence[TradeDraft]) -> AnalysisMetrics:
    """Compute summary metrics for a sequence of trades.

    Safe for an empty sequence: totals are zero, the win rate is zero and
    the best session and grade are None.

    Args:
        trades: Trades in journal order.

    Returns:
        Numeric metrics, unformatted.
    """
    total_trades = len(trades)
    wins = sum(1 for t in trades if t.status == "win")

    total_profit = sum(t.pnl for t in trades if t.pnl > 0)
    total_loss = -sum(t.pnl for t in trades if t.pnl < 0)
    total_commissions = sum(t.commission for t in trades)
    total_net_pnl = sum(t.net_pnl for t in trades)

    win_rate = (wins / total_trades * 100) if total_trades > 0 else 0.0

    return AnalysisMetrics(
        total_net_pnl=total_net_pnl,
        total_profit=total_profit,
        total_loss=total_loss,
        win_rate=win_rate,
        total_trades=total_trades,
        total_commissions=total_commissions,
        most_profitable_session=best_bucket(net_pnl_by(trades, "session"), VALID_SESSIONS),
        best_performing_grade=best_bucket(net_pnl_by(trades, "grade"), VALID_GRADES),
    )

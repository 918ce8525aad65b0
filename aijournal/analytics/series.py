"""Chart-ready series built from a collection of trades."""

from itertools import accumulate
from typing import Sequence

from aijournal.analytics.metrics import net_pnl_by
from aijournal.models import VALID_GRADES, VALID_SESSIONS, ChartSeries, TradeDraft


OUTCOME_LABELS = ("Wins", "Losses", "Breakeven")
OUTCOME_STATUSES = ("win", "loss", "breakeven")


def cumulative_pnl_series(trades: Sequence[TradeDraft]) -> ChartSeries:
    """Running net P&L, one point per trade in journal order."""
    return ChartSeries(
        labels=[t.date.isoformat() for t in trades],
        data=list(accumulate(t.net_pnl for t in trades)),
    )


def outcome_distribution_series(trades: Sequence[TradeDraft]) -> ChartSeries:
    """Counts of wins, losses and breakevens, always three points."""
    return ChartSeries(
        labels=list(OUTCOME_LABELS),
        data=[sum(1 for t in trades if t.status == status) for status in OUTCOME_STATUSES],
    )


def session_pnl_series(trades: Sequence[TradeDraft]) -> ChartSeries:
    """Net P&L per session over asia, london and new york, zero when absent."""
    totals = net_pnl_by(trades, "session")
    return ChartSeries(
        labels=list(VALID_SESSIONS),
        data=[totals.get(session, 0.0) for session in VALID_SESSIONS],
    )


def grade_pnl_series(trades: Sequence[TradeDraft]) -> ChartSeries:
    """Net P&L per grade, for grades present, in A to F order."""
    totals = net_pnl_by(trades, "grade")
    grades = [grade for grade in VALID_GRADES if grade in totals]
    return ChartSeries(labels=grades, data=[totals[grade] for grade in grades])

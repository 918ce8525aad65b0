"""Property-based tests for chart series.

**Feature: trade-journal**
"""

from datetime import date

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from aijournal.analytics import (
    OUTCOME_LABELS,
    calculate_metrics,
    cumulative_pnl_series,
    grade_pnl_series,
    outcome_distribution_series,
    session_pnl_series,
)
from aijournal.models import VALID_GRADES, VALID_SESSIONS, VALID_STATUSES, Trade


def trade_strategy():
    """Generate valid trades with few distinct dates."""
    return st.builds(
        Trade,
        id=st.uuids().map(lambda u: u.hex),
        date=st.dates(min_value=date(2024, 1, 1), max_value=date(2024, 1, 5)),
        pair=st.just("EURUSD"),
        status=st.sampled_from(VALID_STATUSES),
        pnl=st.integers(min_value=-10**6, max_value=10**6).map(float),
        commission=st.integers(min_value=0, max_value=10**4).map(float),
        session=st.sampled_from(VALID_SESSIONS),
        grade=st.sampled_from(VALID_GRADES),
    )


trade_lists = st.lists(trade_strategy(), max_size=40)


class TestCumulativeSeries:
    """
    **Feature: trade-journal, Property: Cumulative PnL**

    *For any* trades, the running total has one point per trade, in
    order, and ends at the total net P&L.
    """

    @given(trades=trade_lists)
    @settings(max_examples=100)
    def test_one_point_per_trade(self, trades):
        series = cumulative_pnl_series(trades)

        assert len(series.data) == len(trades)
        assert series.labels == [t.date.isoformat() for t in trades]
        if trades:
            assert series.data[-1] == pytest.approx(calculate_metrics(trades).total_net_pnl)

    @given(trades=trade_lists)
    @settings(max_examples=100)
    def test_steps_are_net_pnl(self, trades):
        data = cumulative_pnl_series(trades).data
        previous = 0.0
        for trade, value in zip(trades, data):
            assert value - previous == pytest.approx(trade.net_pnl)
            previous = value

    def test_same_date_not_collapsed(self):
        trades = [
            Trade(id=str(i), date=date(2024, 1, 1), pair="X", status="win", pnl=10)
            for i in range(3)
        ]

        series = cumulative_pnl_series(trades)

        assert series.labels == ["2024-01-01"] * 3
        assert series.data == [10, 20, 30]


class TestBucketSeries:
    """
    **Feature: trade-journal, Property: Bucket Totals**

    *For any* trades, bucketed series have fixed label order and their
    values sum to the overall total.
    """

    @given(trades=trade_lists)
    @settings(max_examples=100)
    def test_outcomes(self, trades):
        series = outcome_distribution_series(trades)

        assert series.labels == list(OUTCOME_LABELS)
        assert sum(series.data) == len(trades)

    @given(trades=trade_lists)
    @settings(max_examples=100)
    def test_sessions(self, trades):
        series = session_pnl_series(trades)

        assert series.labels == ["asia", "london", "new york"]
        assert sum(series.data) == pytest.approx(sum(t.net_pnl for t in trades))

    @given(trades=trade_lists)
    @settings(max_examples=100)
    def test_grades(self, trades):
        series = grade_pnl_series(trades)

        present = {t.grade for t in trades}
        assert series.labels == [g for g in VALID_GRADES if g in present]
        assert sum(series.data) == pytest.approx(sum(t.net_pnl for t in trades))

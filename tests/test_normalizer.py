"""Property-based tests for import normalization.

**Feature: trade-journal**
"""

from datetime import date

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from aijournal.errors import EmptyImportError
from aijournal.importer.normalizer import (
    LocalNormalizer,
    map_columns,
    match_field,
    normalize_rows,
    parse_bool,
    parse_choice,
    parse_date,
    parse_grade,
    parse_number,
    SESSION_SYNONYMS,
    STATUS_SYNONYMS,
)


IMPORT_DAY = date(2024, 6, 1)


def normalize(rows):
    return LocalNormalizer(today=lambda: IMPORT_DAY).normalize(rows)


pnl_values = st.integers(min_value=-10**9, max_value=10**9).map(float)


class TestPnlSynonyms:
    """
    **Feature: trade-journal, Property: Column Name Variations**

    *For any* P&L column spelled as any accepted variant, the row's value
    lands in the canonical pnl field.
    """

    @given(
        column=st.sampled_from(["pnl", "profit", "P&L", "net pnl", "PnL (Rp)", "Net Profit"]),
        value=pnl_values,
    )
    @settings(max_examples=100)
    def test_pnl_column_variants(self, column: str, value: float):
        drafts = normalize([{"Date": "2024-01-05", "Pair": "eurusd", column: value}])

        assert len(drafts) == 1
        assert drafts[0].pnl == value
        assert drafts[0].pair == "EURUSD"
        assert drafts[0].date == date(2024, 1, 5)

    @pytest.mark.parametrize("column,field", [
        ("Lot Size", "lot_size"),
        ("Position Size", "lot_size"),
        ("Commission", "commission"),
        ("Fees", "commission"),
        ("Symbol", "pair"),
        ("Side", "position"),
        ("Outcome", "status"),
        ("HTF Bias", "bias"),
        ("SMT", "confirm_smt"),
        ("News Impact", "news_impact"),
        ("Setup Grade", "grade"),
        ("Comments", "notes"),
        ("Tanggal", "date"),
        ("P&L (Rp)", "pnl"),
        ("(Notes)", "notes"),
        ("Unrelated", None),
        ("", None),
    ])
    def test_match_field(self, column: str, field):
        assert match_field(column) == field

    def test_exact_matches_come_first(self):
        mapping = map_columns(["Gain", "Net PnL USD", "Net Profit", "P&L"])

        assert mapping["pnl"] == ["P&L", "Net Profit", "Gain", "Net PnL USD"]

    def test_falls_through_to_next_candidate(self):
        drafts = normalize([{"P&L": "n/a", "Net Profit": "1,250.50"}])

        assert drafts[0].pnl == 1250.5

    def test_weak_synonym_does_not_shadow_pnl(self):
        drafts = normalize([{"Result": 2.5, "Gain": 7, "P&L": 150000}])

        assert drafts[0].pnl == 150000


class TestAmountColumnsExcluded:
    """
    **Feature: trade-journal, Property: Amounts Only From Amount Columns**

    *For any* row, price levels and ratios are never read as the P&L or
    the commission; a row whose only P&L-like value is a price is skipped.
    """

    @pytest.mark.parametrize("column", [
        "Take Profit", "TakeProfit", "TP", "Profit Target", "Net Profit Target",
        "Stop Loss", "Entry Price", "Exit Price", "Return %", "Profit (%)", "Profit pct",
    ])
    def test_not_a_pnl_column(self, column: str):
        assert match_field(column) != "pnl"

    @pytest.mark.parametrize("column", ["Commission %", "Fee pct"])
    def test_not_a_commission_column(self, column: str):
        assert match_field(column) != "commission"

    @given(
        level=st.floats(min_value=0.5, max_value=5000, allow_nan=False),
        pnl=pnl_values,
    )
    @settings(max_examples=50)
    def test_blank_pnl_with_take_profit_skipped(self, level: float, pnl: float):
        drafts = normalize([
            {"Pair": "EURUSD", "Take Profit": level, "P&L": None},
            {"Pair": "EURUSD", "Take Profit": level, "P&L": pnl},
        ])

        assert [d.pnl for d in drafts] == [pnl]

    def test_percentage_before_pnl(self):
        drafts = normalize([{"Return %": 2.5, "P&L": 150000}])

        assert drafts[0].pnl == 150000

    def test_percentage_commission_ignored(self):
        drafts = normalize([{"P&L": 100, "Commission %": 0.1, "Commission": 5}])

        assert drafts[0].commission == 5


class TestRowFiltering:
    """
    **Feature: trade-journal, Property: Import Drops Rows Without PnL**

    *For any* batch, rows with no usable P&L are excluded and the rest
    keep their original order.
    """

    @given(values=st.lists(st.one_of(st.none(), pnl_values), min_size=1, max_size=30))
    @settings(max_examples=100)
    def test_rows_without_pnl_skipped_in_order(self, values):
        rows = [{"Pair": f"P{i}", "PnL": value} for i, value in enumerate(values)]

        drafts = normalize(rows)

        expected = [(f"P{i}", v) for i, v in enumerate(values) if v is not None]
        assert [(d.pair, d.pnl) for d in drafts] == expected
        assert len(drafts) <= len(rows)

    def test_row_without_pnl_column_skipped(self):
        drafts = normalize([
            {"Date": "2024-01-01", "Pair": "XAUUSD", "Notes": "no result recorded"},
            {"Date": "2024-01-02", "Pair": "XAUUSD", "Profit": "Rp 50.000"},
        ])

        assert len(drafts) == 1
        assert drafts[0].pnl == 50000

    def test_unparseable_pnl_skipped(self):
        assert normalize([{"PnL": "n/a"}, {"PnL": "abc"}]) == []

    def test_empty_input_raises(self):
        with pytest.raises(EmptyImportError):
            normalize([])

    def test_heterogeneous_rows(self):
        drafts = normalize_rows(
            [{"Profit": 10}, {"Net PnL": -5, "Session": "NY"}],
            today=lambda: IMPORT_DAY,
        )

        assert [d.pnl for d in drafts] == [10, -5]
        assert drafts[1].session == "new york"


class TestDefaults:
    """
    **Feature: trade-journal, Property: Enum Fallbacks**

    Missing or unrecognized values fall back to defaults; the status is
    derived from the P&L sign when absent.
    """

    @given(value=pnl_values)
    def test_minimal_row_defaults(self, value: float):
        draft = normalize([{"pnl": value}])[0]

        assert draft.date == IMPORT_DAY
        assert draft.pair == "UNKNOWN"
        assert draft.lot_size == 0
        assert draft.position == "long"
        assert draft.commission == 0
        assert draft.session == "london"
        assert draft.bias == "ranging"
        assert draft.confirm_smt is False
        assert draft.news_impact == "none"
        assert draft.grade == "C"
        if value > 0:
            assert draft.status == "win"
        elif value < 0:
            assert draft.status == "loss"
        else:
            assert draft.status == "breakeven"

    def test_unrecognized_enum_values(self):
        draft = normalize([{
            "pnl": 5, "session": "Mars", "grade": "Z", "position": "sideways",
            "bias": "???", "news": "maybe", "date": "not a date",
        }])[0]

        assert draft.session == "london"
        assert draft.grade == "C"
        assert draft.position == "long"
        assert draft.bias == "ranging"
        assert draft.news_impact == "none"
        assert draft.date == IMPORT_DAY

    def test_full_row(self):
        draft = normalize([{
            "Tanggal": "15/03/2024",
            "Pair": "gbpjpy",
            "Lot": "0.5",
            "Direction": "SELL",
            "Status": "SL",
            "Net P&L": "(Rp 25.000)",
            "Komisi": "Rp 2.500",
            "Session": "Asian",
            "Bias": "bearish",
            "Confirm SMT": "yes",
            "News Impact": "High",
            "Emotion": "calm",
            "Grade": "B+",
            "Notes": "chased the move",
        }])[0]

        assert draft.date == date(2024, 3, 15)
        assert draft.pair == "GBPJPY"
        assert draft.lot_size == 0.5
        assert draft.position == "short"
        assert draft.status == "loss"
        assert draft.pnl == -25000
        assert draft.commission == 2500
        assert draft.session == "asia"
        assert draft.bias == "bearish"
        assert draft.confirm_smt is True
        assert draft.news_impact == "high"
        assert draft.emotion == "calm"
        assert draft.grade == "B"
        assert draft.notes == "chased the move"

    def test_negative_lot_and_commission_made_positive(self):
        draft = normalize([{"pnl": 1, "lot": -2, "fee": -3}])[0]

        assert draft.lot_size == 2
        assert draft.commission == 3


class TestParseNumber:
    """
    **Feature: trade-journal, Property: Numeric Cleanup**

    Currency symbols, whitespace and thousands separators are stripped.
    """

    @pytest.mark.parametrize("text,expected", [
        ("Rp 50.000", 50000),
        ("Rp 1.250.000", 1250000),
        ("Rp 1.250.000,50", 1250000.5),
        ("$1,234.56", 1234.56),
        ("1 234", 1234),
        ("-75", -75),
        ("+75", 75),
        ("(1,000)", -1000),
        ("500-", -500),
        ("12,5", 12.5),
        ("0,125", 0.125),
        ("0.5", 0.5),
        (".5", 0.5),
        ("IDR 10000", 10000),
        ("€ 99", 99),
    ])
    def test_text_values(self, text: str, expected: float):
        assert parse_number(text) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "1.2.3,4,5", True, float("nan"), float("inf")])
    def test_non_numeric(self, value):
        assert parse_number(value) is None

    @given(amount=st.integers(min_value=0, max_value=10**12))
    @settings(max_examples=100)
    def test_dot_grouped_rupiah(self, amount: int):
        text = "Rp " + f"{amount:,}".replace(",", ".")

        assert parse_number(text) == amount

    @given(amount=st.integers(min_value=0, max_value=10**12), negative=st.booleans())
    @settings(max_examples=100)
    def test_comma_grouped_dollars(self, amount: int, negative: bool):
        text = f"${amount:,}.25"
        if negative:
            text = f"({text})"

        expected = amount + 0.25
        assert parse_number(text) == pytest.approx(-expected if negative else expected)


class TestParseOther:
    """
    **Feature: trade-journal, Property: Cell Decoders**

    Dates, enums, grades and flags decode from their common spellings.
    """

    @pytest.mark.parametrize("value,expected", [
        ("2024-01-05", date(2024, 1, 5)),
        ("2024-01-05T10:30:00", date(2024, 1, 5)),
        ("05/01/2024", date(2024, 1, 5)),
        ("5 Jan 2024", date(2024, 1, 5)),
        ("05/01/2024 10:30", date(2024, 1, 5)),
        (45296, date(2024, 1, 5)),
        ("45296", date(2024, 1, 5)),
        (date(2024, 1, 5), date(2024, 1, 5)),
    ])
    def test_parse_date(self, value, expected):
        assert parse_date(value) == expected

    @pytest.mark.parametrize("value", [None, "", "soon", 12, True])
    def test_parse_date_invalid(self, value):
        assert parse_date(value) is None

    @pytest.mark.parametrize("value,expected", [
        ("New York", "new york"),
        ("new_york", "new york"),
        ("NY", "new york"),
        ("London Open", "london"),
        ("Tokyo", "asia"),
        ("lunar", None),
    ])
    def test_parse_session(self, value, expected):
        assert parse_choice(value, SESSION_SYNONYMS) == expected

    @pytest.mark.parametrize("value,expected", [
        ("Win", "win"),
        ("Take Profit", "win"),
        ("stopped out", "loss"),
        ("BE", "breakeven"),
    ])
    def test_parse_status(self, value, expected):
        assert parse_choice(value, STATUS_SYNONYMS) == expected

    @pytest.mark.parametrize("value,expected", [
        ("A", "A"), ("a+", "A"), ("B-", "B"), ("Grade C", "C"), ("E", "F"), ("Z", None), ("", None),
    ])
    def test_parse_grade(self, value, expected):
        assert parse_grade(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (True, True), ("Yes", True), ("x", True), (1, True), (0, False), ("no", False), (None, None),
    ])
    def test_parse_bool(self, value, expected):
        assert parse_bool(value) is expected

"""Tests for journal orchestration.

**Feature: trade-journal**
"""

import tempfile
from datetime import date
from pathlib import Path

import pandas as pd
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from aijournal.analytics import analyze_trades
from aijournal.config import AnalysisConfig, ImportConfig, JournalConfig, OpenAIConfig
from aijournal.db.store import KeyValueStore
from aijournal.errors import (
    EmptyImportError,
    InferenceError,
    InsufficientTradesError,
    MissingApiKeyError,
    NoAnalysisError,
    NothingToImportError,
    OperationInProgressError,
    WorkbookReadError,
)
from aijournal.importer.normalizer import LocalNormalizer
from aijournal.journal import TradeJournal
from aijournal.models import TradeDraft
from aijournal.orchestrator import (
    RESULT_KEY,
    JournalOrchestrator,
    build_analyzer,
    build_normalizer,
    import_batch_ids,
    open_orchestrator,
)


def make_draft(pnl: float = 100000, **overrides) -> TradeDraft:
    fields = {"date": date(2024, 1, 1), "pair": "EURUSD", "status": "win", "pnl": pnl}
    fields.update(overrides)
    return TradeDraft(**fields)


def add_trades(orchestrator: JournalOrchestrator, count: int) -> None:
    for i in range(count):
        orchestrator.add_trade(make_draft(pnl=1000 * (i + 1)))


class FailingAnalyzer:
    def analyze(self, trades):
        raise RuntimeError("model unavailable")


class RecordingAnalyzer:
    def __init__(self):
        self.calls = 0

    def analyze(self, trades):
        self.calls += 1
        return analyze_trades(trades)


@pytest.fixture
def orchestrator():
    return JournalOrchestrator(TradeJournal(), normalizer=LocalNormalizer())


@pytest.fixture
def temp_config():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield JournalConfig(storage={"db_path": Path(tmpdir) / "journal.db"}), Path(tmpdir)


class TestAnalysisPreconditions:
    """
    **Feature: trade-journal, Property: Minimum Trades**

    *For any* journal with fewer than the minimum trades, analysis is
    refused and no state changes.
    """

    @given(count=st.integers(min_value=0, max_value=2))
    @settings(max_examples=10)
    def test_too_few_trades_rejected(self, count: int):
        analyzer = RecordingAnalyzer()
        orchestrator = JournalOrchestrator(TradeJournal(), analyzer=analyzer)
        add_trades(orchestrator, count)
        version = orchestrator.journal.version

        with pytest.raises(InsufficientTradesError) as excinfo:
            orchestrator.run_analysis()

        assert excinfo.value.minimum == 3
        assert excinfo.value.actual == count
        assert analyzer.calls == 0
        assert orchestrator.result is None
        assert orchestrator.journal.version == version
        assert not orchestrator.is_busy

    def test_existing_result_kept_when_rejected(self):
        config = JournalConfig(analysis=AnalysisConfig(min_trades=3))
        orchestrator = JournalOrchestrator(TradeJournal(), config, analyzer=RecordingAnalyzer())
        add_trades(orchestrator, 3)
        result = orchestrator.run_analysis()

        orchestrator.config = JournalConfig(analysis=AnalysisConfig(min_trades=10))
        with pytest.raises(InsufficientTradesError):
            orchestrator.run_analysis()

        assert orchestrator.result == result

    def test_configured_minimum(self):
        config = JournalConfig(analysis=AnalysisConfig(min_trades=1))
        orchestrator = JournalOrchestrator(TradeJournal(), config, analyzer=RecordingAnalyzer())
        add_trades(orchestrator, 1)

        assert orchestrator.run_analysis().metrics.total_trades == 1


class TestResultLifecycle:
    """
    **Feature: trade-journal, Property: Result Freshness**

    A result is only visible while the trades it was computed from are
    unchanged; a failed run leaves no result.
    """

    def test_result_published(self, orchestrator: JournalOrchestrator):
        add_trades(orchestrator, 3)

        result = orchestrator.run_analysis()

        assert orchestrator.result == result
        assert result.metrics.total_trades == 3
        assert not orchestrator.is_stale

    def test_add_clears_result(self, orchestrator: JournalOrchestrator):
        add_trades(orchestrator, 3)
        orchestrator.run_analysis()

        orchestrator.add_trade(make_draft())

        assert orchestrator.result is None

    def test_import_clears_result(self, orchestrator: JournalOrchestrator):
        add_trades(orchestrator, 3)
        orchestrator.run_analysis()

        orchestrator.import_rows([{"pnl": 5}])

        assert orchestrator.result is None

    def test_reset_clears_everything(self, orchestrator: JournalOrchestrator):
        add_trades(orchestrator, 3)
        orchestrator.run_analysis()

        orchestrator.reset_journal()

        assert len(orchestrator.journal) == 0
        assert orchestrator.result is None

    def test_external_mutation_makes_result_stale(self, orchestrator: JournalOrchestrator):
        add_trades(orchestrator, 3)
        orchestrator.run_analysis()

        orchestrator.journal.reset()

        assert orchestrator.is_stale
        assert orchestrator.result is None

    def test_failed_analysis_leaves_no_result(self):
        orchestrator = JournalOrchestrator(TradeJournal(), analyzer=RecordingAnalyzer())
        add_trades(orchestrator, 3)
        orchestrator.run_analysis()

        orchestrator._analyzer = FailingAnalyzer()
        with pytest.raises(InferenceError):
            orchestrator.run_analysis()

        assert orchestrator.result is None
        assert not orchestrator.is_busy
        assert len(orchestrator.journal) == 3

    def test_result_survives_reopen(self, temp_config):
        config, _ = temp_config
        first = open_orchestrator(config)
        add_trades(first, 3)
        result = first.run_analysis()

        second = open_orchestrator(config)

        assert second.result == result
        assert KeyValueStore(config.db_path).get(RESULT_KEY) is not None

    def test_stored_result_for_other_trades_ignored(self, temp_config):
        config, _ = temp_config
        first = open_orchestrator(config)
        add_trades(first, 3)
        first.run_analysis()
        first.journal.remove(first.journal.snapshot()[0].id)

        second = open_orchestrator(config)

        assert second.result is None
        assert second.is_stale


class TestImport:
    """
    **Feature: trade-journal, Property: Import Appends In Order**

    *For any* accepted batch, the trades are appended after the existing
    ones, in row order, with fresh unique ids.
    """

    @given(pnls=st.lists(st.integers(min_value=-10**6, max_value=10**6), min_size=1, max_size=20))
    @settings(max_examples=30)
    def test_appends_in_order(self, pnls):
        orchestrator = JournalOrchestrator(TradeJournal(), normalizer=LocalNormalizer())
        orchestrator.add_trade(make_draft())

        imported = orchestrator.import_rows([{"Profit": p} for p in pnls])

        trades = orchestrator.journal.snapshot()
        assert [t.pnl for t in trades[1:]] == pnls
        assert list(trades[1:]) == imported
        assert len({t.id for t in trades}) == len(trades)

    def test_batches_get_distinct_ids(self, orchestrator: JournalOrchestrator):
        orchestrator.import_rows([{"pnl": 1}, {"pnl": 2}])
        orchestrator.import_rows([{"pnl": 1}, {"pnl": 2}])

        ids = [t.id for t in orchestrator.journal]
        assert len(set(ids)) == 4
        assert all(i.startswith("import-") for i in ids)

    def test_empty_rows_rejected(self, orchestrator: JournalOrchestrator):
        with pytest.raises(EmptyImportError):
            orchestrator.import_rows([])

        assert orchestrator.journal.version == 0

    def test_no_valid_rows(self, orchestrator: JournalOrchestrator):
        with pytest.raises(NothingToImportError) as excinfo:
            orchestrator.import_rows([{"Notes": "x"}, {"Pair": "EURUSD"}])

        assert excinfo.value.rows_read == 2
        assert len(orchestrator.journal) == 0

    def test_normalizer_crash_wrapped(self):
        class Broken:
            def normalize(self, rows):
                raise ConnectionError("network down")

        orchestrator = JournalOrchestrator(TradeJournal(), normalizer=Broken())

        with pytest.raises(InferenceError):
            orchestrator.import_rows([{"pnl": 1}])
        assert len(orchestrator.journal) == 0

    def test_import_file(self, orchestrator: JournalOrchestrator):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "trades.xlsx"
            pd.DataFrame({
                "Date": ["2024-01-01", "2024-01-02", None],
                "Pair": ["EURUSD", "GBPUSD", "XAUUSD"],
                "Net P&L": [150000, -50000, None],
                "Session": ["London", "NY", "Asia"],
            }).to_excel(path, index=False)

            imported = orchestrator.import_file(path)

        assert [t.pair for t in imported] == ["EURUSD", "GBPUSD"]
        assert [t.session for t in imported] == ["london", "new york"]

    def test_import_missing_file(self, orchestrator: JournalOrchestrator):
        with pytest.raises(WorkbookReadError):
            orchestrator.import_file(Path("/nonexistent/trades.xlsx"))

    def test_batch_ids(self):
        ids = import_batch_ids(3)

        assert len(set(ids)) == 3
        assert ids[0].endswith("-0") and ids[2].endswith("-2")


class TestBusyGuard:
    """
    **Feature: trade-journal, Property: One Operation At A Time**

    An operation started while another one is running is refused.
    """

    def test_analysis_during_import_refused(self):
        holder = {}

        class Reentrant:
            def normalize(self, rows):
                holder["error"] = None
                try:
                    holder["orchestrator"].run_analysis()
                except OperationInProgressError as e:
                    holder["error"] = e
                return [make_draft()]

        orchestrator = JournalOrchestrator(TradeJournal(), normalizer=Reentrant())
        holder["orchestrator"] = orchestrator

        orchestrator.import_rows([{"pnl": 1}])

        assert isinstance(holder["error"], OperationInProgressError)
        assert not orchestrator.is_busy
        assert len(orchestrator.journal) == 1


class TestExport:
    """Export requires a current result."""

    def test_without_result(self, orchestrator: JournalOrchestrator):
        with pytest.raises(NoAnalysisError):
            orchestrator.export_report(Path("report.xlsx"))

    def test_after_analysis(self, orchestrator: JournalOrchestrator):
        add_trades(orchestrator, 3)
        orchestrator.run_analysis()

        with tempfile.TemporaryDirectory() as tmpdir:
            path = orchestrator.export_report(Path(tmpdir))

            assert path.name == "AI_Trading_Analysis.xlsx"
            assert path.exists()


class TestEngineSelection:
    """Strategies are chosen from configuration."""

    def test_local_by_default(self):
        config = JournalConfig()

        assert isinstance(build_normalizer(config), LocalNormalizer)
        assert build_analyzer(config).analyze([]).metrics.total_trades == 0

    def test_agent_without_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config = JournalConfig(
            analysis=AnalysisConfig(engine="agent"),
            import_=ImportConfig(engine="agent"),
            openai=OpenAIConfig(api_key=None),
        )

        with pytest.raises(MissingApiKeyError):
            build_normalizer(config)
        with pytest.raises(MissingApiKeyError):
            build_analyzer(config)

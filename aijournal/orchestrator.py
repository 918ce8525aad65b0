"""Journal orchestration: trade entry, import, analysis and export.

The orchestrator owns the only writable handle on the trade journal. It
assigns ids, runs the configured normalizer and analyzer, keeps the
current analysis result in step with the journal, and refuses to start
an operation while another one is running.
"""

import logging
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Sequence

from pydantic import ValidationError

from aijournal.analytics import Analyzer, LocalAnalyzer
from aijournal.config import JournalConfig
from aijournal.errors import (
    EmptyImportError,
    InferenceError,
    InsufficientTradesError,
    JournalError,
    MissingApiKeyError,
    NoAnalysisError,
    NothingToImportError,
    OperationInProgressError,
)
from aijournal.importer.normalizer import LocalNormalizer, Normalizer, RawRow
from aijournal.journal import BlobStore, TradeJournal
from aijournal.models import AnalysisResult, AnalysisSnapshot, Trade, TradeDraft


logger = logging.getLogger(__name__)

RESULT_KEY = "tradingJournalAnalysis"


def new_trade_id() -> str:
    """Id for a manually entered trade."""
    return uuid.uuid4().hex


def import_batch_ids(count: int) -> list[str]:
    """Ids for one import batch: a shared random prefix plus the row index."""
    batch = uuid.uuid4().hex[:12]
    return [f"import-{batch}-{index}" for index in range(count)]


def build_normalizer(config: JournalConfig) -> Normalizer:
    """Create the normalizer selected by configuration.

    Raises:
        MissingApiKeyError: If the agent engine is selected without a key.
    """
    if config.import_.engine == "agent":
        from aijournal.agents import ImportAgent, configure_api_key

        if not config.api_key:
            raise MissingApiKeyError(
                "OpenAI API key not configured. Add [openai] api_key to the config file "
                "or set import engine to 'local'."
            )
        configure_api_key(config.api_key)
        return ImportAgent(model=config.openai.model, sample_limit=config.import_.sample_limit)
    return LocalNormalizer()


def build_analyzer(config: JournalConfig) -> Analyzer:
    """Create the analyzer selected by configuration.

    Raises:
        MissingApiKeyError: If the agent engine is selected without a key.
    """
    if config.analysis.engine == "agent":
        from aijournal.agents import AnalysisAgent, configure_api_key

        if not config.api_key:
            raise MissingApiKeyError(
                "OpenAI API key not configured. Add [openai] api_key to the config file "
                "or set analysis engine to 'local'."
            )
        configure_api_key(config.api_key)
        return AnalysisAgent(model=config.openai.model)
    return LocalAnalyzer()


class JournalOrchestrator:
    """Coordinates the journal, the import normalizer and the analyzer.

    Args:
        journal: The trade journal to read and mutate.
        config: Application configuration.
        normalizer: Optional normalizer; built from config on first use if omitted.
        analyzer: Optional analyzer; built from config on first use if omitted.
        result_store: Optional store for the last analysis result, so that
            it survives across processes.
    """

    def __init__(
        self,
        journal: TradeJournal,
        config: Optional[JournalConfig] = None,
        normalizer: Optional[Normalizer] = None,
        analyzer: Optional[Analyzer] = None,
        result_store: Optional[BlobStore] = None,
    ):
        self.journal = journal
        self.config = config or JournalConfig()
        self._normalizer = normalizer
        self._analyzer = analyzer
        self._result_store = result_store
        self._snapshot: Optional[AnalysisSnapshot] = self._load_snapshot()
        self._busy: Optional[str] = None

    # ==================== State ====================

    @property
    def is_busy(self) -> bool:
        return self._busy is not None

    @property
    def result(self) -> Optional[AnalysisResult]:
        """Current analysis result, or None if absent or out of date."""
        if self._snapshot is None or self.is_stale:
            return None
        return self._snapshot.result

    @property
    def is_stale(self) -> bool:
        """Whether a held result was computed from a different trade set."""
        return (
            self._snapshot is not None
            and self._snapshot.journal_fingerprint != self.journal.fingerprint()
        )

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        if self._busy is not None:
            raise OperationInProgressError(
                f"Cannot start {name} while {self._busy} is still running"
            )
        self._busy = name
        try:
            yield
        finally:
            self._busy = None

    # ==================== Trades ====================

    def add_trade(self, draft: TradeDraft) -> Trade:
        """Record a manually entered trade."""
        with self._operation("add"):
            trade = Trade.from_draft(draft, new_trade_id())
            self.journal.append([trade])
            self._invalidate_result()
            logger.info("Added trade %s (%s, net %.2f)", trade.id, trade.pair, trade.net_pnl)
            return trade

    def reset_journal(self) -> None:
        """Delete every trade and the current analysis result."""
        with self._operation("reset"):
            self.journal.reset()
            self._invalidate_result()

    # ==================== Import ====================

    def import_rows(self, rows: Sequence[RawRow]) -> list[Trade]:
        """Normalize raw rows and append the resulting trades.

        Raises:
            EmptyImportError: If ``rows`` is empty.
            NothingToImportError: If no row yields a trade.
            InferenceError: If a model-backed normalizer fails.
        """
        with self._operation("import"):
            return self._import_rows(rows)

    def import_file(self, path: Path) -> list[Trade]:
        """Read a spreadsheet and import its rows.

        Raises:
            WorkbookReadError: If the file cannot be parsed.
            EmptyImportError: If the sheet has no rows.
            NothingToImportError: If no row yields a trade.
        """
        from aijournal.importer.spreadsheet import read_rows

        with self._operation("import"):
            rows = read_rows(path)
            return self._import_rows(rows)

    def _import_rows(self, rows: Sequence[RawRow]) -> list[Trade]:
        if not rows:
            raise EmptyImportError()

        normalizer = self._get_normalizer()
        try:
            drafts = normalizer.normalize(rows)
        except JournalError:
            raise
        except Exception as e:
            logger.exception("Normalizer failed")
            raise InferenceError(f"Import failed: {e}") from e

        if not drafts:
            raise NothingToImportError(len(rows))

        ids = import_batch_ids(len(drafts))
        trades = [Trade.from_draft(draft, trade_id) for draft, trade_id in zip(drafts, ids)]
        self.journal.append(trades)
        self._invalidate_result()
        logger.info("Imported %d trades from %d rows", len(trades), len(rows))
        return trades

    # ==================== Analysis ====================

    def run_analysis(self) -> AnalysisResult:
        """Analyze the current trades and publish the result.

        The previous result is cleared before the run starts, so a failed
        run leaves no result at all.

        Raises:
            InsufficientTradesError: If there are fewer trades than configured.
            InferenceError: If the analyzer fails.
        """
        with self._operation("analysis"):
            trades = self.journal.snapshot()
            minimum = self.config.analysis.min_trades
            if len(trades) < minimum:
                raise InsufficientTradesError(minimum, len(trades))

            self._invalidate_result()
            fingerprint = self.journal.fingerprint()
            logger.info("Running analysis over %d trades", len(trades))

            analyzer = self._get_analyzer()
            try:
                result = analyzer.analyze(trades)
            except JournalError:
                logger.exception("Analysis failed")
                raise
            except Exception as e:
                logger.exception("Analysis failed")
                raise InferenceError(f"Analysis failed: {e}") from e

            self._publish(AnalysisSnapshot(journal_fingerprint=fingerprint, result=result))
            logger.info("Analysis finished: net %.2f", result.metrics.total_net_pnl)
            return result

    # ==================== Export ====================

    def export_report(self, path: Path) -> Path:
        """Write the trades and current result to a report workbook.

        Raises:
            NoAnalysisError: If there is no current result.
        """
        from aijournal.report import write_report

        with self._operation("export"):
            result = self.result
            if result is None:
                raise NoAnalysisError()
            return write_report(path, self.journal.snapshot(), result, self.config.currency)

    # ==================== Internals ====================

    def _get_normalizer(self) -> Normalizer:
        if self._normalizer is None:
            self._normalizer = build_normalizer(self.config)
        return self._normalizer

    def _get_analyzer(self) -> Analyzer:
        if self._analyzer is None:
            self._analyzer = build_analyzer(self.config)
        return self._analyzer

    def _invalidate_result(self) -> None:
        if self._snapshot is None:
            return
        logger.debug("Clearing analysis result after journal change")
        self._snapshot = None
        if self._result_store is None:
            return
        try:
            self._result_store.delete(RESULT_KEY)
        except Exception:
            logger.exception("Failed to clear stored analysis result")

    def _publish(self, snapshot: AnalysisSnapshot) -> None:
        self._snapshot = snapshot
        if self._result_store is None:
            return
        try:
            self._result_store.set(RESULT_KEY, snapshot.model_dump_json(by_alias=True))
        except Exception:
            logger.exception("Failed to save analysis result")

    def _load_snapshot(self) -> Optional[AnalysisSnapshot]:
        if self._result_store is None:
            return None
        try:
            blob = self._result_store.get(RESULT_KEY)
        except Exception:
            logger.exception("Failed to load analysis result")
            return None
        if not blob:
            return None
        try:
            return AnalysisSnapshot.model_validate_json(blob)
        except ValidationError as e:
            logger.warning("Stored analysis result is corrupt, ignoring: %s", e)
            return None


def open_orchestrator(config: JournalConfig, **kwargs: Any) -> JournalOrchestrator:
    """Open the configured database and build an orchestrator over it."""
    from aijournal.db.store import KeyValueStore

    store = KeyValueStore(config.db_path)
    journal = TradeJournal.load(store)
    return JournalOrchestrator(journal, config, result_store=store, **kwargs)

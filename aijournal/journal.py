"""The trade collection and its persistence.

The journal is an insertion-ordered, versioned tuple of trades. Every
mutation replaces the whole tuple, bumps the version and writes the
serialized collection to the key-value store under ``JOURNAL_KEY``.
"""

import hashlib
import json
import logging
from typing import Iterable, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

from aijournal.errors import DuplicateTradeError
from aijournal.models import Trade


logger = logging.getLogger(__name__)

JOURNAL_KEY = "tradingJournalTrades"

_TRADE_LIST = TypeAdapter(list[Trade])


class BlobStore(Protocol):
    """Minimal key-value interface the journal persists through."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


def serialize_trades(trades: Iterable[Trade]) -> str:
    """Serialize trades to the JSON blob format used in storage."""
    return json.dumps([trade.to_record() for trade in trades])


def deserialize_trades(blob: str) -> list[Trade]:
    """Parse a stored JSON blob back into trades.

    Raises:
        ValueError: If the blob is not a valid trade list.
    """
    return _TRADE_LIST.validate_json(blob)


class TradeJournal:
    """Explicitly owned in-memory trade collection with write-through persistence."""

    def __init__(self, store: Optional[BlobStore] = None, key: str = JOURNAL_KEY):
        """Initialize an empty journal.

        Args:
            store: Optional blob store. Without one the journal is memory-only.
            key: Storage key for the serialized collection.
        """
        self._store = store
        self._key = key
        self._trades: tuple[Trade, ...] = ()
        self._version = 0

    @classmethod
    def load(cls, store: Optional[BlobStore], key: str = JOURNAL_KEY) -> "TradeJournal":
        """Create a journal populated from the store.

        A missing or corrupt blob yields an empty journal.
        """
        journal = cls(store, key)
        if store is None:
            return journal

        try:
            blob = store.get(key)
        except Exception:
            logger.exception("Failed to load trades from storage")
            return journal

        if not blob:
            return journal

        try:
            trades = deserialize_trades(blob)
        except ValidationError as e:
            logger.error("Stored trades are corrupt, starting empty: %s", e)
            return journal

        if len({trade.id for trade in trades}) != len(trades):
            logger.error("Stored trades contain duplicate ids, starting empty")
            return journal

        journal._trades = tuple(trades)
        return journal

    @property
    def version(self) -> int:
        """Number of mutations since the journal was loaded."""
        return self._version

    def __len__(self) -> int:
        return len(self._trades)

    def __iter__(self):
        return iter(self._trades)

    def fingerprint(self) -> str:
        """Content hash of the current trades, stable across processes."""
        return hashlib.sha256(serialize_trades(self._trades).encode("utf-8")).hexdigest()

    def snapshot(self) -> tuple[Trade, ...]:
        """Get an immutable view of the current trades."""
        return self._trades

    def get(self, trade_id: str) -> Optional[Trade]:
        for trade in self._trades:
            if trade.id == trade_id:
                return trade
        return None

    def append(self, trades: Iterable[Trade]) -> None:
        """Append trades in order.

        Raises:
            DuplicateTradeError: If any id is already present. Nothing is
                appended in that case.
        """
        new_trades = list(trades)
        if not new_trades:
            return

        seen = {trade.id for trade in self._trades}
        for trade in new_trades:
            if trade.id in seen:
                raise DuplicateTradeError(f"Trade id already in journal: {trade.id}")
            seen.add(trade.id)

        self._commit(self._trades + tuple(new_trades))

    def replace(self, trade: Trade) -> None:
        """Replace the trade with the same id.

        Raises:
            KeyError: If no trade has that id.
        """
        for index, existing in enumerate(self._trades):
            if existing.id == trade.id:
                updated = self._trades[:index] + (trade,) + self._trades[index + 1:]
                self._commit(updated)
                return
        raise KeyError(trade.id)

    def remove(self, trade_id: str) -> None:
        """Remove a trade by id.

        Raises:
            KeyError: If no trade has that id.
        """
        remaining = tuple(t for t in self._trades if t.id != trade_id)
        if len(remaining) == len(self._trades):
            raise KeyError(trade_id)
        self._commit(remaining)

    def reset(self) -> None:
        """Remove every trade."""
        self._commit(())

    def _commit(self, trades: tuple[Trade, ...]) -> None:
        self._trades = trades
        self._version += 1
        self._persist()

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.set(self._key, serialize_trades(self._trades))
        except Exception:
            # Keep working from memory; the next mutation retries the write.
            logger.exception("Failed to save trades to storage")

"""Deterministic normalization of raw spreadsheet rows into trade drafts.

Raw rows are open mappings of arbitrary column names to untyped scalar
values. This module is the only place those values are narrowed into the
canonical trade model: each field has one decoder with an explicit
fallback, and a row without a usable P&L value is skipped.
"""

import logging
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, Sequence

from pydantic import ValidationError

from aijournal.errors import EmptyImportError
from aijournal.models import TradeDraft


logger = logging.getLogger(__name__)

RawRow = Mapping[str, Any]

DEFAULT_PAIR = "UNKNOWN"
DEFAULT_POSITION = "long"
DEFAULT_SESSION = "london"
DEFAULT_BIAS = "ranging"
DEFAULT_NEWS_IMPACT = "none"
DEFAULT_GRADE = "C"

# Order matters for the substring pass: "Position Size" is a lot size,
# "PnL (Rp)" is a P&L and not a commission. Within a field, earlier
# synonyms win over later ones when several columns match exactly.
FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "commission": ("commission", "commissions", "comm", "fee", "fees", "komisi", "cost", "costs"),
    "lot_size": ("lotsize", "lot", "lots", "size", "volume", "qty", "quantity"),
    "pnl": (
        "pnl", "pl", "netpnl", "netpl", "profitloss", "realizedpnl", "profit", "netprofit",
        "gainloss", "gain", "result",
    ),
    "date": ("date", "tanggal", "day", "opendate", "closedate", "datetime", "time"),
    "pair": ("pair", "symbol", "instrument", "ticker", "market", "asset"),
    "position": ("position", "side", "direction", "type", "action"),
    "status": ("status", "outcome", "winloss"),
    "session": ("session", "marketsession"),
    "bias": ("bias", "htfbias", "trend"),
    "confirm_smt": ("confirmsmt", "smt", "smtconfirmation"),
    "news_impact": ("newsimpact", "news", "impact"),
    "emotion": ("emotion", "emotions", "feeling", "mood", "psychology"),
    "grade": ("grade", "rating", "setupgrade", "quality"),
    "notes": ("notes", "note", "comment", "comments", "remarks", "description"),
}

# Amount fields never take a price level ("Take Profit", "Entry Price")
# or a ratio ("Return %", "Commission pct").
AMOUNT_FIELDS = ("pnl", "commission")
LEVEL_WORDS = {"target", "take", "tp", "stop", "sl", "price", "entry", "exit", "level"}
LEVEL_TERMS = ("target", "price", "takeprofit", "stoploss")
RATIO_WORDS = {"pct", "percent", "percentage", "ratio"}

POSITION_SYNONYMS = {
    "long": ("long", "buy", "b", "bought", "l"),
    "short": ("short", "sell", "s", "sold"),
}

STATUS_SYNONYMS = {
    "win": ("win", "won", "w", "winner", "tp", "take profit", "profit"),
    "loss": ("loss", "lose", "lost", "l", "loser", "sl", "stop loss", "stopped out"),
    "breakeven": ("breakeven", "break even", "be", "bep", "even", "flat", "scratch"),
}

SESSION_SYNONYMS = {
    "asia": ("asia", "asian", "tokyo", "sydney"),
    "london": ("london", "ldn", "lon", "europe", "european", "eu", "uk"),
    "new york": ("new york", "newyork", "ny", "nyc", "us", "usa", "america", "american"),
}

BIAS_SYNONYMS = {
    "bullish": ("bullish", "bull", "up", "uptrend", "long"),
    "bearish": ("bearish", "bear", "down", "downtrend", "short"),
    "ranging": ("ranging", "range", "sideways", "neutral", "consolidation", "chop"),
}

NEWS_IMPACT_SYNONYMS = {
    "high": ("high", "h", "red", "major"),
    "medium": ("medium", "med", "m", "moderate", "orange"),
    "low": ("low", "l", "yellow", "minor"),
    "none": ("none", "no", "n", "na", "n a", "nil"),
}

TRUE_VALUES = ("true", "yes", "y", "1", "x", "ya", "✓", "✔", "confirmed")

CURRENCY_PATTERN = re.compile(r"(?i)rp|idr|usd|eur|gbp|jpy|inr|[$€£¥₹]")

# Excel stores dates as days since 1899-12-30.
EXCEL_EPOCH = date(1899, 12, 30)
EXCEL_SERIAL_RANGE = (20000, 80000)

DATE_FORMATS = (
    "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%Y/%m/%d", "%m/%d/%Y", "%d %b %Y", "%d %B %Y",
)


class Normalizer(Protocol):
    """Anything that turns raw rows into trade drafts."""

    def normalize(self, rows: Sequence[RawRow]) -> list[TradeDraft]: ...


def normalize_key(key: Any) -> str:
    """Reduce a column name to lowercase letters and digits.

    A parenthesized unit such as "(Rp)" is dropped unless it is the whole name.
    """
    text = str(key).lower()
    without_units = re.sub(r"\(.*?\)", "", text)
    if re.search(r"[a-z0-9]", without_units):
        text = without_units
    return re.sub(r"[^a-z0-9]", "", text)


def _key_words(key: Any) -> set[str]:
    text = str(key).lower()
    words = set(re.findall(r"[a-z0-9]+", text))
    if "%" in text:
        words.add("percent")
    return words


def _excluded(field: str, key: Any, normalized: str) -> bool:
    """Whether a column names a price level or a ratio instead of an amount."""
    if field not in AMOUNT_FIELDS:
        return False
    words = _key_words(key)
    if words & RATIO_WORDS:
        return True
    if field == "pnl":
        return bool(words & LEVEL_WORDS) or any(term in normalized for term in LEVEL_TERMS)
    return False


def _match(key: Any) -> tuple[Optional[str], int]:
    """Match a column name to a field.

    Returns the field and a rank: the synonym position for an exact
    match, or the synonym count for a substring match.
    """
    normalized = normalize_key(key)
    if not normalized:
        return None, 0

    for field, synonyms in FIELD_SYNONYMS.items():
        if normalized in synonyms and not _excluded(field, key, normalized):
            return field, synonyms.index(normalized)

    for field, synonyms in FIELD_SYNONYMS.items():
        if _excluded(field, key, normalized):
            continue
        if any(len(s) >= 3 and s in normalized for s in synonyms):
            return field, len(synonyms)

    return None, 0


def match_field(key: Any) -> Optional[str]:
    """Find the canonical field a column name refers to.

    Args:
        key: Raw column name.

    Returns:
        Canonical field name or None if the column is not recognized.
    """
    return _match(key)[0]


def map_columns(keys: Iterable[Any]) -> dict[str, list[Any]]:
    """Map canonical fields to candidate raw columns.

    Exact synonym matches come first, stronger synonyms before weaker
    ones, then substring matches; ties keep the original column order.
    """
    ranked: dict[str, list[tuple[int, Any]]] = {}
    for key in keys:
        field, rank = _match(key)
        if field is None:
            continue
        ranked.setdefault(field, []).append((rank, key))

    return {
        field: [key for _, key in sorted(ranked[field], key=lambda item: item[0])]
        for field in FIELD_SYNONYMS
        if field in ranked
    }


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def parse_number(value: Any) -> Optional[float]:
    """Parse a numeric cell.

    Strips currency symbols, whitespace and thousands separators. Values
    in parentheses or with a trailing minus are negative.

    Returns:
        The parsed finite number, or None if the value is not numeric.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    text = CURRENCY_PATTERN.sub("", str(value))
    text = re.sub(r"\s+", "", text)
    if not text:
        return None

    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative = True
        text = text[1:-1]
    if text.endswith("-"):
        negative = True
        text = text[:-1]
    if text.startswith("+"):
        text = text[1:]
    elif text.startswith("-"):
        negative = not negative
        text = text[1:]

    text = _strip_separators(text)
    if text is None or not re.fullmatch(r"\d+(\.\d+)?|\.\d+", text):
        return None

    number = float(text)
    if not math.isfinite(number):
        return None
    return -number if negative else number


def _strip_separators(text: str) -> Optional[str]:
    """Rewrite digit grouping so that only a decimal point remains."""
    if "," in text and "." in text:
        decimal = "," if text.rfind(",") > text.rfind(".") else "."
        thousands = "." if decimal == "," else ","
        text = text.replace(thousands, "")
        if text.count(decimal) > 1:
            return None
        return text.replace(",", ".")

    for sep in (",", "."):
        if sep not in text:
            continue
        if text.count(sep) > 1:
            return text.replace(sep, "")
        head, tail = text.split(sep)
        # A lone separator before exactly three digits groups thousands.
        if len(tail) == 3 and head.lstrip("0"):
            return head + tail
        return f"{head}.{tail}" if tail else head

    return text


def parse_date(value: Any) -> Optional[date]:
    """Parse a date cell from a date object, a string or an Excel serial number."""
    if _is_missing(value) or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, (int, float)):
        low, high = EXCEL_SERIAL_RANGE
        if low <= value <= high:
            return EXCEL_EPOCH + timedelta(days=int(value))
        return None

    text = str(value).strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    candidates = [text]
    if " " in text:
        candidates.append(text.split(" ")[0])
    for candidate in candidates:
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue

    if re.fullmatch(r"\d+(\.\d+)?", text):
        return parse_date(float(text))
    return None


def _normalize_token(value: Any) -> str:
    text = str(value).lower()
    text = re.sub(r"[_\-/]+", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def parse_choice(value: Any, synonyms: Mapping[str, Sequence[str]]) -> Optional[str]:
    """Map a free-form value to the nearest enum member.

    Exact synonym matches win, then the first member with a synonym
    appearing as a whole word (or phrase) in the value.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None

    token = _normalize_token(value)
    if not token:
        return None

    for member, words in synonyms.items():
        if token in words or token.replace(" ", "") in words:
            return member

    words_in_value = set(token.split())
    for member, words in synonyms.items():
        for word in words:
            if len(word) < 2:
                continue
            if " " in word:
                if word in token:
                    return member
            elif word in words_in_value:
                return member
    return None


def parse_grade(value: Any) -> Optional[str]:
    """Parse a setup grade; accepts letters with +/- modifiers."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    text = str(value).strip().upper()
    match = re.fullmatch(r"(?:GRADE\s*)?([ABCDF])\s*[+-]?", text)
    if match:
        return match.group(1)
    if text == "E":
        return "F"
    return None


def parse_bool(value: Any) -> Optional[bool]:
    """Parse a checkbox-like cell. Missing cells yield None, anything else a bool."""
    if isinstance(value, bool):
        return value
    if _is_missing(value):
        return None
    if isinstance(value, (int, float)):
        return value == 1
    return _normalize_token(value) in TRUE_VALUES


def parse_text(value: Any) -> Optional[str]:
    """Parse a free-text cell. Missing or blank cells yield None."""
    if _is_missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def status_from_pnl(pnl: float) -> str:
    if pnl > 0:
        return "win"
    if pnl < 0:
        return "loss"
    return "breakeven"


class LocalNormalizer:
    """Rule-based normalizer that inspects every row.

    Args:
        today: Callable giving the date used when a row has no usable
            date. Defaults to ``date.today``.
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self._today = today or date.today

    def normalize(self, rows: Sequence[RawRow]) -> list[TradeDraft]:
        """Normalize rows in order, skipping those without a P&L value.

        Raises:
            EmptyImportError: If there are no rows at all.
        """
        if not rows:
            raise EmptyImportError()

        import_date = self._today()
        mappings: dict[tuple, dict[str, list[Any]]] = {}
        drafts: list[TradeDraft] = []

        for index, row in enumerate(rows):
            keys = tuple(row.keys())
            if keys not in mappings:
                mappings[keys] = map_columns(keys)

            try:
                draft = self.normalize_row(row, mappings[keys], import_date)
            except ValidationError as e:
                logger.debug("Skipping row %d: %s", index, e)
                continue

            if draft is None:
                logger.debug("Skipping row %d: no usable pnl value", index)
                continue
            drafts.append(draft)

        logger.info("Normalized %d of %d rows", len(drafts), len(rows))
        return drafts

    def normalize_row(
        self,
        row: RawRow,
        mapping: Optional[Mapping[str, Sequence[Any]]] = None,
        import_date: Optional[date] = None,
    ) -> Optional[TradeDraft]:
        """Normalize a single row.

        Args:
            row: Raw row.
            mapping: Precomputed field-to-columns mapping for the row's keys.
            import_date: Fallback date.

        Returns:
            A trade draft, or None when the row has no usable P&L.
        """
        if mapping is None:
            mapping = map_columns(row.keys())

        def decode(field: str, decoder: Callable[[Any], Any]) -> Any:
            for column in mapping.get(field, ()):
                decoded = decoder(row.get(column))
                if decoded is not None and decoded != "":
                    return decoded
            return None

        pnl = decode("pnl", parse_number)
        if pnl is None:
            return None

        lot_size = decode("lot_size", parse_number)
        commission = decode("commission", parse_number)
        pair = decode("pair", parse_text)

        return TradeDraft(
            date=decode("date", parse_date) or import_date or self._today(),
            pair=pair.upper() if pair else DEFAULT_PAIR,
            lot_size=abs(lot_size) if lot_size is not None else 0.0,
            position=decode("position", lambda v: parse_choice(v, POSITION_SYNONYMS))
            or DEFAULT_POSITION,
            status=decode("status", lambda v: parse_choice(v, STATUS_SYNONYMS))
            or status_from_pnl(pnl),
            pnl=pnl,
            commission=abs(commission) if commission is not None else 0.0,
            session=decode("session", lambda v: parse_choice(v, SESSION_SYNONYMS))
            or DEFAULT_SESSION,
            bias=decode("bias", lambda v: parse_choice(v, BIAS_SYNONYMS)) or DEFAULT_BIAS,
            confirm_smt=bool(decode("confirm_smt", parse_bool)),
            news_impact=decode("news_impact", lambda v: parse_choice(v, NEWS_IMPACT_SYNONYMS))
            or DEFAULT_NEWS_IMPACT,
            emotion=decode("emotion", parse_text) or "",
            grade=decode("grade", parse_grade) or DEFAULT_GRADE,
            notes=decode("notes", parse_text) or "",
        )


def normalize_rows(
    rows: Sequence[RawRow], today: Optional[Callable[[], date]] = None
) -> list[TradeDraft]:
    """Normalize rows with the rule-based normalizer."""
    return LocalNormalizer(today=today).normalize(rows)

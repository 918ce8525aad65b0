"""Trade data models."""

from datetime import date as date_type
from typing import Any, Literal

from pydantic import BaseModel, Field


Position = Literal["long", "short"]
Status = Literal["win", "loss", "breakeven"]
Session = Literal["asia", "london", "new york"]
Bias = Literal["bullish", "bearish", "ranging"]
NewsImpact = Literal["high", "medium", "low", "none"]
Grade = Literal["A", "B", "C", "D", "F"]

# Declaration order doubles as the tie-break order used by the analytics.
VALID_POSITIONS = ("long", "short")
VALID_STATUSES = ("win", "loss", "breakeven")
VALID_SESSIONS = ("asia", "london", "new york")
VALID_BIASES = ("bullish", "bearish", "ranging")
VALID_NEWS_IMPACTS = ("high", "medium", "low", "none")
VALID_GRADES = ("A", "B", "C", "D", "F")


class TradeDraft(BaseModel):
    """A trade as entered or imported, before it is given an id."""

    date: date_type = Field(..., description="Trade date")
    pair: str = Field(..., min_length=1, description="Instrument symbol, e.g. EURUSD")
    lot_size: float = Field(
        default=0.0, ge=0, allow_inf_nan=False, alias="lotSize", description="Lot size"
    )
    position: Position = Field(default="long", description="Trade direction")
    status: Status = Field(..., description="Trade outcome")
    pnl: float = Field(..., allow_inf_nan=False, description="Gross P&L in the reporting currency")
    commission: float = Field(
        default=0.0, ge=0, allow_inf_nan=False, description="Commission paid"
    )
    session: Session = Field(default="london", description="Market session")
    bias: Bias = Field(default="ranging", description="Higher timeframe bias")
    confirm_smt: bool = Field(default=False, alias="confirmSmt", description="SMT confirmation")
    news_impact: NewsImpact = Field(
        default="none", alias="newsImpact", description="Impact of scheduled news"
    )
    emotion: str = Field(default="", description="Emotional state")
    grade: Grade = Field(default="C", description="Setup grade")
    notes: str = Field(default="", description="User notes")

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def net_pnl(self) -> float:
        """P&L after commission."""
        return self.pnl - self.commission

    def to_record(self) -> dict[str, Any]:
        """Serialize with the camelCase field names used by storage and exports."""
        return self.model_dump(mode="json", by_alias=True)


class Trade(TradeDraft):
    """A trade recorded in the journal."""

    id: str = Field(..., min_length=1, description="Unique trade id")

    @classmethod
    def from_draft(cls, draft: TradeDraft, trade_id: str) -> "Trade":
        """Attach an id to a draft."""
        return cls(id=trade_id, **draft.model_dump())

    def to_record(self) -> dict[str, Any]:
        record = super().to_record()
        return {"id": record.pop("id"), **record}

"""Analysis result data models."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from aijournal.models.trade import Grade, Session


class ChartSeries(BaseModel):
    """Parallel label/value sequences for one chart."""

    labels: list[str] = Field(default_factory=list, description="Point labels")
    data: list[float] = Field(default_factory=list, description="Point values")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_aligned(self) -> "ChartSeries":
        if len(self.labels) != len(self.data):
            raise ValueError(
                f"labels and data must have equal length ({len(self.labels)} != {len(self.data)})"
            )
        return self

    def points(self) -> list[tuple[str, float]]:
        return list(zip(self.labels, self.data))


class AnalysisMetrics(BaseModel):
    """Summary statistics over a set of trades, before formatting."""

    total_net_pnl: float = Field(..., alias="totalNetPnl", description="Sum of pnl - commission")
    total_profit: float = Field(..., ge=0, alias="totalProfit", description="Sum of positive pnl")
    total_loss: float = Field(
        ..., ge=0, alias="totalLoss", description="Magnitude of the sum of negative pnl"
    )
    win_rate: float = Field(..., ge=0, le=100, alias="winRate", description="Win rate percentage")
    total_trades: int = Field(..., ge=0, alias="totalTrades", description="Number of trades")
    total_commissions: float = Field(
        ..., ge=0, alias="totalCommissions", description="Sum of commissions"
    )
    most_profitable_session: Optional[Session] = Field(
        default=None, alias="mostProfitableSession", description="Session with highest net P&L"
    )
    best_performing_grade: Optional[Grade] = Field(
        default=None, alias="bestPerformingGrade", description="Grade with highest net P&L"
    )

    model_config = {"frozen": True, "populate_by_name": True}


class AnalysisResult(BaseModel):
    """Metrics plus the four chart series, recomputed on every run."""

    metrics: AnalysisMetrics
    cumulative_pnl_data: ChartSeries = Field(..., alias="cumulativePnlData")
    outcome_distribution_data: ChartSeries = Field(..., alias="outcomeDistributionData")
    session_pnl_data: ChartSeries = Field(..., alias="sessionPnlData")
    grade_pnl_data: ChartSeries = Field(..., alias="gradePnlData")

    model_config = {"frozen": True, "populate_by_name": True}

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class AnalysisSnapshot(BaseModel):
    """An analysis result tagged with the trade set it describes."""

    journal_fingerprint: str = Field(..., alias="journalFingerprint")
    result: AnalysisResult

    model_config = {"frozen": True, "populate_by_name": True}

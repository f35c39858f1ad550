"""
Pydantic request/response schemas for the Race Edge API.

Requests accept the loose per-runner price shape that feeds produce
(``{"skybet": 3.2, "betfair": {"back": 3.0, "lay": 3.1}}``) and convert it to
the engine's immutable dataclasses.  Price hygiene is left to the engine:
a zero, missing or garbage quote reaches it and is dropped there, so the
API and direct callers behave identically.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from race_edge.core.form import FormSummary
from race_edge.core.market import (
    ArbitrageOpportunity,
    EachWayReturn,
    EfficiencyReport,
    ExchangeBackLay,
    KellyResult,
    Outcome,
    OutcomePrices,
    RaceAnalysis,
    RaceSnapshot,
    StakeSplit,
    ValueBet,
)
from race_edge.core.odds_math import OddsFormat


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

class OutcomeIn(BaseModel):
    """One runner as delivered by a feed."""

    outcome_id: Union[int, str] = Field(..., description="Trap or runner number")
    name: str = Field("", max_length=120)
    prices: Dict[str, Any] = Field(
        default_factory=dict,
        description='Per-source prices, e.g. {"skybet": 3.2, "betfair": {"back": 3.0, "lay": 3.1}}',
    )

    def to_domain(self) -> Outcome:
        return Outcome(
            outcome_id=str(self.outcome_id),
            name=self.name,
            prices=OutcomePrices.from_raw(self.prices),
        )


class RaceSnapshotIn(BaseModel):
    """Payload describing one race."""

    race_id: Union[int, str]
    outcomes: List[OutcomeIn] = Field(default_factory=list, max_length=64)
    descriptor: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("outcomes")
    @classmethod
    def validate_unique_ids(cls, v: List[OutcomeIn]) -> List[OutcomeIn]:
        ids = [str(o.outcome_id) for o in v]
        if len(ids) != len(set(ids)):
            raise ValueError("outcome_id values must be unique within a race")
        return v

    def to_domain(self) -> RaceSnapshot:
        return RaceSnapshot(
            race_id=str(self.race_id),
            outcomes=tuple(o.to_domain() for o in self.outcomes),
            descriptor=self.descriptor,
        )

    model_config = {
        "json_schema_extra": {
            "example": {
                "race_id": "race_0",
                "descriptor": {"track": "Romford", "distance_m": 400},
                "outcomes": [
                    {
                        "outcome_id": 1,
                        "name": "Swift Lightning 1",
                        "prices": {
                            "betfair": {"back": 3.0, "lay": 3.1},
                            "skybet": 3.3,
                            "paddypower": 3.2,
                        },
                    }
                ],
            }
        }
    }


class SnapshotCompareRequest(BaseModel):
    previous: Optional[RaceSnapshotIn] = None
    current: RaceSnapshotIn
    threshold: Optional[float] = Field(None, ge=0.0, description="Override the 5% change threshold")


class SnapshotCompareResponse(BaseModel):
    race_id: str
    significant: bool


# ---------------------------------------------------------------------------
# Engine output
# ---------------------------------------------------------------------------

class OpportunityResponse(BaseModel):
    kind: Literal["exchange_back_lay", "source_vs_exchange"]
    race_id: str
    outcome_id: str
    outcome_name: str
    return_pct: float
    back: Optional[float] = None
    lay: Optional[float] = None
    source: Optional[str] = None
    source_name: Optional[str] = None
    source_price: Optional[float] = None
    exchange_lay: Optional[float] = None

    @classmethod
    def from_domain(cls, opp: ArbitrageOpportunity) -> "OpportunityResponse":
        common = dict(
            kind=opp.kind,
            race_id=opp.race_id,
            outcome_id=opp.outcome_id,
            outcome_name=opp.outcome_name,
            return_pct=round(opp.return_pct, 2),
        )
        if isinstance(opp, ExchangeBackLay):
            return cls(back=opp.back, lay=opp.lay, **common)
        return cls(
            source=opp.source.value,
            source_name=opp.source.display_name,
            source_price=opp.source_price,
            exchange_lay=opp.exchange_lay,
            **common,
        )


class ValueBetResponse(BaseModel):
    race_id: str
    outcome_id: str
    outcome_name: str
    source: str
    source_name: str
    source_price: float
    fair_price: float
    edge_pct: float

    @classmethod
    def from_domain(cls, vb: ValueBet) -> "ValueBetResponse":
        return cls(
            race_id=vb.race_id,
            outcome_id=vb.outcome_id,
            outcome_name=vb.outcome_name,
            source=vb.source.value,
            source_name=vb.source.display_name,
            source_price=vb.source_price,
            fair_price=vb.fair_price,
            edge_pct=round(vb.edge_pct, 2),
        )


class EfficiencyResponse(BaseModel):
    efficiency_pct: float
    overround_pct: float
    rating: Literal["Excellent", "Good", "Fair", "Poor"]

    @classmethod
    def from_domain(cls, report: EfficiencyReport) -> "EfficiencyResponse":
        return cls(
            efficiency_pct=report.efficiency_pct,
            overround_pct=report.overround_pct,
            rating=report.rating.value,
        )


class RaceAnalysisResponse(BaseModel):
    race_id: str
    opportunities: List[OpportunityResponse]
    value_bets: List[ValueBetResponse]
    efficiency: EfficiencyResponse

    @classmethod
    def from_domain(cls, analysis: RaceAnalysis) -> "RaceAnalysisResponse":
        return cls(
            race_id=analysis.race_id,
            opportunities=[OpportunityResponse.from_domain(o) for o in analysis.opportunities],
            value_bets=[ValueBetResponse.from_domain(v) for v in analysis.value_bets],
            efficiency=EfficiencyResponse.from_domain(analysis.efficiency),
        )


class CardAnalysisResponse(BaseModel):
    races: List[RaceAnalysisResponse]
    total_arbitrage: int
    total_value_bets: int


# ---------------------------------------------------------------------------
# Stakes
# ---------------------------------------------------------------------------

class StakeSplitRequest(BaseModel):
    total_stake: float = Field(..., gt=0)
    price_a: float = Field(..., gt=1.0, description="Decimal price of leg A")
    price_b: float = Field(..., gt=1.0, description="Decimal price of leg B")


class StakeSplitResponse(BaseModel):
    stake_a: float
    stake_b: float
    profit_if_a: float
    profit_if_b: float

    @classmethod
    def from_domain(cls, split: StakeSplit) -> "StakeSplitResponse":
        return cls(
            stake_a=split.stake_a,
            stake_b=split.stake_b,
            profit_if_a=split.profit_if_a,
            profit_if_b=split.profit_if_b,
        )


class KellyRequest(BaseModel):
    bankroll: float = Field(..., ge=0)
    odds: float = Field(..., allow_inf_nan=False, description="Decimal price on offer")
    win_prob: float = Field(..., ge=0.0, le=1.0)
    fractional_divisor: float = Field(1.0, gt=0, description="2.0 = half Kelly")


class KellyResponse(BaseModel):
    fraction: float
    recommended_stake: float
    expected_value_pct: float

    @classmethod
    def from_domain(cls, result: KellyResult) -> "KellyResponse":
        return cls(
            fraction=round(result.fraction, 4),
            recommended_stake=round(result.recommended_stake, 2),
            expected_value_pct=round(result.expected_value_pct, 2),
        )


class EachWayRequest(BaseModel):
    stake: float = Field(..., ge=0)
    win_odds: float = Field(..., gt=1.0)
    place_odds: float = Field(..., gt=1.0)


class EachWayResponse(BaseModel):
    win_return: float
    place_return: float
    total_return: float
    profit: float

    @classmethod
    def from_domain(cls, result: EachWayReturn) -> "EachWayResponse":
        return cls(
            win_return=result.win_return,
            place_return=result.place_return,
            total_return=result.total_return,
            profit=result.profit,
        )


# ---------------------------------------------------------------------------
# Form
# ---------------------------------------------------------------------------

class SpeedRatingRequest(BaseModel):
    time_s: float = Field(..., gt=0, description="Run time in seconds")
    distance_m: float = Field(..., gt=0)
    going: str = Field("good", description="fast, good, slow or heavy")


class SpeedRatingResponse(BaseModel):
    speed_rating: int


class FormRequest(BaseModel):
    positions: List[int] = Field(..., description="Finishing positions, most recent first")

    @field_validator("positions")
    @classmethod
    def validate_positions(cls, v: List[int]) -> List[int]:
        if any(p < 1 for p in v):
            raise ValueError("Finishing positions start at 1")
        return v


class FormSummaryResponse(BaseModel):
    runs: int
    average_position: Optional[float] = None
    win_pct: float = 0.0
    place_pct: float = 0.0
    recent_form: str = ""

    @classmethod
    def from_domain(cls, runs: int, summary: Optional[FormSummary]) -> "FormSummaryResponse":
        if summary is None:
            return cls(runs=runs)
        return cls(
            runs=runs,
            average_position=summary.average_position,
            win_pct=round(summary.win_pct, 1),
            place_pct=round(summary.place_pct, 1),
            recent_form=summary.recent_form,
        )


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------

class MonitorUpdateResponse(BaseModel):
    status: Literal["updated", "unchanged"]
    races: int
    arbitrage: Optional[int] = None
    value_bets: Optional[int] = None
    timestamp: str


class MonitorStatusResponse(BaseModel):
    races_tracked: int
    last_update: Optional[str] = None
    scheduler_running: bool


# ---------------------------------------------------------------------------
# Odds formats
# ---------------------------------------------------------------------------

class OddsFormatRequest(BaseModel):
    price: Union[float, str] = Field(..., description='e.g. 3.5, "5/2", "evs" or "+250"')
    input_format: OddsFormat = OddsFormat.DECIMAL
    output_format: OddsFormat = OddsFormat.DECIMAL


class OddsFormatResponse(BaseModel):
    decimal: float
    fractional: str
    american: str
    formatted: str


class AccumulatorRequest(BaseModel):
    prices: List[float] = Field(..., min_length=1, max_length=20)


class AccumulatorResponse(BaseModel):
    legs: int
    price: float
    fractional: str

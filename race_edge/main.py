"""
FastAPI application for the Race Edge pricing engine.
Stateless endpoints over the engine plus a simulated card for demos.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI, HTTPException, Query
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional
import logging

from race_edge.core.form import analyze_form, speed_rating
from race_edge.core.stakes import each_way_returns, equal_profit_split, kelly_stake
from race_edge.core.market import ArbitrageOpportunity
from race_edge.core.odds_math import (
    accumulator_price,
    decimal_to_american,
    decimal_to_fractional,
    format_price,
    parse_price,
)
from race_edge.core.thresholds import (
    EngineThresholds,
    max_workers_from_env,
    simulated_refresh_from_env,
)
from race_edge.services.analysis import analyze_card, analyze_race
from race_edge.services.arbitrage import find_arbitrage
from race_edge.services.efficiency import market_efficiency
from race_edge.services.mock_feed import MockRaceFeed
from race_edge.services.race_monitor import RaceMonitor
from race_edge.services.snapshot_compare import has_significant_change
from race_edge.services.value_bets import find_value_bets
from race_edge.schemas import (
    AccumulatorRequest,
    AccumulatorResponse,
    CardAnalysisResponse,
    EachWayRequest,
    EachWayResponse,
    EfficiencyResponse,
    FormRequest,
    FormSummaryResponse,
    KellyRequest,
    KellyResponse,
    MonitorStatusResponse,
    MonitorUpdateResponse,
    OddsFormatRequest,
    OddsFormatResponse,
    OpportunityResponse,
    RaceAnalysisResponse,
    RaceSnapshotIn,
    SnapshotCompareRequest,
    SnapshotCompareResponse,
    SpeedRatingRequest,
    SpeedRatingResponse,
    StakeSplitRequest,
    StakeSplitResponse,
    ValueBetResponse,
)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Resolved once at startup
thresholds = EngineThresholds.from_env()
max_workers = max_workers_from_env()
simulated_refresh_sec = simulated_refresh_from_env()

# Card monitor shared by the refresh job and the monitor endpoints
monitor = RaceMonitor(thresholds, max_workers=max_workers)

# Scheduler instance
scheduler = BackgroundScheduler()


def _log_arbitrage(opp: ArbitrageOpportunity) -> None:
    logger.info(
        "Arbitrage alert: %s %s in %s, %.2f%% return",
        opp.kind,
        opp.outcome_name,
        opp.race_id,
        opp.return_pct,
    )


monitor.on_arbitrage(_log_arbitrage)


def _simulated_refresh_job():
    """Feed a fresh simulated card through the monitor."""
    try:
        result = monitor.update(MockRaceFeed().get_races())
        logger.info("Simulated refresh: %s", result["status"])
    except Exception as exc:
        logger.error("Simulated refresh failed: %s", exc, exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info(
        "Starting Race Edge (back/lay %.2f, source/exchange %.2f, value %.1f%%, Kelly cap %.2f)",
        thresholds.back_lay_margin,
        thresholds.source_vs_exchange_profit,
        thresholds.value_edge_pct,
        thresholds.kelly_cap,
    )

    if simulated_refresh_sec > 0:
        scheduler.add_job(
            _simulated_refresh_job,
            IntervalTrigger(seconds=simulated_refresh_sec),
            id="simulated_refresh",
            name="Simulated Card Refresh",
            replace_existing=True,
        )
        scheduler.start()
        logger.info("Simulated card refresh every %ds", simulated_refresh_sec)

    yield

    if scheduler.running:
        scheduler.shutdown()
    logger.info("Race Edge stopped")


app = FastAPI(
    title="Race Edge",
    description="Arbitrage, value-bet and market-efficiency analysis for race prices",
    version="1.0.0",
    lifespan=lifespan,
)


def _to_snapshot(payload: RaceSnapshotIn):
    try:
        return payload.to_domain()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "thresholds": {
            "back_lay_margin": thresholds.back_lay_margin,
            "source_vs_exchange_profit": thresholds.source_vs_exchange_profit,
            "value_edge_pct": thresholds.value_edge_pct,
            "change_threshold": thresholds.change_threshold,
            "kelly_cap": thresholds.kelly_cap,
        },
    }


# ---------------------------------------------------------------------------
# Race analysis
# ---------------------------------------------------------------------------

@app.post("/api/races/arbitrage", response_model=list[OpportunityResponse])
async def race_arbitrage(payload: RaceSnapshotIn):
    race = _to_snapshot(payload)
    return [OpportunityResponse.from_domain(o) for o in find_arbitrage(race, thresholds)]


@app.post("/api/races/value-bets", response_model=list[ValueBetResponse])
async def race_value_bets(payload: RaceSnapshotIn):
    race = _to_snapshot(payload)
    return [ValueBetResponse.from_domain(v) for v in find_value_bets(race, thresholds)]


@app.post("/api/races/efficiency", response_model=EfficiencyResponse)
async def race_efficiency(payload: RaceSnapshotIn):
    return EfficiencyResponse.from_domain(market_efficiency(_to_snapshot(payload)))


@app.post("/api/races/analysis", response_model=RaceAnalysisResponse)
async def race_analysis(payload: RaceSnapshotIn):
    return RaceAnalysisResponse.from_domain(analyze_race(_to_snapshot(payload), thresholds))


@app.get("/api/races/simulated", response_model=CardAnalysisResponse)
async def simulated_card(
    seed: Optional[int] = Query(None, description="Seed for a reproducible card"),
    races: int = Query(8, ge=1, le=50),
):
    card = MockRaceFeed(seed=seed, races=races).get_races()
    analyses = analyze_card(card, thresholds, max_workers=max_workers)
    return CardAnalysisResponse(
        races=[RaceAnalysisResponse.from_domain(a) for a in analyses],
        total_arbitrage=sum(len(a.opportunities) for a in analyses),
        total_value_bets=sum(len(a.value_bets) for a in analyses),
    )


@app.post("/api/snapshots/compare", response_model=SnapshotCompareResponse)
async def compare_snapshots(payload: SnapshotCompareRequest):
    current = _to_snapshot(payload.current)
    previous = _to_snapshot(payload.previous) if payload.previous is not None else None
    threshold = (
        payload.threshold if payload.threshold is not None else thresholds.change_threshold
    )
    return SnapshotCompareResponse(
        race_id=current.race_id,
        significant=has_significant_change(previous, current, threshold=threshold),
    )


# ---------------------------------------------------------------------------
# Stakes
# ---------------------------------------------------------------------------

@app.post("/api/stakes/split", response_model=StakeSplitResponse)
async def stake_split(payload: StakeSplitRequest):
    split = equal_profit_split(payload.total_stake, payload.price_a, payload.price_b)
    if split is None:
        raise HTTPException(status_code=400, detail="Both prices must be above 1.0")
    return StakeSplitResponse.from_domain(split)


@app.post("/api/stakes/kelly", response_model=KellyResponse)
async def kelly(payload: KellyRequest):
    try:
        result = kelly_stake(
            payload.bankroll,
            payload.odds,
            payload.win_prob,
            cap=thresholds.kelly_cap,
            fractional_divisor=payload.fractional_divisor,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return KellyResponse.from_domain(result)


@app.post("/api/stakes/each-way", response_model=EachWayResponse)
async def each_way(payload: EachWayRequest):
    result = each_way_returns(payload.stake, payload.win_odds, payload.place_odds)
    if result is None:
        raise HTTPException(status_code=400, detail="Both prices must be above 1.0")
    return EachWayResponse.from_domain(result)


# ---------------------------------------------------------------------------
# Form
# ---------------------------------------------------------------------------

@app.post("/api/form/speed-rating", response_model=SpeedRatingResponse)
async def form_speed_rating(payload: SpeedRatingRequest):
    return SpeedRatingResponse(
        speed_rating=speed_rating(payload.time_s, payload.distance_m, payload.going)
    )


@app.post("/api/form/summary", response_model=FormSummaryResponse)
async def form_summary(payload: FormRequest):
    return FormSummaryResponse.from_domain(len(payload.positions), analyze_form(payload.positions))


# ---------------------------------------------------------------------------
# Monitor
# ---------------------------------------------------------------------------

@app.post("/api/monitor/update", response_model=MonitorUpdateResponse)
async def monitor_update(payload: List[RaceSnapshotIn]):
    """Offer a full race card to the shared monitor."""
    card = [_to_snapshot(race) for race in payload]
    return monitor.update(card)


@app.get("/api/monitor/status", response_model=MonitorStatusResponse)
async def monitor_status():
    status = monitor.get_status()
    status["scheduler_running"] = scheduler.running
    return status


# ---------------------------------------------------------------------------
# Odds formats
# ---------------------------------------------------------------------------

@app.post("/api/odds/format", response_model=OddsFormatResponse)
async def odds_format(payload: OddsFormatRequest):
    """Convert a quote between decimal, fractional and American."""
    price = parse_price(payload.price, payload.input_format)
    if price is None:
        raise HTTPException(
            status_code=400,
            detail=f"{payload.price!r} is not a usable {payload.input_format.value} price",
        )
    return OddsFormatResponse(
        decimal=round(price, 2),
        fractional=decimal_to_fractional(price),
        american=decimal_to_american(price),
        formatted=format_price(price, payload.output_format),
    )


@app.post("/api/odds/accumulator", response_model=AccumulatorResponse)
async def accumulator(payload: AccumulatorRequest):
    price = accumulator_price(payload.prices)
    if price is None:
        raise HTTPException(status_code=400, detail="Every leg needs a price above 1.0")
    return AccumulatorResponse(
        legs=len(payload.prices),
        price=round(price, 2),
        fractional=decimal_to_fractional(price),
    )

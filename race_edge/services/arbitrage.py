"""
Arbitrage detection across the exchange and the fixed-price bookmakers.

Two checks run for every runner, in this order:

    1. Exchange back/lay — the gap between the implied probabilities of the
       lay and back quotes exceeds ``back_lay_margin`` (default 2%).
    2. Bookmaker vs exchange — the best bookmaker price beats the exchange
       lay and backing one while laying the other locks in more than
       ``source_vs_exchange_profit`` (default 1%).

Opportunities come back in runner order, back/lay before bookmaker-vs-
exchange within a runner.
"""

import logging
from typing import Iterable, List, Optional

from race_edge.core.market import (
    ArbitrageOpportunity,
    ExchangeBackLay,
    Outcome,
    RaceSnapshot,
    SourceVsExchange,
)
from race_edge.core.odds_math import implied_probability
from race_edge.core.thresholds import DEFAULT_THRESHOLDS, EngineThresholds
from race_edge.services.best_price import find_best_price

logger = logging.getLogger(__name__)


def _back_lay(race_id: str, outcome: Outcome, thresholds: EngineThresholds) -> Optional[ExchangeBackLay]:
    back = outcome.prices.exchange_back
    lay = outcome.prices.exchange_lay
    if back is None or lay is None:
        return None

    margin = implied_probability(lay) - implied_probability(back)
    if margin <= thresholds.back_lay_margin:
        return None

    return ExchangeBackLay(
        race_id=race_id,
        outcome_id=outcome.outcome_id,
        outcome_name=outcome.name,
        back=back,
        lay=lay,
        margin_pct=margin * 100.0,
    )


def _source_vs_exchange(
    race_id: str, outcome: Outcome, thresholds: EngineThresholds
) -> Optional[SourceVsExchange]:
    best = find_best_price(outcome.prices)
    lay = best.exchange_lay
    if not best.has_fixed_price or lay is None or best.best_price <= lay:
        return None

    profit = 1.0 - (implied_probability(best.best_price) + implied_probability(lay))
    if profit <= thresholds.source_vs_exchange_profit:
        return None

    return SourceVsExchange(
        race_id=race_id,
        outcome_id=outcome.outcome_id,
        outcome_name=outcome.name,
        source_price=best.best_price,
        source=best.best_source,
        exchange_lay=lay,
        profit_pct=profit * 100.0,
    )


def find_arbitrage(
    race: RaceSnapshot,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> List[ArbitrageOpportunity]:
    """Return every arbitrage opportunity in ``race``."""
    opportunities: List[ArbitrageOpportunity] = []
    for outcome in race.outcomes:
        back_lay = _back_lay(race.race_id, outcome, thresholds)
        if back_lay is not None:
            opportunities.append(back_lay)

        cross = _source_vs_exchange(race.race_id, outcome, thresholds)
        if cross is not None:
            opportunities.append(cross)

    logger.debug(
        "Race %s: %d arbitrage opportunities across %d runners",
        race.race_id,
        len(opportunities),
        len(race.outcomes),
    )
    return opportunities


def best_opportunity(
    opportunities: Iterable[ArbitrageOpportunity],
) -> Optional[ArbitrageOpportunity]:
    """Opportunity with the highest return; the earliest wins a tie."""
    best: Optional[ArbitrageOpportunity] = None
    for opp in opportunities:
        if best is None or opp.return_pct > best.return_pct:
            best = opp
    return best

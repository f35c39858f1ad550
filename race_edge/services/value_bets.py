"""
Value-bet ranking.

The exchange back price stands in for the market's fair price.  A
bookmaker quoting more than ``value_edge_pct`` (default 5%) above it is a
value bet.  Results are ranked by edge, highest first; runners with equal
edge keep their trap order.
"""

import logging
from typing import List

from race_edge.core.market import RaceSnapshot, ValueBet
from race_edge.core.thresholds import DEFAULT_THRESHOLDS, EngineThresholds
from race_edge.services.best_price import find_best_price

logger = logging.getLogger(__name__)


def price_edge_pct(price: float, fair_price: float) -> float:
    """Percentage by which ``price`` beats ``fair_price``: ``(price / fair − 1) × 100``."""
    return (price / fair_price - 1.0) * 100.0


def find_value_bets(
    race: RaceSnapshot,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> List[ValueBet]:
    """Return value bets in ``race`` sorted by descending edge."""
    value_bets: List[ValueBet] = []
    for outcome in race.outcomes:
        best = find_best_price(outcome.prices)
        fair = best.exchange_back
        if fair is None or not best.has_fixed_price or best.best_price <= fair:
            continue

        edge = price_edge_pct(best.best_price, fair)
        if edge <= thresholds.value_edge_pct:
            continue

        value_bets.append(
            ValueBet(
                race_id=race.race_id,
                outcome_id=outcome.outcome_id,
                outcome_name=outcome.name,
                source_price=best.best_price,
                source=best.best_source,
                fair_price=fair,
                edge_pct=edge,
            )
        )

    # sorted() is stable, so equal edges stay in trap order
    ranked = sorted(value_bets, key=lambda vb: vb.edge_pct, reverse=True)
    logger.debug("Race %s: %d value bets", race.race_id, len(ranked))
    return ranked

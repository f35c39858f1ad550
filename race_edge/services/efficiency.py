"""
Market efficiency scoring.

Takes the best bookmaker price for every runner, sums the implied
probabilities into an overround and reports ``100 − overround`` (floored at
zero) together with a rating band:

    > 95   Excellent
    > 90   Good
    > 85   Fair
    else   Poor

Bands are exclusive at the boundary: exactly 95.0 is Good.
"""

import logging
from typing import Final, List, Tuple

from race_edge.core.market import EfficiencyRating, EfficiencyReport, RaceSnapshot
from race_edge.core.odds_math import overround
from race_edge.services.best_price import find_best_price

logger = logging.getLogger(__name__)

RATING_BANDS: Final[Tuple[Tuple[float, EfficiencyRating], ...]] = (
    (95.0, EfficiencyRating.EXCELLENT),
    (90.0, EfficiencyRating.GOOD),
    (85.0, EfficiencyRating.FAIR),
)


def rate_efficiency(efficiency_pct: float) -> EfficiencyRating:
    for floor, rating in RATING_BANDS:
        if efficiency_pct > floor:
            return rating
    return EfficiencyRating.POOR


def market_efficiency(race: RaceSnapshot) -> EfficiencyReport:
    """Score how tightly the bookmakers have priced ``race``.

    Runners no bookmaker prices are left out of the book.  A race with no
    priced runners has a 0% overround and rates Excellent.
    """
    best_prices: List[float] = []
    for outcome in race.outcomes:
        best = find_best_price(outcome.prices)
        if best.has_fixed_price:
            best_prices.append(best.best_price)

    book = overround(best_prices)
    efficiency = max(0.0, 100.0 - book)
    report = EfficiencyReport(
        efficiency_pct=round(efficiency, 1),
        overround_pct=round(book, 1),
        rating=rate_efficiency(efficiency),
    )
    logger.debug(
        "Race %s: overround %.1f%%, efficiency %.1f%% (%s)",
        race.race_id,
        report.overround_pct,
        report.efficiency_pct,
        report.rating.value,
    )
    return report

"""
Race and card analysis.

Public API:
  analyze_race(race, thresholds)              → RaceAnalysis
  analyze_card(races, thresholds, max_workers) → List[RaceAnalysis]  (input order)

Races share no mutable state, so a card can be fanned out over a thread
pool.  Results are always returned in the order the races were supplied.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from race_edge.core.market import RaceAnalysis, RaceSnapshot
from race_edge.core.thresholds import DEFAULT_THRESHOLDS, EngineThresholds
from race_edge.services.arbitrage import find_arbitrage
from race_edge.services.efficiency import market_efficiency
from race_edge.services.value_bets import find_value_bets

logger = logging.getLogger(__name__)


def analyze_race(
    race: RaceSnapshot,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> RaceAnalysis:
    """Run arbitrage, value and efficiency checks over one race."""
    analysis = RaceAnalysis(
        race_id=race.race_id,
        opportunities=tuple(find_arbitrage(race, thresholds)),
        value_bets=tuple(find_value_bets(race, thresholds)),
        efficiency=market_efficiency(race),
    )
    venue = race.descriptor.get("track", race.race_id)
    logger.info(
        "%s: %d arbitrage, %d value bets, %.1f%% efficient",
        venue,
        len(analysis.opportunities),
        len(analysis.value_bets),
        analysis.efficiency.efficiency_pct,
    )
    return analysis


def analyze_card(
    races: Sequence[RaceSnapshot],
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
    *,
    max_workers: Optional[int] = None,
) -> List[RaceAnalysis]:
    """Analyse every race on a card.

    Args:
        races: Snapshots to analyse.
        thresholds: Detection thresholds applied to every race.
        max_workers: Thread count.  ``None`` or ``1`` runs inline.
    """
    if max_workers is None or max_workers <= 1 or len(races) <= 1:
        results = [analyze_race(race, thresholds) for race in races]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            # map() yields in submission order regardless of completion order
            results = list(pool.map(lambda r: analyze_race(r, thresholds), races))

    logger.info(
        "Total: %d arbitrage opportunities, %d value bets across %d races",
        sum(len(a.opportunities) for a in results),
        sum(len(a.value_bets) for a in results),
        len(results),
    )
    return results

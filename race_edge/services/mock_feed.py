"""
Simulated greyhound price feed.

Produces a card of ``RaceSnapshot`` objects with the same shape a live feed
would deliver, so the engine and the monitor cannot tell the two apart.
Every runner gets a base price between 2.0 and 10.0; each bookmaker and
the exchange quote around it with their own jitter, and the exchange lay
sits about 0.1 above the back.

Pass ``seed`` for a reproducible card (tests, demos).  Draws come from a
``numpy.random.Generator``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

import numpy as np

from race_edge.core.market import (
    ExchangePrice,
    Outcome,
    OutcomePrices,
    PriceSource,
    RaceSnapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_TRACKS = ("Sheffield", "Romford", "Belle Vue", "Hove", "Crayford", "Monmore")
DISTANCES_M = (480, 500, 525, 575, 650)
RUNNER_NAMES = (
    "Swift Lightning", "Thunder Bolt", "Racing Spirit", "Speed Demon",
    "Flying Arrow", "Rapid Fire", "Quick Silver", "Flash Gordon",
    "Wind Runner", "Storm Chaser", "Blazing Star", "Rocket Man",
)

# Full width of the uniform jitter each source applies to the base price
SOURCE_JITTER: Dict[PriceSource, float] = {
    PriceSource.SKYBET: 0.6,
    PriceSource.PADDYPOWER: 0.8,
    PriceSource.BETFRED: 0.7,
    PriceSource.LADBROKES: 0.9,
}
EXCHANGE_JITTER = 0.4
EXCHANGE_LAY_OFFSET = 0.1

RACE_SPACING_MIN = 15
FIRST_RACE_DELAY_MIN = 10


class MockRaceFeed:
    """
    Deterministic (when seeded) generator of simulated race cards.

    Usage::

        feed = MockRaceFeed(seed=7)
        races = feed.get_races()
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        tracks: Sequence[str] = DEFAULT_TRACKS,
        races: int = 8,
        runners: int = 6,
    ):
        if races < 0 or runners < 0:
            raise ValueError(f"races and runners must be ≥ 0, got {races!r}, {runners!r}.")
        self._rng = np.random.default_rng(seed)
        self._tracks = tuple(tracks)
        self._races = races
        self._runners = runners

    def _pick(self, options: Sequence):
        return options[int(self._rng.integers(len(options)))]

    def _jitter(self, base: float, width: float) -> float:
        return round(base + (float(self._rng.random()) - 0.5) * width, 2)

    def _runner(self, trap: int) -> Outcome:
        name = f"{self._pick(RUNNER_NAMES)} {trap}"
        base = float(self._rng.uniform(2.0, 10.0))
        exchange = ExchangePrice(
            back=self._jitter(base, EXCHANGE_JITTER),
            lay=self._jitter(base + EXCHANGE_LAY_OFFSET, EXCHANGE_JITTER),
        )
        fixed = {source: self._jitter(base, width) for source, width in SOURCE_JITTER.items()}
        return Outcome(
            outcome_id=str(trap),
            name=name,
            prices=OutcomePrices(fixed=fixed, exchange=exchange),
        )

    def get_races(self, now: Optional[datetime] = None) -> List[RaceSnapshot]:
        """Generate a fresh card starting ``FIRST_RACE_DELAY_MIN`` after ``now``."""
        now = now or datetime.now(timezone.utc)
        card: List[RaceSnapshot] = []
        for i in range(self._races):
            start = now + timedelta(minutes=i * RACE_SPACING_MIN + FIRST_RACE_DELAY_MIN)
            descriptor = {
                "track": self._pick(self._tracks) if self._tracks else "",
                "distance_m": self._pick(DISTANCES_M),
                "race_type": "Flat",
                "start_time": start.isoformat(),
                "status": "upcoming",
                "simulated": True,
            }
            outcomes = tuple(self._runner(trap) for trap in range(1, self._runners + 1))
            card.append(RaceSnapshot(race_id=f"race_{i}", outcomes=outcomes, descriptor=descriptor))

        logger.debug("Generated simulated card of %d races", len(card))
        return card

"""
Change-gated race card monitor.

Sits between whatever supplies race cards (a live feed, the simulated feed,
a cached copy after a feed failure) and the consumers of the analysis.  On
each ``update``:

    1. The new card is compared with the previous one.  Without a
       significant change nothing is recomputed.
    2. Otherwise the card is stored and analysed.
    3. If any arbitrage exists, registered callbacks receive the single
       best opportunity.

Design:
    - Holds exactly one piece of state: the previous card.
    - Does not poll; the caller decides cadence, timeouts and retries.
    - A failing callback is logged and never aborts the update.
    - Updates are serialised, so a scheduler thread and request handlers
      can share one monitor.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from race_edge.core.market import ArbitrageOpportunity, RaceAnalysis, RaceSnapshot
from race_edge.core.thresholds import DEFAULT_THRESHOLDS, EngineThresholds
from race_edge.services.analysis import analyze_card
from race_edge.services.arbitrage import best_opportunity
from race_edge.services.snapshot_compare import has_significant_card_change

logger = logging.getLogger(__name__)


class RaceMonitor:
    """
    Re-analyses a race card only when its prices move.

    Usage::

        monitor = RaceMonitor()
        monitor.on_arbitrage(my_callback)
        monitor.update(feed.get_races())   # call on every new card
    """

    def __init__(
        self,
        thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
        max_workers: Optional[int] = None,
    ):
        self._thresholds = thresholds
        self._max_workers = max_workers
        self._races: Optional[List[RaceSnapshot]] = None
        self._analyses: List[RaceAnalysis] = []
        self._callbacks: List[Callable[[ArbitrageOpportunity], None]] = []
        self._last_update: Optional[datetime] = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Callback registration
    # ------------------------------------------------------------------

    def on_arbitrage(self, callback: Callable[[ArbitrageOpportunity], None]) -> None:
        """Register a callback fired with the best opportunity after each re-analysis."""
        self._callbacks.append(callback)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update(self, races: Sequence[RaceSnapshot]) -> Dict:
        """
        Offer a new card to the monitor.

        Returns a summary dict for logging / the status endpoint.
        """
        with self._lock:
            return self._update(races)

    def _update(self, races: Sequence[RaceSnapshot]) -> Dict:
        now = datetime.now(timezone.utc)
        self._last_update = now

        if not has_significant_card_change(
            self._races, races, threshold=self._thresholds.change_threshold
        ):
            logger.debug("Race monitor: no significant change across %d races", len(races))
            return {"status": "unchanged", "races": len(races), "timestamp": now.isoformat()}

        logger.info("Significant changes detected across %d races, re-analysing", len(races))
        self._races = list(races)
        self._analyses = analyze_card(
            self._races, self._thresholds, max_workers=self._max_workers
        )

        opportunities = [opp for a in self._analyses for opp in a.opportunities]
        best = best_opportunity(opportunities)
        if best is not None:
            logger.info(
                "New arbitrage: %s (%s) %.2f%% return",
                best.outcome_name,
                best.race_id,
                best.return_pct,
            )
            for cb in self._callbacks:
                try:
                    cb(best)
                except Exception as exc:
                    logger.error("Race monitor callback error: %s", exc)

        return {
            "status": "updated",
            "races": len(self._races),
            "arbitrage": len(opportunities),
            "value_bets": sum(len(a.value_bets) for a in self._analyses),
            "timestamp": now.isoformat(),
        }

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_races(self) -> List[RaceSnapshot]:
        """Card as of the last significant update."""
        return list(self._races or [])

    def get_analyses(self) -> List[RaceAnalysis]:
        return list(self._analyses)

    def get_status(self) -> Dict:
        """Return monitor status for the status endpoint."""
        return {
            "races_tracked": len(self._races or []),
            "last_update": self._last_update.isoformat() if self._last_update else None,
        }

"""
Snapshot change detection.

Decides whether a new snapshot differs enough from the previous one to be
worth re-analysing and redisplaying.  A change is significant when:

    1. There is no previous snapshot.
    2. The runner count or the runner id sequence differs.
    3. Any bookmaker price, or the exchange back or lay, moved by more than
       ``threshold`` (default 5%) relative to its previous value.

Prices missing from either snapshot are skipped rather than treated as a
100% move.
"""

import logging
from typing import Optional, Sequence

from race_edge.core.market import OutcomePrices, RaceSnapshot, fixed_sources_by_priority
from race_edge.core.thresholds import SNAPSHOT_CHANGE_THRESHOLD

logger = logging.getLogger(__name__)


def relative_change(old: Optional[float], new: Optional[float]) -> Optional[float]:
    """``|new − old| / old``, or ``None`` if either side is unavailable."""
    if old is None or new is None or old <= 0:
        return None
    return abs(new - old) / old


def _moved(old: Optional[float], new: Optional[float], threshold: float) -> bool:
    change = relative_change(old, new)
    return change is not None and change > threshold


def has_significant_price_change(
    previous: OutcomePrices,
    current: OutcomePrices,
    *,
    threshold: float = SNAPSHOT_CHANGE_THRESHOLD,
) -> bool:
    """True when any quote for one runner moved by more than ``threshold``."""
    for source in fixed_sources_by_priority():
        if _moved(previous.get(source), current.get(source), threshold):
            return True

    return _moved(previous.exchange_back, current.exchange_back, threshold) or _moved(
        previous.exchange_lay, current.exchange_lay, threshold
    )


def has_significant_change(
    previous: Optional[RaceSnapshot],
    current: RaceSnapshot,
    *,
    threshold: float = SNAPSHOT_CHANGE_THRESHOLD,
) -> bool:
    """True when ``current`` should trigger re-analysis of a race."""
    if previous is None:
        return True
    if len(previous.outcomes) != len(current.outcomes):
        return True
    if previous.outcome_ids != current.outcome_ids:
        return True

    for old, new in zip(previous.outcomes, current.outcomes):
        if has_significant_price_change(old.prices, new.prices, threshold=threshold):
            logger.debug(
                "Race %s runner %s moved more than %.0f%%",
                current.race_id,
                new.outcome_id,
                threshold * 100,
            )
            return True
    return False


def has_significant_card_change(
    previous: Optional[Sequence[RaceSnapshot]],
    current: Sequence[RaceSnapshot],
    *,
    threshold: float = SNAPSHOT_CHANGE_THRESHOLD,
) -> bool:
    """Card-level gate: race count, race order, then each race in turn."""
    if previous is None:
        return True
    if len(previous) != len(current):
        return True

    for old, new in zip(previous, current):
        if old.race_id != new.race_id:
            return True
        if has_significant_change(old, new, threshold=threshold):
            return True
    return False

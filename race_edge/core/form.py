"""Racing form helpers: speed ratings and recent-form summaries.

Both functions are pure.  They are shown beside prices and nothing in the
arbitrage or value logic reads them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Optional, Sequence

#: Average greyhound running speed used for the par time, metres/second.
PAR_SPEED_MPS: Final[float] = 16.5

#: Seconds added to the run time for the going.  Unknown going adds nothing.
GOING_ADJUSTMENT: Final[dict] = {
    "fast": -0.2,
    "good": 0.0,
    "slow": 0.3,
    "heavy": 0.6,
}

MIN_SPEED_RATING: Final[int] = 0
MAX_SPEED_RATING: Final[int] = 150


def speed_rating(time_s: float, distance_m: float, going: str = "good") -> int:
    """Speed rating for a run, 100 = par.

    Each tenth of a second slower than par (``distance / 16.5``) costs one
    point.  The result is clamped to ``[0, 150]``.

    Examples::

        speed_rating(29.09, 480)          → 100
        speed_rating(28.59, 480)          → 105
        speed_rating(29.09, 480, "heavy") →  94
    """
    par_time = distance_m / PAR_SPEED_MPS
    adjusted = time_s + GOING_ADJUSTMENT.get(going.lower(), 0.0)
    rating = round(100 - (adjusted - par_time) * 10)
    return max(MIN_SPEED_RATING, min(rating, MAX_SPEED_RATING))


@dataclass(frozen=True, slots=True)
class FormSummary:
    average_position: float
    win_pct: float
    place_pct: float
    recent_form: str


def analyze_form(positions: Sequence[int]) -> Optional[FormSummary]:
    """Summarise finishing positions, most recent first.

    ``recent_form`` shows the latest five runs, e.g. ``"1-3-2-4-1"``.
    Returns ``None`` when there are no runs.
    """
    if not positions:
        return None
    runs = len(positions)
    wins = sum(1 for p in positions if p == 1)
    places = sum(1 for p in positions if p <= 3)
    return FormSummary(
        average_position=round(sum(positions) / runs, 1),
        win_pct=wins / runs * 100.0,
        place_pct=places / runs * 100.0,
        recent_form="-".join(str(p) for p in positions[:5]),
    )

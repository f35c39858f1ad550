"""Engine thresholds — every tunable constant in one place.

Nowhere else in the codebase should the 2% / 1% / 5% detection limits or
the Kelly cap be hard-coded.  Services receive an :class:`EngineThresholds`
bundle and read from it; the module-level constants below are the
defaults that bundle is built from.

Typical usage::

    from race_edge.core.thresholds import DEFAULT_THRESHOLDS

    opportunities = find_arbitrage(race, DEFAULT_THRESHOLDS)

    # Tighter detection for a backtest:
    from dataclasses import replace
    strict = replace(DEFAULT_THRESHOLDS, back_lay_margin=0.03)

    # Production override from the environment / .env file:
    thresholds = EngineThresholds.from_env()
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

#: Minimum ``1/lay − 1/back`` gap (as a probability) for an exchange
#: back/lay opportunity.
BACK_LAY_MARGIN: Final[float] = 0.02

#: Minimum guaranteed profit (as a fraction of stake) for a bookmaker price
#: laid off on the exchange.
SOURCE_VS_EXCHANGE_PROFIT: Final[float] = 0.01

#: Minimum edge, in percent, of the best bookmaker price over the exchange
#: back price for a value bet.
VALUE_EDGE_PCT: Final[float] = 5.0

#: Relative price move between snapshots that counts as significant.
SNAPSHOT_CHANGE_THRESHOLD: Final[float] = 0.05

#: Hard cap on the Kelly fraction of bankroll for a single bet.
KELLY_CAP: Final[float] = 0.25


@dataclass(frozen=True)
class EngineThresholds:
    """Immutable bundle of detection thresholds.

    Attributes:
        back_lay_margin: See :data:`BACK_LAY_MARGIN`.
        source_vs_exchange_profit: See :data:`SOURCE_VS_EXCHANGE_PROFIT`.
        value_edge_pct: See :data:`VALUE_EDGE_PCT`.  Expressed in percent,
            not as a fraction.
        change_threshold: See :data:`SNAPSHOT_CHANGE_THRESHOLD`.
        kelly_cap: See :data:`KELLY_CAP`.
    """

    back_lay_margin: float = BACK_LAY_MARGIN
    source_vs_exchange_profit: float = SOURCE_VS_EXCHANGE_PROFIT
    value_edge_pct: float = VALUE_EDGE_PCT
    change_threshold: float = SNAPSHOT_CHANGE_THRESHOLD
    kelly_cap: float = KELLY_CAP

    def __post_init__(self) -> None:
        if not 0.0 <= self.kelly_cap <= 1.0:
            raise ValueError(f"kelly_cap must be in [0, 1], got {self.kelly_cap!r}.")
        if self.change_threshold < 0.0:
            raise ValueError(
                f"change_threshold must be ≥ 0, got {self.change_threshold!r}."
            )

    @classmethod
    def from_env(cls) -> "EngineThresholds":
        """Build thresholds from ``RACE_EDGE_*`` environment variables.

        A ``.env`` file in the working directory is loaded first.  Unset
        variables keep their defaults.
        """
        load_dotenv()
        return cls(
            back_lay_margin=float(os.getenv("RACE_EDGE_BACK_LAY_MARGIN", str(BACK_LAY_MARGIN))),
            source_vs_exchange_profit=float(
                os.getenv("RACE_EDGE_SOURCE_PROFIT", str(SOURCE_VS_EXCHANGE_PROFIT))
            ),
            value_edge_pct=float(os.getenv("RACE_EDGE_VALUE_EDGE_PCT", str(VALUE_EDGE_PCT))),
            change_threshold=float(
                os.getenv("RACE_EDGE_CHANGE_THRESHOLD", str(SNAPSHOT_CHANGE_THRESHOLD))
            ),
            kelly_cap=float(os.getenv("RACE_EDGE_KELLY_CAP", str(KELLY_CAP))),
        )


#: Thresholds used when a caller does not supply its own bundle.
DEFAULT_THRESHOLDS: Final[EngineThresholds] = EngineThresholds()


def max_workers_from_env() -> int:
    """Worker count for card-level analysis (``RACE_EDGE_MAX_WORKERS``, default 1)."""
    load_dotenv()
    return max(1, int(os.getenv("RACE_EDGE_MAX_WORKERS", "1")))


def simulated_refresh_from_env() -> int:
    """Seconds between simulated card refreshes (``RACE_EDGE_SIMULATED_REFRESH_SEC``).

    0, the default, leaves the background refresh off.
    """
    load_dotenv()
    return max(0, int(os.getenv("RACE_EDGE_SIMULATED_REFRESH_SEC", "0")))

"""Stake sizing — the single source of truth for how much to put on.

All functions here are **pure**: no I/O, no logging.
Import from this module; never reimplement stake maths locally in services.

The functions cover the three sizing contexts the engine reports on:

1. :func:`equal_profit_split` / :func:`dutch_stakes` — split a fixed
   outlay across arbitrage legs so every result pays the same.
2. :func:`kelly_stake` — Kelly criterion sizing for a single favourable bet.
3. :func:`each_way_returns` — win and place legs of an each-way bet.

Design decisions
----------------
* **Equal profit by construction.**  Staking each leg in proportion to its
  implied probability makes every leg return ``total / Σ prob``.  That
  common return is computed once and both profits are derived from it, so
  the legs agree exactly instead of being checked after rounding.
* **Kelly cap.**  Full Kelly is clamped to ``[0, cap]`` (default 25%).
  A negative raw Kelly (negative edge) clamps to 0, never to a negative
  stake.  An optional fractional divisor supports half- or quarter-Kelly.
* Unavailable prices return ``None`` (or a zero Kelly) instead of raising:
  a missing quote is routine, not an error.  Out-of-contract arguments that
  are not prices (negative stakes, probabilities outside ``[0, 1]``) raise
  ``ValueError``.

Run tests with::

    pytest tests/test_stakes.py -v
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from race_edge.core.market import EachWayReturn, KellyResult, StakeSplit
from race_edge.core.odds_math import clean_price
from race_edge.core.thresholds import KELLY_CAP


def _round2(value: float) -> float:
    return round(value, 2)


# ---------------------------------------------------------------------------
# Arbitrage stake splits
# ---------------------------------------------------------------------------


def dutch_stakes(
    total_stake: float,
    prices: Sequence[Optional[float]],
) -> Optional[tuple[list[float], float]]:
    """Split ``total_stake`` across legs so every winning leg pays the same.

    For legs with implied probabilities ``q_i = 1 / p_i``::

        stake_i  =  total · q_i / Σ q_j
        return   =  stake_i · p_i  =  total / Σ q_j            (same for all i)
        profit   =  total / Σ q_j  −  total

    Args:
        total_stake: Combined outlay across all legs.  Must be positive.
        prices: Decimal price of each leg.

    Returns:
        ``(stakes, profit)`` with stakes in leg order and the common profit,
        all rounded to 2 dp.  ``None`` when there are no legs or any leg
        price is unavailable.

    Raises:
        ValueError: If ``total_stake <= 0``.

    Examples::

        dutch_stakes(100, [2.0, 2.0])        → ([50.0, 50.0], 0.0)
        dutch_stakes(100, [3.0, 3.0, 3.0])   → ([33.33, 33.33, 33.33], 0.0)
        dutch_stakes(100, [2.2, 2.2])        → ([50.0, 50.0], 10.0)
    """
    if total_stake <= 0:
        raise ValueError(f"total_stake must be > 0, got {total_stake!r}.")
    cleaned = [clean_price(p) for p in prices]
    if not cleaned or any(p is None for p in cleaned):
        return None

    probabilities = [1.0 / p for p in cleaned]
    book = sum(probabilities)
    stakes = [_round2(total_stake * q / book) for q in probabilities]
    profit = _round2(total_stake / book - total_stake)
    return stakes, profit


def equal_profit_split(
    total_stake: float,
    price_a: Optional[float],
    price_b: Optional[float],
) -> Optional[StakeSplit]:
    """Two-leg equal-profit stake split.

    Examples::

        equal_profit_split(100, 2.1, 2.1)
            → StakeSplit(stake_a=50.0, stake_b=50.0, profit_if_a=5.0, profit_if_b=5.0)

    Returns ``None`` when either price is unavailable.
    """
    result = dutch_stakes(total_stake, [price_a, price_b])
    if result is None:
        return None
    (stake_a, stake_b), profit = result
    return StakeSplit(stake_a=stake_a, stake_b=stake_b, profit_if_a=profit, profit_if_b=profit)


# ---------------------------------------------------------------------------
# Kelly
# ---------------------------------------------------------------------------


def kelly_stake(
    bankroll: float,
    odds: Optional[float],
    win_prob: float,
    *,
    cap: float = KELLY_CAP,
    fractional_divisor: float = 1.0,
) -> KellyResult:
    """Kelly criterion stake for a single bet.

    With ``b = odds − 1`` (profit per unit) and ``q = 1 − w``::

        f*  =  (b · w − q) / b

    ``f*`` is divided by ``fractional_divisor`` and clamped to
    ``[0, cap]``.  The expected value is reported independently of the
    clamp::

        EV%  =  (odds · w − 1) × 100

    Args:
        bankroll: Current bankroll.  Must be ≥ 0.
        odds: Decimal price on offer.  ``None`` or ≤ 1.0 means no bet.
        win_prob: Estimated probability of winning, in ``[0, 1]``.
        cap: Maximum fraction of bankroll.
        fractional_divisor: 1.0 = full Kelly, 2.0 = half Kelly, ...

    Returns:
        :class:`KellyResult`.  ``fraction`` is 0.0 whenever the edge is
        not positive or ``b`` is 0.

    Raises:
        ValueError: If ``win_prob`` is outside ``[0, 1]``, ``bankroll < 0``
            or ``fractional_divisor <= 0``.

    Examples::

        kelly_stake(1000, 3.0, 0.40)  → fraction 0.10, stake 100.0, EV +20%
        kelly_stake(1000, 2.0, 0.40)  → fraction 0.00, stake 0.0,   EV −20%
        kelly_stake(1000, 5.0, 0.80)  → fraction 0.25 (capped from 0.75)
    """
    if not 0.0 <= win_prob <= 1.0:
        raise ValueError(
            f"win_prob must be in [0, 1], got {win_prob!r}. "
            "Check upstream probability estimates."
        )
    if bankroll < 0:
        raise ValueError(f"bankroll must be ≥ 0, got {bankroll!r}.")
    if fractional_divisor <= 0:
        raise ValueError(f"fractional_divisor must be > 0, got {fractional_divisor!r}.")

    price = clean_price(odds)
    if price is None:
        # No payout beyond the stake (or no price at all): never bet.
        expected = (float(odds) * win_prob - 1.0) * 100.0 if _finite_number(odds) else 0.0
        return KellyResult(fraction=0.0, recommended_stake=0.0, expected_value_pct=expected)

    profit_per_unit = price - 1.0
    loss_prob = 1.0 - win_prob
    full_kelly = (profit_per_unit * win_prob - loss_prob) / profit_per_unit

    fraction = max(0.0, min(full_kelly / fractional_divisor, cap))
    return KellyResult(
        fraction=fraction,
        recommended_stake=bankroll * fraction,
        expected_value_pct=(price * win_prob - 1.0) * 100.0,
    )


def _finite_number(value: object) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return False
    return math.isfinite(number)


# ---------------------------------------------------------------------------
# Each-way
# ---------------------------------------------------------------------------


def each_way_returns(
    stake: float,
    win_odds: Optional[float],
    place_odds: Optional[float],
) -> Optional[EachWayReturn]:
    """Returns of an each-way bet when both legs land.

    The stake is split evenly: half on the win, half on the place.  Each
    leg's return is ``half_stake × price``; profit is the summed return
    minus the full stake.

    Examples::

        each_way_returns(10, 5.0, 2.0)
            → EachWayReturn(win_return=25.0, place_return=10.0,
                            total_return=35.0, profit=25.0)

    Returns ``None`` when either price is unavailable.

    Raises:
        ValueError: If ``stake < 0``.
    """
    if stake < 0:
        raise ValueError(f"stake must be ≥ 0, got {stake!r}.")
    win_price = clean_price(win_odds)
    place_price = clean_price(place_odds)
    if win_price is None or place_price is None:
        return None

    half = stake / 2.0
    win_return = half * win_price
    place_return = half * place_price
    total = win_return + place_return
    return EachWayReturn(
        win_return=_round2(win_return),
        place_return=_round2(place_return),
        total_return=_round2(total),
        profit=_round2(total - stake),
    )

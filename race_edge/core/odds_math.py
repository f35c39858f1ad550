"""Fundamental price mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The three pillars exposed are:

1. **Price hygiene** — :func:`clean_price` decides, once, whether a raw
   value is a usable decimal price or "unavailable".
2. **Probability** — implied probability and market overround.
3. **Format conversion** — decimal ↔ fractional ↔ American.

Design decisions
----------------
* An unavailable price is ``None``, never ``0``.  Downstream arithmetic
  skips ``None`` so a missing bookmaker quote cannot masquerade as a 0%
  (or 100%) implied probability and corrupt an overround.
* Display conversions never raise.  A price that cannot be rendered
  returns the :data:`NOT_AVAILABLE` sentinel so tables and alerts can
  print it directly.
* Parsing helpers (:func:`american_to_decimal`, :func:`fractional_to_decimal`,
  :func:`parse_price`) return ``None`` on malformed input for the same
  reason: a bad quote from one source must not abort a whole race.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from enum import Enum
from numbers import Real
from typing import Final, Iterable, Optional

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Display sentinel for a price that cannot be converted or shown.
NOT_AVAILABLE: Final[str] = "N/A"

#: Smallest decimal price that still carries a payout.  A price of exactly
#: 1.0 returns the stake and nothing else, so it encodes no probability.
MIN_DECIMAL_PRICE: Final[float] = 1.0

#: Fractional prices are derived on a hundredths grid (e.g. 2.75 → 175/100 → 7/4).
_FRACTIONAL_DENOMINATOR: Final[int] = 100

#: American-odds magnitude floor; anything smaller is not a real quote.
_MIN_AMERICAN_MAGNITUDE: Final[int] = 100


class OddsFormat(str, Enum):
    """Display formats understood by :func:`format_price`."""

    DECIMAL = "decimal"
    FRACTIONAL = "fractional"
    AMERICAN = "american"


# ---------------------------------------------------------------------------
# Price hygiene
# ---------------------------------------------------------------------------


def clean_price(value: object) -> Optional[float]:
    """Normalise a raw quote into a usable decimal price or ``None``.

    A value is usable when it is a real number (not ``bool``), finite and
    strictly greater than 1.0.  Numeric strings such as ``"2.50"`` are
    accepted because upstream feeds frequently serialise prices as text.

    Examples::

        clean_price(2.5)     → 2.5
        clean_price("3.10")  → 3.1
        clean_price(0)       → None   (bookmaker not pricing this runner)
        clean_price(1.0)     → None   (no payout, no probability)
        clean_price("SP")    → None
        clean_price(10**400) → None   (too large for a float)
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, Real):
        return None
    try:
        price = float(value)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(price) or price <= MIN_DECIMAL_PRICE:
        return None
    return price


# ---------------------------------------------------------------------------
# Probability
# ---------------------------------------------------------------------------


def implied_probability(price: Optional[float]) -> float:
    """Implied probability ``1 / price`` of a decimal price.

    Returns 0.0 for anything that is not a price above 1.0, so the caller
    never divides by zero or by a negative value.  Callers that aggregate
    probabilities should filter with :func:`clean_price` first; this
    function only guarantees it will not fault.

    Examples::

        implied_probability(2.0)  → 0.5
        implied_probability(4.0)  → 0.25
        implied_probability(1.0)  → 0.0
    """
    cleaned = clean_price(price)
    if cleaned is None:
        return 0.0
    return 1.0 / cleaned


def overround(prices: Iterable[Optional[float]]) -> float:
    """Market overround in percent: ``(Σ 1/price − 1) × 100``.

    Unavailable prices are skipped rather than counted as zero.  When no
    price is available at all the market is empty and the overround is
    defined as 0.0 instead of −100.

    Examples::

        overround([2.0, 2.0])            →   0.0
        overround([1.8, 1.8])            →  11.1
        overround([2.0, 3.0, 6.0, None]) →   0.0   (None skipped)
        overround([])                    →   0.0
    """
    probabilities = [1.0 / p for p in map(clean_price, prices) if p is not None]
    if not probabilities:
        return 0.0
    return (sum(probabilities) - 1.0) * 100.0


def accumulator_price(prices: Iterable[Optional[float]]) -> Optional[float]:
    """Combined decimal price of a multiple (accumulator) bet.

    Returns ``None`` when the selection list is empty or any leg is
    unavailable, since a multiple cannot be struck with a missing leg.
    """
    total = 1.0
    legs = 0
    for raw in prices:
        price = clean_price(raw)
        if price is None:
            return None
        total *= price
        legs += 1
    return total if legs else None


# ---------------------------------------------------------------------------
# Format conversion
# ---------------------------------------------------------------------------


def greatest_common_divisor(a: int, b: int) -> int:
    """Euclid's algorithm: ``gcd(a, b) = gcd(b, a mod b)``, ``gcd(a, 0) = a``."""
    return a if b == 0 else greatest_common_divisor(b, a % b)


def decimal_to_fractional(decimal_price: Optional[float]) -> str:
    """Render a decimal price as a reduced UK fraction.

    The profit part is rounded to the nearest hundredth and reduced::

        decimal_to_fractional(3.5)   → "5/2"
        decimal_to_fractional(2.0)   → "1/1"
        decimal_to_fractional(1.25)  → "1/4"
        decimal_to_fractional(1.0)   → "N/A"
    """
    price = clean_price(decimal_price)
    if price is None:
        return NOT_AVAILABLE
    numerator = round((price - 1.0) * _FRACTIONAL_DENOMINATOR)
    divisor = greatest_common_divisor(numerator, _FRACTIONAL_DENOMINATOR)
    return f"{numerator // divisor}/{_FRACTIONAL_DENOMINATOR // divisor}"


def decimal_to_american(decimal_price: Optional[float]) -> str:
    """Render a decimal price as signed American odds.

    Prices of 2.0 and above are underdogs (``+``); below 2.0 favourites
    (``-``)::

        decimal_to_american(2.5)   → "+150"
        decimal_to_american(2.0)   → "+100"
        decimal_to_american(1.5)   → "-200"
        decimal_to_american(0.9)   → "N/A"
    """
    price = clean_price(decimal_price)
    if price is None:
        return NOT_AVAILABLE
    if price >= 2.0:
        return f"+{round((price - 1.0) * 100)}"
    return f"-{round(100.0 / (price - 1.0))}"


def format_price(decimal_price: Optional[float], fmt: OddsFormat | str = OddsFormat.DECIMAL) -> str:
    """Render a price in the requested display format.

    Unknown formats fall back to decimal.  Unavailable prices render as
    :data:`NOT_AVAILABLE` in every format.
    """
    price = clean_price(decimal_price)
    if price is None:
        return NOT_AVAILABLE
    try:
        fmt = OddsFormat(fmt)
    except ValueError:
        fmt = OddsFormat.DECIMAL
    if fmt is OddsFormat.FRACTIONAL:
        return decimal_to_fractional(price)
    if fmt is OddsFormat.AMERICAN:
        return decimal_to_american(price)
    return f"{price:.2f}"


def american_to_decimal(american: int | float | str) -> Optional[float]:
    """Convert American odds to a decimal price.

    Examples::

        american_to_decimal(+150)   → 2.5
        american_to_decimal("-200") → 1.5
        american_to_decimal(50)     → None   (|odds| < 100 is not a quote)
    """
    try:
        value = float(american)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(value) or abs(value) < _MIN_AMERICAN_MAGNITUDE:
        return None
    if value > 0:
        return value / 100.0 + 1.0
    return 100.0 / abs(value) + 1.0


def fractional_to_decimal(fraction: str) -> Optional[float]:
    """Convert a UK fraction such as ``"5/2"`` or ``"evs"`` to decimal.

    Examples::

        fractional_to_decimal("5/2")  → 3.5
        fractional_to_decimal("evs")  → 2.0
        fractional_to_decimal("1/0")  → None
    """
    text = str(fraction).strip().lower()
    if text in ("evs", "evens"):
        return 2.0
    numerator, sep, denominator = text.partition("/")
    if not sep:
        return None
    try:
        num = float(numerator)
        den = float(denominator)
    except ValueError:
        return None
    if den <= 0 or num <= 0:
        return None
    return clean_price(1.0 + num / den)


def parse_price(raw: object, fmt: OddsFormat | str = OddsFormat.DECIMAL) -> Optional[float]:
    """Read a quote written in any supported format as a decimal price.

    Examples::

        parse_price("5/2", "fractional")  → 3.5
        parse_price("+150", "american")   → 2.5
        parse_price(3.5)                  → 3.5
        parse_price("5/2")                → None   (not a decimal quote)

    Returns ``None`` for an unknown format or an unusable quote.
    """
    try:
        fmt = OddsFormat(fmt)
    except ValueError:
        return None
    if fmt is OddsFormat.FRACTIONAL:
        return fractional_to_decimal(str(raw))
    if fmt is OddsFormat.AMERICAN:
        if isinstance(raw, bool):
            return None
        return clean_price(american_to_decimal(raw))  # type: ignore[arg-type]
    return clean_price(raw)

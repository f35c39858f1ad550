"""Immutable market snapshot and result objects.

This module defines the data that flows through the engine:

* Input side — :class:`PriceSource`, :class:`ExchangePrice`,
  :class:`OutcomePrices`, :class:`Outcome`, :class:`RaceSnapshot`.
* Output side — :class:`ExchangeBackLay`, :class:`SourceVsExchange`,
  :class:`ValueBet`, :class:`EfficiencyReport`, :class:`StakeSplit`,
  :class:`KellyResult`, :class:`EachWayReturn`, :class:`RaceAnalysis`.

Design choices
--------------
* Per-source prices live in a closed mapping keyed by :class:`PriceSource`.
  Raw quotes are passed through :func:`~race_edge.core.odds_math.clean_price`
  at construction, so an unavailable price is simply absent from the
  mapping (``get`` returns ``None``).  Nothing downstream ever sees a 0.0
  standing in for "not priced".
* Every class is a frozen dataclass so snapshots can be shared across
  threads during card-level analysis without copying.
* The exchange is held apart from the fixed-price mapping.  It is compared
  against but never competes as a best fixed price.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Final, Literal, Mapping, Optional, Union

from race_edge.core.odds_math import clean_price


# ---------------------------------------------------------------------------
# Price sources
# ---------------------------------------------------------------------------


class PriceSource(str, Enum):
    """Every venue the engine knows how to read prices from."""

    BETFAIR = "betfair"
    SKYBET = "skybet"
    PADDYPOWER = "paddypower"
    BETFRED = "betfred"
    LADBROKES = "ladbrokes"

    @property
    def is_exchange(self) -> bool:
        return self is EXCHANGE_SOURCE

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES.get(self, self.value.title())


#: The two-sided venue.
EXCHANGE_SOURCE: Final[PriceSource] = PriceSource.BETFAIR

#: Fixed-price bookmakers in tie-break priority order.
FIXED_PRICE_SOURCES: Final[tuple[PriceSource, ...]] = (
    PriceSource.SKYBET,
    PriceSource.PADDYPOWER,
    PriceSource.BETFRED,
    PriceSource.LADBROKES,
)


def fixed_sources_by_priority() -> tuple[PriceSource, ...]:
    """Fixed-price sources in tie-break order.

    Members added to :class:`PriceSource` without a slot in
    :data:`FIXED_PRICE_SOURCES` rank after it, in declaration order.
    """
    extra = tuple(
        s for s in PriceSource if not s.is_exchange and s not in FIXED_PRICE_SOURCES
    )
    return FIXED_PRICE_SOURCES + extra


_DISPLAY_NAMES: Final[dict] = {
    PriceSource.BETFAIR: "Betfair",
    PriceSource.SKYBET: "Sky Bet",
    PriceSource.PADDYPOWER: "Paddy Power",
    PriceSource.BETFRED: "Betfred",
    PriceSource.LADBROKES: "Ladbrokes",
}


# ---------------------------------------------------------------------------
# Snapshot inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExchangePrice:
    """Back and lay quotes for one runner on the exchange.

    Either side may be ``None`` when the book is empty on that side.
    ``lay >= back`` is the normal state of a book but is not enforced.
    """

    back: Optional[float] = None
    lay: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "back", clean_price(self.back))
        object.__setattr__(self, "lay", clean_price(self.lay))

    @property
    def is_empty(self) -> bool:
        return self.back is None and self.lay is None


@dataclass(frozen=True)
class OutcomePrices:
    """All quotes for a single runner.

    Attributes:
        fixed: Read-only mapping of fixed-price source → decimal price.
            Only available prices are present.
        exchange: Exchange back/lay, or ``None`` when the runner is not
            traded on the exchange.
    """

    fixed: Mapping[PriceSource, float] = field(default_factory=dict)
    exchange: Optional[ExchangePrice] = None

    def __post_init__(self) -> None:
        cleaned: dict[PriceSource, float] = {}
        for source, raw in dict(self.fixed).items():
            source = PriceSource(source)
            if source.is_exchange:
                raise ValueError(
                    f"{source.value!r} is the exchange; pass it as exchange=ExchangePrice(...)."
                )
            price = clean_price(raw)
            if price is not None:
                cleaned[source] = price
        object.__setattr__(self, "fixed", MappingProxyType(cleaned))
        if self.exchange is not None and self.exchange.is_empty:
            object.__setattr__(self, "exchange", None)

    def get(self, source: PriceSource) -> Optional[float]:
        """Price from ``source`` or ``None`` when unavailable."""
        if source is EXCHANGE_SOURCE:
            return self.exchange_back
        return self.fixed.get(source)

    @property
    def exchange_back(self) -> Optional[float]:
        return self.exchange.back if self.exchange is not None else None

    @property
    def exchange_lay(self) -> Optional[float]:
        return self.exchange.lay if self.exchange is not None else None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "OutcomePrices":
        """Build from the loose feed shape ``{"skybet": 3.2, "betfair": {"back": .., "lay": ..}}``.

        Unknown source keys are ignored.
        """
        fixed: dict[PriceSource, Any] = {}
        exchange: Optional[ExchangePrice] = None
        for key, value in raw.items():
            try:
                source = PriceSource(key)
            except ValueError:
                continue
            if source.is_exchange:
                if isinstance(value, Mapping):
                    exchange = ExchangePrice(back=value.get("back"), lay=value.get("lay"))
            else:
                fixed[source] = value
        return cls(fixed=fixed, exchange=exchange)


@dataclass(frozen=True)
class Outcome:
    """One runner (trap) in a race."""

    outcome_id: str
    name: str
    prices: OutcomePrices = field(default_factory=OutcomePrices)

    def __post_init__(self) -> None:
        object.__setattr__(self, "outcome_id", str(self.outcome_id))


@dataclass(frozen=True)
class RaceSnapshot:
    """Point-in-time capture of every runner's prices in one race.

    Attributes:
        race_id: Race identifier.
        outcomes: Runners in trap order.  Order does not affect arithmetic
            but matters for snapshot comparison.
        descriptor: Venue, distance, race type, start time and anything
            else the feed carries.  Opaque to the engine.
    """

    race_id: str
    outcomes: tuple[Outcome, ...] = ()
    descriptor: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        outcomes = tuple(self.outcomes)
        seen: set[str] = set()
        for outcome in outcomes:
            if outcome.outcome_id in seen:
                raise ValueError(
                    f"Duplicate outcome id {outcome.outcome_id!r} in race {self.race_id!r}."
                )
            seen.add(outcome.outcome_id)
        object.__setattr__(self, "race_id", str(self.race_id))
        object.__setattr__(self, "outcomes", outcomes)
        object.__setattr__(self, "descriptor", MappingProxyType(dict(self.descriptor)))

    @property
    def outcome_ids(self) -> tuple[str, ...]:
        return tuple(o.outcome_id for o in self.outcomes)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExchangeBackLay:
    """Back/lay gap on the exchange wide enough to trade."""

    race_id: str
    outcome_id: str
    outcome_name: str
    back: float
    lay: float
    margin_pct: float
    kind: Literal["exchange_back_lay"] = "exchange_back_lay"

    @property
    def return_pct(self) -> float:
        return self.margin_pct


@dataclass(frozen=True, slots=True)
class SourceVsExchange:
    """Bookmaker price that can be backed and laid off on the exchange at a profit."""

    race_id: str
    outcome_id: str
    outcome_name: str
    source_price: float
    source: PriceSource
    exchange_lay: float
    profit_pct: float
    kind: Literal["source_vs_exchange"] = "source_vs_exchange"

    @property
    def return_pct(self) -> float:
        return self.profit_pct


ArbitrageOpportunity = Union[ExchangeBackLay, SourceVsExchange]


@dataclass(frozen=True, slots=True)
class ValueBet:
    """Bookmaker price better than the exchange consensus by ``edge_pct``."""

    race_id: str
    outcome_id: str
    outcome_name: str
    source_price: float
    source: PriceSource
    fair_price: float
    edge_pct: float


class EfficiencyRating(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


@dataclass(frozen=True, slots=True)
class EfficiencyReport:
    efficiency_pct: float
    overround_pct: float
    rating: EfficiencyRating


@dataclass(frozen=True, slots=True)
class StakeSplit:
    """Two-leg arbitrage stakes.  ``profit_if_a == profit_if_b`` by construction."""

    stake_a: float
    stake_b: float
    profit_if_a: float
    profit_if_b: float


@dataclass(frozen=True, slots=True)
class KellyResult:
    fraction: float
    recommended_stake: float
    expected_value_pct: float


@dataclass(frozen=True, slots=True)
class EachWayReturn:
    win_return: float
    place_return: float
    total_return: float
    profit: float


@dataclass(frozen=True, slots=True)
class RaceAnalysis:
    """Everything the engine reports for one race."""

    race_id: str
    opportunities: tuple[ArbitrageOpportunity, ...]
    value_bets: tuple[ValueBet, ...]
    efficiency: EfficiencyReport

"""Best available price per runner across the fixed-price bookmakers."""

from dataclasses import dataclass
from typing import Optional

from race_edge.core.market import OutcomePrices, PriceSource, fixed_sources_by_priority


@dataclass(frozen=True, slots=True)
class BestPrice:
    """Best bookmaker price plus the exchange quotes for the same runner.

    ``best_price`` is 0.0 and ``best_source`` is ``None`` when no bookmaker
    prices the runner.  Exchange fields are ``None`` when unavailable.
    """

    best_price: float
    best_source: Optional[PriceSource]
    exchange_back: Optional[float]
    exchange_lay: Optional[float]

    @property
    def has_fixed_price(self) -> bool:
        return self.best_source is not None


def find_best_price(prices: OutcomePrices) -> BestPrice:
    """Scan the bookmakers in priority order and keep the highest price.

    A later bookmaker has to beat the current best strictly, so ties go to
    the source listed first in ``FIXED_PRICE_SOURCES``.  The exchange is
    reported alongside but never competes.
    """
    best_price = 0.0
    best_source: Optional[PriceSource] = None
    for source in fixed_sources_by_priority():
        price = prices.get(source)
        if price is not None and price > best_price:
            best_price = price
            best_source = source

    return BestPrice(
        best_price=best_price,
        best_source=best_source,
        exchange_back=prices.exchange_back,
        exchange_lay=prices.exchange_lay,
    )

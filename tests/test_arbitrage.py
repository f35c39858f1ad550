"""
Tests for best-price selection and arbitrage detection.

Run with: pytest tests/test_arbitrage.py -v
"""

from dataclasses import replace

import pytest

from race_edge.core.market import (
    ExchangeBackLay,
    ExchangePrice,
    Outcome,
    OutcomePrices,
    PriceSource,
    RaceSnapshot,
    SourceVsExchange,
)
from race_edge.core.thresholds import DEFAULT_THRESHOLDS
from race_edge.services.arbitrage import best_opportunity, find_arbitrage
from race_edge.services.best_price import find_best_price


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _runner(trap, back=None, lay=None, **fixed):
    exchange = ExchangePrice(back=back, lay=lay) if back is not None or lay is not None else None
    return Outcome(
        outcome_id=str(trap),
        name=f"Dog {trap}",
        prices=OutcomePrices(fixed={PriceSource(k): v for k, v in fixed.items()}, exchange=exchange),
    )


def _race(*runners):
    return RaceSnapshot(race_id="race_0", outcomes=runners)


# ---------------------------------------------------------------------------
# Best price
# ---------------------------------------------------------------------------

class TestFindBestPrice:

    def test_highest_fixed_price_wins(self):
        best = find_best_price(_runner(1, skybet=3.0, paddypower=3.4, betfred=3.2).prices)
        assert best.best_price == 3.4
        assert best.best_source is PriceSource.PADDYPOWER

    def test_tie_goes_to_priority_order(self):
        best = find_best_price(_runner(1, ladbrokes=3.5, betfred=3.5).prices)
        assert best.best_source is PriceSource.BETFRED
        best = find_best_price(_runner(1, ladbrokes=3.5, skybet=3.5).prices)
        assert best.best_source is PriceSource.SKYBET

    def test_no_fixed_prices(self):
        best = find_best_price(_runner(1, back=3.0, lay=3.1).prices)
        assert best.best_price == 0
        assert best.best_source is None
        assert not best.has_fixed_price

    def test_exchange_reported_but_never_competes(self):
        best = find_best_price(_runner(1, back=9.0, lay=9.2, skybet=3.0).prices)
        assert best.best_price == 3.0
        assert best.best_source is PriceSource.SKYBET
        assert best.exchange_back == 9.0
        assert best.exchange_lay == 9.2

    def test_unavailable_sources_skipped(self):
        best = find_best_price(_runner(1, skybet=0, paddypower="n/a", betfred=2.8).prices)
        assert best.best_price == 2.8
        assert best.best_source is PriceSource.BETFRED


# ---------------------------------------------------------------------------
# Exchange back/lay
# ---------------------------------------------------------------------------

class TestExchangeBackLay:

    def test_normal_book_rejected(self):
        # 1/2.20 − 1/2.10 ≈ −2.16% → no opportunity
        assert find_arbitrage(_race(_runner(1, back=2.10, lay=2.20))) == []

    def test_inverted_book_detected(self):
        # 1/2.0 − 1/2.2 = 0.0455 > 0.02
        opps = find_arbitrage(_race(_runner(1, back=2.2, lay=2.0)))
        assert len(opps) == 1
        opp = opps[0]
        assert isinstance(opp, ExchangeBackLay)
        assert opp.kind == "exchange_back_lay"
        assert opp.margin_pct == pytest.approx((1 / 2.0 - 1 / 2.2) * 100)
        assert opp.back == 2.2 and opp.lay == 2.0
        assert opp.outcome_name == "Dog 1"
        assert opp.race_id == "race_0"

    def test_margin_must_exceed_threshold(self):
        # margin just under 2%: 1/2.0 − 1/2.08 = 0.0192
        assert find_arbitrage(_race(_runner(1, back=2.08, lay=2.0))) == []
        # just over: 1/2.0 − 1/2.09 = 0.0215
        assert len(find_arbitrage(_race(_runner(1, back=2.09, lay=2.0)))) == 1

    def test_missing_side_skipped(self):
        assert find_arbitrage(_race(_runner(1, back=2.2))) == []
        assert find_arbitrage(_race(_runner(1, lay=2.0))) == []

    def test_custom_threshold(self):
        race = _race(_runner(1, back=2.2, lay=2.0))
        strict = replace(DEFAULT_THRESHOLDS, back_lay_margin=0.05)
        assert find_arbitrage(race, strict) == []


# ---------------------------------------------------------------------------
# Bookmaker vs exchange
# ---------------------------------------------------------------------------

class TestSourceVsExchange:

    def test_detected(self):
        # 1 − (1/4.4 + 1/2.0) = 0.2727 → 27.3% profit
        opps = find_arbitrage(_race(_runner(1, back=1.95, lay=2.0, skybet=4.4)))
        assert len(opps) == 1
        opp = opps[0]
        assert isinstance(opp, SourceVsExchange)
        assert opp.source is PriceSource.SKYBET
        assert opp.source_price == 4.4
        assert opp.exchange_lay == 2.0
        assert opp.profit_pct == pytest.approx((1 - (1 / 4.4 + 1 / 2.0)) * 100)

    def test_price_above_lay_but_not_profitable(self):
        # 1 − (1/1.6 + 1/1.5) < 0
        assert find_arbitrage(_race(_runner(1, back=1.45, lay=1.5, skybet=1.6))) == []

    def test_price_not_above_lay(self):
        assert find_arbitrage(_race(_runner(1, back=1.9, lay=2.0, skybet=2.0))) == []

    def test_no_lay_no_opportunity(self):
        assert find_arbitrage(_race(_runner(1, back=1.9, skybet=9.0))) == []

    def test_profit_must_exceed_one_percent(self):
        # 1 − (1/4.0 + 1/1.36) = 0.0147 → detected
        assert len(find_arbitrage(_race(_runner(1, lay=1.36, skybet=4.0)))) == 1
        # 1 − (1/4.0 + 1/1.34) = 0.0037 → rejected
        assert find_arbitrage(_race(_runner(1, lay=1.34, skybet=4.0))) == []


class TestOrdering:

    def test_runner_order_then_kind(self):
        race = _race(
            _runner(1, back=2.1, lay=2.2, skybet=2.2),
            _runner(2, back=2.2, lay=2.0, betfred=4.4),
            _runner(3, back=2.2, lay=2.0),
        )
        opps = find_arbitrage(race)
        assert [(o.outcome_id, o.kind) for o in opps] == [
            ("2", "exchange_back_lay"),
            ("2", "source_vs_exchange"),
            ("3", "exchange_back_lay"),
        ]

    def test_empty_race(self):
        assert find_arbitrage(RaceSnapshot(race_id="empty")) == []

    def test_best_opportunity(self):
        race = _race(
            _runner(1, back=2.2, lay=2.0),
            _runner(2, back=1.95, lay=2.0, skybet=4.4),
        )
        best = best_opportunity(find_arbitrage(race))
        assert best.outcome_id == "2"
        assert best_opportunity([]) is None

"""
Tests for services/value_bets.py and services/efficiency.py

Run with: pytest tests/test_value_bets.py -v
"""

import random
from dataclasses import replace

import pytest

from race_edge.core.market import (
    EfficiencyRating,
    ExchangePrice,
    Outcome,
    OutcomePrices,
    PriceSource,
    RaceSnapshot,
)
from race_edge.core.thresholds import DEFAULT_THRESHOLDS
from race_edge.services.efficiency import market_efficiency, rate_efficiency
from race_edge.services.value_bets import find_value_bets, price_edge_pct


def _runner(trap, back=None, lay=None, **fixed):
    exchange = ExchangePrice(back=back, lay=lay) if back is not None or lay is not None else None
    return Outcome(
        outcome_id=str(trap),
        name=f"Dog {trap}",
        prices=OutcomePrices(fixed={PriceSource(k): v for k, v in fixed.items()}, exchange=exchange),
    )


def _race(*runners):
    return RaceSnapshot(race_id="race_1", outcomes=runners)


class TestFindValueBets:
    """Bookmaker price at least 5% above the exchange back price."""

    def test_ten_percent_edge(self):
        bets = find_value_bets(_race(_runner(1, back=3.0, skybet=3.3)))
        assert len(bets) == 1
        bet = bets[0]
        assert bet.edge_pct == pytest.approx(10.0)
        assert bet.source is PriceSource.SKYBET
        assert bet.source_price == 3.3
        assert bet.fair_price == 3.0
        assert bet.outcome_id == "1"

    def test_edge_must_exceed_five_percent(self):
        # 3.14 / 3.0 → 4.7% edge, 3.16 / 3.0 → 5.3% edge
        assert find_value_bets(_race(_runner(1, back=3.0, paddypower=3.14))) == []
        assert len(find_value_bets(_race(_runner(1, back=3.0, paddypower=3.16)))) == 1

    def test_no_exchange_back(self):
        assert find_value_bets(_race(_runner(1, lay=3.0, skybet=9.0))) == []
        assert find_value_bets(_race(_runner(1, skybet=9.0))) == []

    def test_no_fixed_price(self):
        assert find_value_bets(_race(_runner(1, back=3.0, lay=3.1))) == []

    def test_sorted_by_edge(self):
        race = _race(
            _runner(1, back=3.0, skybet=3.3),      # 10%
            _runner(2, back=2.0, betfred=2.5),     # 25%
            _runner(3, back=5.0, ladbrokes=5.4),   # 8%
        )
        assert [b.outcome_id for b in find_value_bets(race)] == ["2", "1", "3"]

    def test_ties_keep_trap_order(self):
        race = _race(
            _runner(1, back=2.0, skybet=2.4),
            _runner(2, back=4.0, skybet=4.8),
            _runner(3, back=8.0, skybet=9.6),
        )
        bets = find_value_bets(race)
        assert [b.outcome_id for b in bets] == ["1", "2", "3"]

    def test_sorted_for_random_races(self):
        rng = random.Random(42)
        for _ in range(25):
            runners = []
            for trap in range(1, 9):
                back = round(rng.uniform(1.5, 12.0), 2)
                runners.append(_runner(trap, back=back, skybet=round(back * rng.uniform(0.9, 1.4), 2)))
            edges = [b.edge_pct for b in find_value_bets(_race(*runners))]
            assert edges == sorted(edges, reverse=True)

    def test_custom_threshold(self):
        race = _race(_runner(1, back=3.0, skybet=3.3))
        assert find_value_bets(race, replace(DEFAULT_THRESHOLDS, value_edge_pct=12.0)) == []

    def test_price_edge_pct(self):
        assert price_edge_pct(3.3, 3.0) == pytest.approx(10.0)


class TestMarketEfficiency:

    def test_fair_book_is_excellent(self):
        race = _race(_runner(1, skybet=2.0), _runner(2, paddypower=3.0), _runner(3, betfred=6.0))
        report = market_efficiency(race)
        assert report.overround_pct == pytest.approx(0.0, abs=0.05)
        assert report.efficiency_pct == pytest.approx(100.0)
        assert report.rating is EfficiencyRating.EXCELLENT

    def test_uses_best_price_per_runner(self):
        race = _race(
            _runner(1, skybet=1.8, ladbrokes=2.0),
            _runner(2, skybet=2.0, betfred=1.5),
        )
        report = market_efficiency(race)
        assert report.overround_pct == pytest.approx(0.0)

    def test_overround_lowers_efficiency(self):
        # 2 × 1/1.8 → 11.1% overround → 88.9% efficient
        race = _race(_runner(1, skybet=1.8), _runner(2, skybet=1.8))
        report = market_efficiency(race)
        assert report.overround_pct == pytest.approx(11.1)
        assert report.efficiency_pct == pytest.approx(88.9)
        assert report.rating is EfficiencyRating.FAIR

    def test_efficiency_floored_at_zero(self):
        race = _race(*[_runner(i, skybet=1.1) for i in range(1, 6)])
        assert market_efficiency(race).efficiency_pct == 0.0
        assert market_efficiency(race).rating is EfficiencyRating.POOR

    def test_empty_race(self):
        report = market_efficiency(RaceSnapshot(race_id="empty"))
        assert report.overround_pct == 0.0
        assert report.efficiency_pct == 100.0
        assert report.rating is EfficiencyRating.EXCELLENT

    def test_exchange_only_runners_ignored(self):
        race = _race(_runner(1, skybet=2.0), _runner(2, skybet=2.0), _runner(3, back=1.5, lay=1.6))
        assert market_efficiency(race).overround_pct == pytest.approx(0.0)

    def test_rating_bands(self):
        assert rate_efficiency(95.01) is EfficiencyRating.EXCELLENT
        assert rate_efficiency(95.0) is EfficiencyRating.GOOD
        assert rate_efficiency(90.0) is EfficiencyRating.FAIR
        assert rate_efficiency(85.0) is EfficiencyRating.POOR
        assert rate_efficiency(0.0) is EfficiencyRating.POOR

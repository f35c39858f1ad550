"""
Tests for the snapshot data model and engine thresholds.

Run with: pytest tests/test_market.py -v
"""

from dataclasses import FrozenInstanceError, replace

import pytest

from race_edge.core.market import (
    FIXED_PRICE_SOURCES,
    ExchangePrice,
    Outcome,
    OutcomePrices,
    PriceSource,
    RaceSnapshot,
    fixed_sources_by_priority,
)
from race_edge.core.thresholds import DEFAULT_THRESHOLDS, EngineThresholds


class TestOutcomePrices:
    """Unavailable quotes are dropped, never stored as zero."""

    def test_unavailable_prices_dropped(self):
        prices = OutcomePrices(
            fixed={PriceSource.SKYBET: 3.2, PriceSource.BETFRED: 0, PriceSource.LADBROKES: "SP"}
        )
        assert dict(prices.fixed) == {PriceSource.SKYBET: 3.2}
        assert prices.get(PriceSource.BETFRED) is None
        assert prices.get(PriceSource.LADBROKES) is None

    def test_string_keys_accepted(self):
        prices = OutcomePrices(fixed={"paddypower": 4.0})
        assert prices.get(PriceSource.PADDYPOWER) == 4.0

    def test_fixed_mapping_is_read_only(self):
        prices = OutcomePrices(fixed={PriceSource.SKYBET: 3.2})
        with pytest.raises(TypeError):
            prices.fixed[PriceSource.SKYBET] = 9.0

    def test_exchange_cannot_be_a_fixed_source(self):
        with pytest.raises(ValueError):
            OutcomePrices(fixed={PriceSource.BETFAIR: 3.0})

    def test_exchange_sides_cleaned(self):
        prices = OutcomePrices(exchange=ExchangePrice(back=3.0, lay=0))
        assert prices.exchange_back == 3.0
        assert prices.exchange_lay is None

    def test_empty_exchange_becomes_none(self):
        prices = OutcomePrices(exchange=ExchangePrice(back=None, lay="n/a"))
        assert prices.exchange is None
        assert prices.exchange_back is None

    def test_from_raw_feed_shape(self):
        prices = OutcomePrices.from_raw(
            {
                "betfair": {"back": 3.0, "lay": 3.1},
                "skybet": 3.3,
                "paddypower": None,
                "williamhill": 4.0,
            }
        )
        assert prices.exchange_back == 3.0
        assert prices.exchange_lay == 3.1
        assert dict(prices.fixed) == {PriceSource.SKYBET: 3.3}


class TestRaceSnapshot:

    def test_ids_normalised_to_strings(self):
        race = RaceSnapshot(race_id=7, outcomes=[Outcome(outcome_id=1, name="A")])
        assert race.race_id == "7"
        assert race.outcome_ids == ("1",)
        assert isinstance(race.outcomes, tuple)

    def test_duplicate_outcome_ids_rejected(self):
        with pytest.raises(ValueError):
            RaceSnapshot(race_id="r", outcomes=[Outcome("1", "A"), Outcome(1, "B")])

    def test_frozen(self):
        race = RaceSnapshot(race_id="r")
        with pytest.raises(FrozenInstanceError):
            race.race_id = "other"

    def test_descriptor_is_read_only(self):
        race = RaceSnapshot(race_id="r", descriptor={"track": "Hove"})
        with pytest.raises(TypeError):
            race.descriptor["track"] = "Romford"


class TestPriceSources:

    def test_priority_order(self):
        assert FIXED_PRICE_SOURCES == (
            PriceSource.SKYBET,
            PriceSource.PADDYPOWER,
            PriceSource.BETFRED,
            PriceSource.LADBROKES,
        )
        assert fixed_sources_by_priority()[:4] == FIXED_PRICE_SOURCES
        assert PriceSource.BETFAIR not in fixed_sources_by_priority()

    def test_display_names(self):
        assert PriceSource.SKYBET.display_name == "Sky Bet"
        assert PriceSource.BETFAIR.is_exchange
        assert not PriceSource.LADBROKES.is_exchange


class TestEngineThresholds:

    def test_defaults(self):
        assert DEFAULT_THRESHOLDS.back_lay_margin == 0.02
        assert DEFAULT_THRESHOLDS.source_vs_exchange_profit == 0.01
        assert DEFAULT_THRESHOLDS.value_edge_pct == 5.0
        assert DEFAULT_THRESHOLDS.change_threshold == 0.05
        assert DEFAULT_THRESHOLDS.kelly_cap == 0.25

    def test_replace(self):
        strict = replace(DEFAULT_THRESHOLDS, back_lay_margin=0.03)
        assert strict.back_lay_margin == 0.03
        assert DEFAULT_THRESHOLDS.back_lay_margin == 0.02

    def test_invalid_cap(self):
        with pytest.raises(ValueError):
            EngineThresholds(kelly_cap=1.5)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("RACE_EDGE_VALUE_EDGE_PCT", "7.5")
        monkeypatch.setenv("RACE_EDGE_KELLY_CAP", "0.1")
        monkeypatch.delenv("RACE_EDGE_BACK_LAY_MARGIN", raising=False)
        thresholds = EngineThresholds.from_env()
        assert thresholds.value_edge_pct == 7.5
        assert thresholds.kelly_cap == 0.1
        assert thresholds.back_lay_margin == 0.02

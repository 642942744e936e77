"""
Tests for the formula engine module.
"""

import pytest

from fxengine.engine.context import QuoteContext
from fxengine.engine.exceptions import (
    ConfigurationError,
    InsufficientDataError,
    UnknownCalcNameError,
)
from fxengine.engine.formula_engine import FormulaEngine
from fxengine.engine.models import RatePair, TargetKind
from fxengine.utils.config_loader import EngineConfig
from tests.fixtures.quote_fixtures import (
    EURUSD_ASK,
    EURUSD_BID,
    TWO_FEED_VALUES,
    USDTRY_ASK,
    USDTRY_BID,
    with_calc_name,
)


class TestFormulaEngine:
    """Tests for FormulaEngine dispatch."""

    @pytest.fixture
    def engine(self) -> FormulaEngine:
        return FormulaEngine(EngineConfig())

    def test_engine_initialization(self, engine: FormulaEngine) -> None:
        assert engine.base_target.name == "USDTRY"
        assert engine.base_target.kind is TargetKind.BASE
        assert engine.targets["Eurusd"].kind is TargetKind.CROSS
        assert engine.minimum_count == 2

    def test_base_pair_returns_aggregation(self, engine: FormulaEngine) -> None:
        result = engine.compute(QuoteContext("USDTRY", TWO_FEED_VALUES))

        assert isinstance(result, RatePair)
        assert result.bid == pytest.approx(USDTRY_BID)
        assert result.ask == pytest.approx(USDTRY_ASK)

    def test_base_pair_ignores_target_quotes(self, engine: FormulaEngine) -> None:
        values = {k: v for k, v in TWO_FEED_VALUES.items() if "Usdtry" in k}
        result = engine.compute(QuoteContext("USDTRY", values))
        assert result.bid == pytest.approx(USDTRY_BID)

    def test_cross_pair(self, engine: FormulaEngine) -> None:
        bid, ask = engine.compute(QuoteContext("EURUSD", TWO_FEED_VALUES))

        assert bid == pytest.approx(USDTRY_BID * EURUSD_BID)
        assert ask == pytest.approx(USDTRY_ASK * EURUSD_ASK)
        assert bid == pytest.approx(32.4)
        assert ask == pytest.approx(32.918)

    @pytest.mark.parametrize("calc_name", ["EURUSD", "eurusd", "EurUsd"])
    def test_calc_name_casing(self, engine: FormulaEngine, calc_name: str) -> None:
        result = engine.compute(QuoteContext(calc_name, TWO_FEED_VALUES))
        assert result.bid == pytest.approx(32.4)

    @pytest.mark.parametrize("calc_name", ["JPYUSD", "", None, 42])
    def test_unknown_calc_name(self, engine: FormulaEngine, calc_name) -> None:
        with pytest.raises(UnknownCalcNameError) as exc_info:
            engine.compute(QuoteContext(calc_name, TWO_FEED_VALUES))
        assert exc_info.value.calc_name == calc_name

    def test_unknown_calc_name_checked_before_data(self, engine: FormulaEngine) -> None:
        with pytest.raises(UnknownCalcNameError):
            engine.compute(QuoteContext("JPYUSD", {}))

    def test_cross_pair_needs_base(self, engine: FormulaEngine) -> None:
        values = {k: v for k, v in TWO_FEED_VALUES.items() if "Eurusd" in k}

        with pytest.raises(InsufficientDataError) as exc_info:
            engine.compute(QuoteContext("EURUSD", values))
        assert exc_info.value.pattern == "*UsdtryBid"
        assert exc_info.value.found == 0

    def test_cross_pair_needs_own_quotes(self, engine: FormulaEngine) -> None:
        values = dict(TWO_FEED_VALUES)
        values["pf2EurusdAsk"] = None

        with pytest.raises(InsufficientDataError) as exc_info:
            engine.compute(QuoteContext("EURUSD", values))
        assert exc_info.value.pattern == "*EurusdAsk"
        assert exc_info.value.found == 1

    def test_context_not_mutated(self, engine: FormulaEngine) -> None:
        context = QuoteContext("EURUSD", TWO_FEED_VALUES)
        before = dict(context.values)

        engine.compute(context)

        assert dict(context.values) == before

    def test_repeated_calls_are_independent(self, engine: FormulaEngine) -> None:
        first = engine.compute(QuoteContext("EURUSD", TWO_FEED_VALUES))
        engine.compute(QuoteContext("USDTRY", {"pf1UsdtryBid": 1.0, "pf2UsdtryBid": 1.0,
                                               "pf1UsdtryAsk": 1.0, "pf2UsdtryAsk": 1.0}))
        second = engine.compute(QuoteContext("EURUSD", TWO_FEED_VALUES))
        assert first == second

    def test_compute_values(self, engine: FormulaEngine) -> None:
        result = engine.compute_values("USDTRY", TWO_FEED_VALUES)
        assert result.ask == pytest.approx(USDTRY_ASK)

    def test_compute_mapping(self, engine: FormulaEngine) -> None:
        result = engine.compute_mapping(with_calc_name("EURUSD"))
        assert result.ask == pytest.approx(32.918)


class TestFormulaEngineConfig:
    """Tests for configuration-driven behaviour."""

    def test_fixed_keys_mode_ignores_other_feeds(self) -> None:
        engine = FormulaEngine(EngineConfig(match_mode="fixed_keys"))
        values = dict(TWO_FEED_VALUES)
        values["pf3UsdtryBid"] = 100.0

        result = engine.compute(QuoteContext("USDTRY", values))

        assert result.bid == pytest.approx(USDTRY_BID)

    def test_suffix_mode_uses_every_feed(self) -> None:
        engine = FormulaEngine(EngineConfig(match_mode="suffix"))
        values = dict(TWO_FEED_VALUES)
        values["pf3UsdtryBid"] = 30.0

        result = engine.compute(QuoteContext("USDTRY", values))

        assert result.bid == pytest.approx(30.0)

    def test_mid_mode(self) -> None:
        engine = FormulaEngine(EngineConfig(cross_rate_mode="mid"))

        result = engine.compute(QuoteContext("EURUSD", TWO_FEED_VALUES))

        mid = (USDTRY_BID + USDTRY_ASK) / 2
        assert result.bid == pytest.approx(mid * EURUSD_BID)
        assert result.ask == pytest.approx(mid * EURUSD_ASK)

    def test_single_source_allowed(self) -> None:
        engine = FormulaEngine(EngineConfig(minimum_source_count=1))
        values = {"pf1UsdtryBid": 30.0, "pf1UsdtryAsk": 30.2}

        assert engine.compute(QuoteContext("USDTRY", values)) == RatePair(30.0, 30.2)

    def test_custom_base_pair(self) -> None:
        engine = FormulaEngine(EngineConfig(base_pair="USDEUR", supported_pairs=["USDEUR", "GBPUSD"]))
        values = {
            "aUsdeurBid": 0.9, "bUsdeurBid": 0.9, "aUsdeurAsk": 0.92, "bUsdeurAsk": 0.92,
            "aGbpusdBid": 1.25, "bGbpusdBid": 1.25, "aGbpusdAsk": 1.26, "bGbpusdAsk": 1.26,
        }

        result = engine.compute(QuoteContext("GBPUSD", values))

        assert result.bid == pytest.approx(0.9 * 1.25)

    def test_invalid_match_mode(self) -> None:
        with pytest.raises(ConfigurationError):
            FormulaEngine(EngineConfig(match_mode="prefix"))

    def test_invalid_cross_mode(self) -> None:
        with pytest.raises(ConfigurationError):
            FormulaEngine(EngineConfig(cross_rate_mode="blend"))

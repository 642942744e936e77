"""
Tests for the average aggregator module.
"""

import pytest

from fxengine.engine.aggregator import aggregate_pair, average
from fxengine.engine.context import QuoteContext, QuoteIndex
from fxengine.engine.exceptions import InsufficientDataError
from fxengine.engine.key_matcher import KeyMatcher
from fxengine.engine.models import RatePair
from tests.fixtures.quote_fixtures import TWO_FEED_VALUES, USDTRY_ASK, USDTRY_BID


class TestAverage:
    """Tests for the average function."""

    @pytest.mark.parametrize(
        "values,minimum",
        [
            ([30.0, 30.2], 2),
            ([1.0, 2.0, 3.0, 4.0], 2),
            ([5.5], 1),
            ([5.5], 0),
            ([10.0, 20.0, 30.0], 3),
        ],
    )
    def test_mean_when_enough_values(self, values: list, minimum: int) -> None:
        assert average(values, minimum) == pytest.approx(sum(values) / len(values))

    def test_insufficient_values(self) -> None:
        with pytest.raises(InsufficientDataError) as exc_info:
            average([30.0], 2, pattern="*UsdtryBid")

        error = exc_info.value
        assert error.pattern == "*UsdtryBid"
        assert error.minimum == 2
        assert error.found == 1
        assert "at least 2 sources" in str(error)
        assert "'*UsdtryBid'" in str(error)
        assert "available: 1" in str(error)

    @pytest.mark.parametrize("minimum", [0, 1])
    def test_empty_always_fails(self, minimum: int) -> None:
        with pytest.raises(InsufficientDataError) as exc_info:
            average([], minimum)
        assert exc_info.value.found == 0
        assert exc_info.value.minimum == minimum

    def test_error_details(self) -> None:
        with pytest.raises(InsufficientDataError) as exc_info:
            average([], 2, pattern="*EurusdAsk")

        payload = exc_info.value.to_dict()
        assert payload["error"] == "INSUFFICIENT_DATA"
        assert payload["details"] == {"pattern": "*EurusdAsk", "minimum": 2, "found": 0}


class TestAggregatePair:
    """Tests for aggregate_pair."""

    @pytest.fixture
    def index(self) -> QuoteIndex:
        return QuoteIndex.build(QuoteContext("USDTRY", TWO_FEED_VALUES), ["USDTRY", "EURUSD"])

    def test_both_sides(self, index: QuoteIndex) -> None:
        result = aggregate_pair(index, KeyMatcher(), "USDTRY", 2)

        assert isinstance(result, RatePair)
        assert result.bid == pytest.approx(USDTRY_BID)
        assert result.ask == pytest.approx(USDTRY_ASK)

    def test_null_excluded_from_count_and_sum(self) -> None:
        values = {
            "pf1UsdtryBid": 30.0,
            "pf2UsdtryBid": None,
            "pf3UsdtryBid": 31.0,
            "pf1UsdtryAsk": 30.2,
            "pf2UsdtryAsk": 30.4,
        }
        index = QuoteIndex.build(QuoteContext("USDTRY", values), ["USDTRY"])

        result = aggregate_pair(index, KeyMatcher(), "USDTRY", 2)

        assert result.bid == pytest.approx(30.5)
        assert result.ask == pytest.approx(30.3)

    def test_one_side_short_fails_whole_pair(self) -> None:
        values = {"pf1UsdtryBid": 30.0, "pf2UsdtryBid": 30.1, "pf1UsdtryAsk": 30.2}
        index = QuoteIndex.build(QuoteContext("USDTRY", values), ["USDTRY"])

        with pytest.raises(InsufficientDataError) as exc_info:
            aggregate_pair(index, KeyMatcher(), "USDTRY", 2)
        assert exc_info.value.pattern == "*UsdtryAsk"

"""
Average aggregator module.

Reduces the quotes of several feeds to one value, subject to a
minimum-source policy.
"""

import logging
from typing import Sequence

from fxengine.engine.context import QuoteIndex, Side
from fxengine.engine.exceptions import InsufficientDataError
from fxengine.engine.key_matcher import KeyMatcher
from fxengine.engine.models import RatePair

logger = logging.getLogger(__name__)


def average(values: Sequence[float], minimum_count: int, pattern: str = "") -> float:
    """
    Arithmetic mean of the given quotes.

    A minimum of 0 or 1 both mean "at least one": an empty sequence always
    fails.

    Args:
        values: Quote values, absent values already removed.
        minimum_count: Minimum number of sources required.
        pattern: Key pattern the values came from, for the error.

    Returns:
        float: Mean of the values.

    Raises:
        InsufficientDataError: If fewer than ``minimum_count`` values (or none) are given.
    """
    count = len(values)
    if count < max(minimum_count, 1):
        raise InsufficientDataError(pattern, minimum_count, count)
    return sum(values) / count


def aggregate_side(index: QuoteIndex, matcher: KeyMatcher, pair: str, side: Side, minimum_count: int) -> float:
    """Match and average one side of a pair."""
    return average(matcher.match(index, pair, side), minimum_count, matcher.pattern(pair, side))


def aggregate_pair(index: QuoteIndex, matcher: KeyMatcher, pair: str, minimum_count: int) -> RatePair:
    """
    Aggregate both sides of a pair.

    Args:
        index: Index of the current snapshot.
        matcher: Key matcher selecting the feeds.
        pair: Pair code in any casing.
        minimum_count: Minimum number of sources per side.

    Returns:
        RatePair: Averaged bid and ask.

    Raises:
        InsufficientDataError: If either side lacks sources.
    """
    bid = aggregate_side(index, matcher, pair, Side.BID, minimum_count)
    ask = aggregate_side(index, matcher, pair, Side.ASK, minimum_count)
    logger.debug(f"Aggregated {pair}: bid={bid}, ask={ask}")
    return RatePair(bid=bid, ask=ask)

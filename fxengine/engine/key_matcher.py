"""
Key matcher module.

Resolves which quotes in a snapshot feed a given pair and side.
"""

import logging
from enum import Enum
from typing import Sequence

from fxengine.engine.context import QuoteIndex, Side, canonicalize_pair, context_key

logger = logging.getLogger(__name__)


class MatchMode(str, Enum):
    """
    Key matching modes.

    Values:
        SUFFIX: Any key ending in ``<Pair><Side>``, whatever its feed prefix.
        FIXED_KEYS: Only the keys of the configured feeds.
    """

    SUFFIX = "suffix"
    FIXED_KEYS = "fixed_keys"


class KeyMatcher:
    """
    Selects the quotes relevant to a pair and side.

    Attributes:
        mode: Matching mode.
        fixed_feeds: Feed ids used in FIXED_KEYS mode.
    """

    def __init__(self, mode: MatchMode = MatchMode.SUFFIX, fixed_feeds: Sequence[str] = ("pf1", "pf2")) -> None:
        self.mode = mode
        self.fixed_feeds = tuple(fixed_feeds)

    def pattern(self, pair: str, side: Side) -> str:
        """
        Describe the keys this matcher looks at, for error messages.

        Returns:
            str: "*UsdtryBid" in suffix mode, "pf1UsdtryBid|pf2UsdtryBid" in fixed mode.
        """
        if self.mode is MatchMode.FIXED_KEYS:
            return "|".join(context_key(feed, pair, side) for feed in self.fixed_feeds)
        return f"*{canonicalize_pair(pair)}{side.value}"

    def match(self, index: QuoteIndex, pair: str, side: Side) -> list[float]:
        """
        Collect the quote values for a pair and side.

        Absent values are never part of the index, so they are skipped
        without counting.

        Args:
            index: Index of the current snapshot.
            pair: Pair code in any casing.
            side: Bid or ask.

        Returns:
            list[float]: Matched values, possibly empty.
        """
        if self.mode is MatchMode.FIXED_KEYS:
            values = []
            for feed in self.fixed_feeds:
                value = index.get(feed, pair, side)
                if value is not None:
                    values.append(value)
        else:
            values = index.values_for(pair, side)

        logger.debug(f"Matched {len(values)} quotes for {self.pattern(pair, side)}")
        return values

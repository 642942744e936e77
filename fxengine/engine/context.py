"""
Quote context module.

A QuoteContext is the read-only snapshot handed to the engine for one
computation. Keys follow the ``<feedId><CanonicalPair><Side>`` convention,
e.g. ``pf1UsdtryBid``.
"""

import logging
import math
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


class Side(str, Enum):
    """Side of a two-way quote, spelled as it appears in context keys."""

    BID = "Bid"
    ASK = "Ask"


def canonicalize_pair(code: str) -> str:
    """
    Fold a pair code to the capitalised form used in context keys.

    Args:
        code: Pair code in any casing (e.g. "EURUSD", "eurusd", "EurUsd").

    Returns:
        str: Canonical name (e.g. "Eurusd").

    Raises:
        ValueError: If the code is empty.
    """
    code = str(code).strip()
    if not code:
        raise ValueError("Pair code must be non-empty")
    return code[0].upper() + code[1:].lower()


def context_key(feed_id: str, pair: str, side: Side) -> str:
    """Build the context key for one feed, pair and side."""
    return f"{feed_id}{canonicalize_pair(pair)}{side.value}"


def as_quote(value: Any) -> Optional[float]:
    """
    Convert a raw context value to a usable quote.

    Returns None for absent values: None, NaN, infinities and anything that
    is not a real number.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


class QuoteContext:
    """
    Immutable snapshot of raw quotes plus the target calculation identifier.

    Attributes:
        calc_name: Identifier of the pair to compute (e.g. "EURUSD").
        values: Read-only mapping of context key to raw value.
    """

    __slots__ = ("_calc_name", "_values")

    def __init__(self, calc_name: Any, values: Mapping[str, Any]) -> None:
        self._calc_name = calc_name
        # Copy so that later changes to the caller's dict never leak in
        self._values = MappingProxyType(dict(values))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], calc_name_key: str = "calcName") -> "QuoteContext":
        """
        Build a context from a single flat mapping that carries the identifier.

        Args:
            raw: Mapping of keys to values, including ``calc_name_key``.
            calc_name_key: Key holding the calculation identifier.

        Returns:
            QuoteContext: Snapshot without the identifier entry.
        """
        values = {k: v for k, v in raw.items() if k != calc_name_key}
        return cls(raw.get(calc_name_key), values)

    @property
    def calc_name(self) -> Any:
        return self._calc_name

    @property
    def values(self) -> Mapping[str, Any]:
        return self._values

    def get(self, key: str) -> Optional[float]:
        """Get a usable quote by exact key, or None if absent."""
        return as_quote(self._values.get(key))

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __repr__(self) -> str:
        return f"QuoteContext(calc_name={self._calc_name!r}, keys={len(self._values)})"


class QuoteIndex:
    """
    Structured index over a context, keyed by (feed_id, pair, side).

    Built once per snapshot. Keys with absent values and keys that do not
    end in a known pair and side are left out.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str, Side], float] = {}
        self._by_pair: dict[tuple[str, Side], list[float]] = {}

    @classmethod
    def build(cls, context: QuoteContext, pairs: Iterable[str]) -> "QuoteIndex":
        """
        Index every usable quote in a context.

        Args:
            context: Snapshot to index.
            pairs: Pair codes the index should recognise.

        Returns:
            QuoteIndex: Index for this snapshot only.
        """
        index = cls()
        # Longest first
        known = sorted({canonicalize_pair(p) for p in pairs}, key=len, reverse=True)
        skipped = 0

        for key, raw_value in context.values.items():
            value = as_quote(raw_value)
            if value is None:
                skipped += 1
                continue

            parsed = _split_key(str(key), known)
            if parsed is None:
                continue

            feed_id, pair, side = parsed
            index._entries[(feed_id, pair, side)] = value
            index._by_pair.setdefault((pair, side), []).append(value)

        if skipped:
            logger.debug(f"Skipped {skipped} context keys with absent values")

        return index

    def get(self, feed_id: str, pair: str, side: Side) -> Optional[float]:
        """Get the quote of one feed, or None if that feed has none."""
        return self._entries.get((feed_id, canonicalize_pair(pair), side))

    def values_for(self, pair: str, side: Side) -> list[float]:
        """Get the quotes of every feed for a pair and side."""
        return list(self._by_pair.get((canonicalize_pair(pair), side), []))

    def __len__(self) -> int:
        return len(self._entries)


def _split_key(key: str, known_pairs: list[str]) -> Optional[tuple[str, str, Side]]:
    for side in Side:
        if key.endswith(side.value):
            remainder = key[: -len(side.value)]
            break
    else:
        return None

    for pair in known_pairs:
        if remainder.endswith(pair):
            return remainder[: len(remainder) - len(pair)], pair, side

    return None

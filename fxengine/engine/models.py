"""
Data models for the rate engine.

Defines the two-sided rate result, the closed set of calculation targets,
and the published rate record.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator


@dataclass(frozen=True)
class RatePair:
    """
    Two-sided rate: the engine's only output type.

    Unpacks as ``bid, ask = rate``.

    Attributes:
        bid: Bid side of the rate.
        ask: Ask side of the rate.
    """

    bid: float
    ask: float

    def __iter__(self) -> Iterator[float]:
        yield self.bid
        yield self.ask

    @property
    def mid(self) -> float:
        """Midpoint of bid and ask."""
        return (self.bid + self.ask) / 2.0


class TargetKind(str, Enum):
    """
    How a calculation target is resolved.

    Values:
        BASE: The base pair, returned straight from aggregation.
        CROSS: A pair quoted against the base currency, cross-multiplied.
    """

    BASE = "BASE"
    CROSS = "CROSS"


@dataclass(frozen=True)
class CalcTarget:
    """
    A supported calculation target, resolved once at configuration load.

    Attributes:
        name: Upper-case pair code as published (e.g. "EURUSD").
        pair: Canonical pair name used in context keys (e.g. "Eurusd").
        kind: Whether the pair is the base pair or a cross pair.
    """

    name: str
    pair: str
    kind: TargetKind

    @property
    def is_base(self) -> bool:
        return self.kind is TargetKind.BASE


@dataclass
class CalculatedRate:
    """
    A computed rate ready to be handed to a publisher.

    Attributes:
        rate_name: Published rate name (e.g. "EURTRY").
        bid: Computed bid.
        ask: Computed ask.
        timestamp: UTC time of calculation.
    """

    rate_name: str
    bid: float
    ask: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "rate_name": self.rate_name,
            "bid": self.bid,
            "ask": self.ask,
            "timestamp": self.timestamp.isoformat(),
        }

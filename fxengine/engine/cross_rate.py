"""
Cross-rate resolver module.

Derives a pair that is not quoted directly from the base pair and the
pair's own rate against the base currency:

    XXXTRY = USDTRY × XXXUSD
"""

from enum import Enum

from fxengine.engine.models import RatePair


class CrossRateMode(str, Enum):
    """
    How the base pair enters a cross-rate.

    Values:
        SIDE: Bid multiplies bid, ask multiplies ask.
        MID: The base mid multiplies both target sides.
    """

    SIDE = "side"
    MID = "mid"


def cross_rate(base: RatePair, target: RatePair, mode: CrossRateMode = CrossRateMode.SIDE) -> RatePair:
    """
    Multiply a target pair through the base pair.

    No rounding or bounds checks are applied.

    Args:
        base: Aggregated base pair (e.g. USDTRY).
        target: Aggregated target pair against the base currency (e.g. EURUSD).
        mode: SIDE keeps bid and ask legs apart; MID uses the base midpoint.

    Returns:
        RatePair: Cross bid and ask.
    """
    if mode is CrossRateMode.MID:
        mid = base.mid
        return RatePair(bid=mid * target.bid, ask=mid * target.ask)
    return RatePair(bid=base.bid * target.bid, ask=base.ask * target.ask)

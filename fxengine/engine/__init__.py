"""
Rate engine module.

Key matching, averaging across feeds and cross-rate resolution.
The dispatcher is imported from fxengine.engine.formula_engine.
"""

from fxengine.engine.aggregator import aggregate_pair, average
from fxengine.engine.context import QuoteContext, QuoteIndex, Side, canonicalize_pair
from fxengine.engine.cross_rate import CrossRateMode, cross_rate
from fxengine.engine.exceptions import (
    CalculationError,
    ConfigurationError,
    InsufficientDataError,
    RateEngineError,
    UnknownCalcNameError,
)
from fxengine.engine.key_matcher import KeyMatcher, MatchMode
from fxengine.engine.models import CalcTarget, CalculatedRate, RatePair, TargetKind

__all__ = [
    "QuoteContext",
    "QuoteIndex",
    "Side",
    "canonicalize_pair",
    "KeyMatcher",
    "MatchMode",
    "average",
    "aggregate_pair",
    "CrossRateMode",
    "cross_rate",
    "RatePair",
    "CalcTarget",
    "TargetKind",
    "CalculatedRate",
    "RateEngineError",
    "InsufficientDataError",
    "UnknownCalcNameError",
    "ConfigurationError",
    "CalculationError",
]

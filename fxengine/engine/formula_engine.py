"""
Formula engine module.

Dispatches a calculation identifier to either the base pair or a
cross-rate and shapes the (bid, ask) result.

Formulas:
    USDTRY = mean(*UsdtryBid), mean(*UsdtryAsk)
    XXXTRY = USDTRY × mean(*XxxusdBid|Ask)
"""

import logging
from typing import Any, Mapping, Optional

from fxengine.engine.aggregator import aggregate_pair
from fxengine.engine.context import QuoteContext, QuoteIndex, canonicalize_pair
from fxengine.engine.cross_rate import cross_rate
from fxengine.engine.exceptions import UnknownCalcNameError
from fxengine.engine.key_matcher import KeyMatcher
from fxengine.engine.models import CalcTarget, RatePair
from fxengine.utils.config_loader import EngineConfig

logger = logging.getLogger(__name__)


class FormulaEngine:
    """
    Stateless rate engine.

    Configuration is validated once here; ``compute`` is then a pure
    function of its context and safe to call from several threads.

    Attributes:
        config: Engine configuration.
        targets: Closed map of canonical pair name to CalcTarget.
        matcher: Key matcher for the configured mode.
        cross_mode: Cross-rate mode.
    """

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        """
        Initialize the engine.

        Args:
            config: Engine configuration. Defaults to EngineConfig().

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        self.config = config or EngineConfig()
        self.targets: dict[str, CalcTarget] = self.config.resolve_targets()
        self.matcher = KeyMatcher(self.config.get_match_mode(), self.config.fixed_feeds)
        self.cross_mode = self.config.get_cross_rate_mode()
        self.minimum_count = self.config.minimum_source_count
        self.base_target = self.targets[canonicalize_pair(self.config.base_pair)]

        logger.info(
            f"Formula engine ready: base={self.base_target.name}, "
            f"pairs={[t.name for t in self.targets.values()]}, "
            f"match_mode={self.matcher.mode.value}, cross_mode={self.cross_mode.value}, "
            f"min_sources={self.minimum_count}"
        )

    def resolve_target(self, calc_name: Any) -> CalcTarget:
        """
        Look up the configured target for an identifier.

        Args:
            calc_name: Calculation identifier, in any casing.

        Returns:
            CalcTarget: The configured target for the pair.

        Raises:
            UnknownCalcNameError: If the identifier is not a configured pair.
        """
        if not isinstance(calc_name, str) or not calc_name.strip():
            raise UnknownCalcNameError(calc_name)
        target = self.targets.get(canonicalize_pair(calc_name))
        if target is None:
            raise UnknownCalcNameError(calc_name)
        return target

    def compute(self, context: QuoteContext) -> RatePair:
        """
        Compute the rate named by the context's calculation identifier.

        Args:
            context: Snapshot of raw quotes.

        Returns:
            RatePair: Computed bid and ask.

        Raises:
            UnknownCalcNameError: If the identifier is not configured.
            InsufficientDataError: If the base or target pair lacks sources.
        """
        target = self.resolve_target(context.calc_name)
        index = QuoteIndex.build(context, self.targets.keys())

        # Every path needs the base pair
        base = aggregate_pair(index, self.matcher, self.base_target.pair, self.minimum_count)
        if target.is_base:
            logger.debug(f"{target.name} is the base pair, returning aggregation")
            return base

        own = aggregate_pair(index, self.matcher, target.pair, self.minimum_count)
        result = cross_rate(base, own, self.cross_mode)
        logger.debug(f"Cross {target.name}: bid={result.bid}, ask={result.ask}")
        return result

    def compute_values(self, calc_name: str, values: Mapping[str, Any]) -> RatePair:
        """Build a context from raw values and compute it."""
        return self.compute(QuoteContext(calc_name, values))

    def compute_mapping(self, raw: Mapping[str, Any]) -> RatePair:
        """Compute from a flat mapping carrying the identifier under ``calc_name_key``."""
        return self.compute(QuoteContext.from_mapping(raw, self.config.calc_name_key))

"""
Rate calculator service.

Turns per-platform raw rates into engine contexts, runs the formula engine
for every configured pair, and names the results for publishing.

Input shape::

    {
        "PF1": {"USDTRY": RatePair(33.60, 33.70), "EURUSD": RatePair(1.08, 1.09)},
        "PF2": {"USDTRY": {"bid": 33.62, "ask": 33.71}},
    }
"""

import logging
from typing import Any, Mapping, Optional, Sequence

import pandas as pd

from fxengine.engine.context import QuoteContext, Side, as_quote, context_key
from fxengine.engine.exceptions import CalculationError, RateEngineError
from fxengine.engine.formula_engine import FormulaEngine
from fxengine.engine.models import CalculatedRate, RatePair
from fxengine.utils.config_loader import AppConfig

logger = logging.getLogger(__name__)

TICK_COLUMNS = ["platform", "rate_name", "bid", "ask"]
RESULT_COLUMNS = ["rate_name", "bid", "ask", "timestamp"]

PlatformRates = Mapping[str, Mapping[str, Any]]


def published_name(rate_name: str, base_pair: str) -> str:
    """
    Name under which a computed rate is published.

    A cross pair quoted against the base currency is renamed against the
    base pair's quote currency: with base USDTRY, EURUSD becomes EURTRY.

    Args:
        rate_name: Pair code as configured.
        base_pair: Base pair code.

    Returns:
        str: Published rate name.
    """
    name = rate_name.upper()
    base = base_pair.upper()
    half = len(base) // 2
    base_currency, quote_currency = base[:half], base[half:]

    if name != base and name.endswith(base_currency):
        return name[: -len(base_currency)] + quote_currency
    return name


def quote_sides(quote: Any) -> tuple[Any, Any]:
    """
    Split a raw platform quote into its bid and ask values.

    Args:
        quote: A RatePair, a mapping with bid/ask keys, or a (bid, ask) pair.

    Returns:
        tuple: Raw bid and ask values.

    Raises:
        ValueError: If the quote has none of the accepted shapes.
    """
    if isinstance(quote, RatePair):
        return quote.bid, quote.ask
    if isinstance(quote, Mapping):
        return quote.get("bid"), quote.get("ask")
    if isinstance(quote, Sequence) and not isinstance(quote, (str, bytes)) and len(quote) == 2:
        return quote[0], quote[1]
    raise ValueError(f"Quote must be a bid/ask mapping or a (bid, ask) pair, got {quote!r}")


def _matching_quotes(platform_rates: PlatformRates, rate_name: str):
    """Yield (platform, quote) for every platform rate whose name ends with rate_name."""
    wanted = rate_name.upper()
    for platform, rates in platform_rates.items():
        for name, quote in rates.items():
            if str(name).upper().endswith(wanted):
                yield platform, quote
            elif logger.isEnabledFor(logging.DEBUG) and wanted in str(name).upper():
                logger.debug(f"Invalid rate name format: {name} does not end with {wanted}")


def build_context(calc_name: str, platform_rates: PlatformRates, base_pair: str) -> QuoteContext:
    """
    Build the engine context for one calculation.

    The base pair's quotes are always included; a cross pair adds its own.

    Args:
        calc_name: Pair to compute.
        platform_rates: Raw rates keyed by platform, then rate name.
        base_pair: Base pair code.

    Returns:
        QuoteContext: Snapshot for this calculation.
    """
    names = [base_pair]
    if calc_name.upper() != base_pair.upper():
        names.append(calc_name)

    values: dict[str, Any] = {}
    for name in names:
        for platform, quote in _matching_quotes(platform_rates, name):
            bid, ask = quote_sides(quote)
            values[context_key(platform, name, Side.BID)] = bid
            values[context_key(platform, name, Side.ASK)] = ask

    logger.debug(f"Context for {calc_name}: {sorted(values)}")
    return QuoteContext(calc_name, values)


class RateCalculatorService:
    """
    Computes every configured rate from grouped platform rates.

    Attributes:
        config: Application configuration.
        engine: Formula engine used for each rate.
    """

    def __init__(self, config: Optional[AppConfig] = None, engine: Optional[FormulaEngine] = None) -> None:
        """
        Initialize the service.

        Args:
            config: Application configuration. Defaults to AppConfig().
            engine: Formula engine. Built from ``config.engine`` when omitted.
        """
        self.config = config or AppConfig()
        self.engine = engine or FormulaEngine(self.config.engine)

    @property
    def base_pair(self) -> str:
        return self.engine.base_target.name

    def _has_quotes(self, platform_rates: PlatformRates, rate_name: str) -> bool:
        for _, quote in _matching_quotes(platform_rates, rate_name):
            if any(as_quote(v) is not None for v in quote_sides(quote)):
                return True
        return False

    def calculate_one(self, rate_name: str, platform_rates: PlatformRates) -> CalculatedRate:
        """
        Compute a single rate.

        Raises:
            CalculationError: If the engine fails for this rate.
        """
        context = build_context(rate_name, platform_rates, self.base_pair)
        try:
            result = self.engine.compute(context)
        except RateEngineError as e:
            raise CalculationError(rate_name, e) from e

        return CalculatedRate(
            rate_name=published_name(rate_name, self.base_pair),
            bid=result.bid,
            ask=result.ask,
        )

    def calculate(self, platform_rates: Optional[PlatformRates]) -> list[CalculatedRate]:
        """
        Compute every configured rate that has data.

        Args:
            platform_rates: Raw rates keyed by platform, then rate name.

        Returns:
            list[CalculatedRate]: Computed rates, possibly empty.

        Raises:
            CalculationError: If the engine fails for a rate that has data.
        """
        if not platform_rates:
            logger.debug("Platform rates are empty, skipping calculation")
            return []

        if not self._has_quotes(platform_rates, self.base_pair):
            logger.warning(f"No {self.base_pair} data available, calculation aborted")
            return []

        calculated = []
        for target in self.engine.targets.values():
            if not target.is_base and not self._has_quotes(platform_rates, target.name):
                logger.debug(f"No data for {target.name}, skipping")
                continue

            rate = self.calculate_one(target.name, platform_rates)
            calculated.append(rate)
            logger.info(f"Calculated {rate.rate_name}: bid={rate.bid}, ask={rate.ask}")

        return calculated

    def calculate_frame(self, ticks: pd.DataFrame) -> pd.DataFrame:
        """
        Compute every configured rate from a DataFrame of raw ticks.

        Args:
            ticks: DataFrame with platform, rate_name, bid and ask columns.
                For a repeated (platform, rate_name) the last row wins.

        Returns:
            pd.DataFrame: One row per computed rate.

        Raises:
            ValueError: If required columns are missing.
            CalculationError: If the engine fails for a rate that has data.
        """
        missing = [c for c in TICK_COLUMNS if c not in ticks.columns]
        if missing:
            raise ValueError(f"Missing required tick columns: {missing}")

        latest = ticks.drop_duplicates(subset=["platform", "rate_name"], keep="last")

        grouped: dict[str, dict[str, RatePair]] = {}
        for row in latest.itertuples(index=False):
            grouped.setdefault(str(row.platform), {})[str(row.rate_name)] = RatePair(bid=row.bid, ask=row.ask)

        rates = self.calculate(grouped)
        return pd.DataFrame([r.to_dict() for r in rates], columns=RESULT_COLUMNS)

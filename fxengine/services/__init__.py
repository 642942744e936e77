"""
Services module.

Host-side helpers that feed the rate engine from per-platform quotes.
"""

from fxengine.services.rate_calculator import RateCalculatorService, build_context, published_name, quote_sides

__all__ = ["RateCalculatorService", "build_context", "published_name", "quote_sides"]

"""
FX rate engine.

Aggregates raw bid/ask quotes from several price feeds and derives
cross-rates against a base pair.
"""

__version__ = "1.0.0"

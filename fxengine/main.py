"""
CLI entry point for the FX rate engine.

Reads a snapshot of per-platform quotes, computes the configured rates,
and prints them.

Snapshot format (YAML or JSON)::

    PF1:
      USDTRY: {bid: 33.60, ask: 33.70}
      EURUSD: {bid: 1.080, ask: 1.090}
    PF2:
      USDTRY: {bid: 33.62, ask: 33.71}
      EURUSD: {bid: 1.082, ask: 1.091}
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import yaml

from fxengine.engine.exceptions import RateEngineError
from fxengine.services.rate_calculator import RateCalculatorService, quote_sides
from fxengine.utils.config_loader import load_config, load_env
from fxengine.utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ENGINE_ERROR = 1
EXIT_BAD_INPUT = 2


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed command line arguments.
    """
    parser = argparse.ArgumentParser(
        description="Compute bid/ask rates from multi-feed quotes",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        required=True,
        help="YAML/JSON file mapping platform -> rate name -> {bid, ask}",
    )
    parser.add_argument(
        "--rate",
        type=str,
        default=None,
        help="Compute only this pair (e.g. EURUSD). Default: all configured pairs",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config/config.yaml"),
        help="Path to configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Override configured log level",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    return parser.parse_args(argv)


def load_snapshot(path: Path) -> dict[str, Any]:
    """
    Load a quote snapshot file.

    Raises:
        ValueError: If the file is not a platform -> rates mapping, or a
            quote is not a bid/ask mapping or (bid, ask) pair.
    """
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict) or not all(isinstance(v, dict) for v in raw.values()):
        raise ValueError(f"Snapshot must map platform -> rate name -> quote: {path}")

    for platform, rates in raw.items():
        for rate_name, quote in rates.items():
            try:
                quote_sides(quote)
            except ValueError as e:
                raise ValueError(f"{platform}/{rate_name} in {path}: {e}") from e
    return raw


def main(argv: Optional[list[str]] = None) -> int:
    """Run the CLI and return the exit code."""
    args = parse_args(argv)

    load_env()
    config = load_config(args.config)
    setup_logging(
        level=args.log_level or config.logging.level,
        log_format=config.logging.format,
        log_file=Path(config.logging.file) if config.logging.file else None,
    )

    try:
        snapshot = load_snapshot(args.snapshot)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Could not read snapshot: {e}")
        return EXIT_BAD_INPUT

    try:
        service = RateCalculatorService(config)
        if args.rate:
            rates = [service.calculate_one(args.rate, snapshot)]
        else:
            rates = service.calculate(snapshot)
    except RateEngineError as e:
        logger.error(f"Rate calculation failed: {e}")
        if args.json:
            print(json.dumps(e.to_dict(), default=str))
        return EXIT_ENGINE_ERROR

    if args.json:
        print(json.dumps([r.to_dict() for r in rates], indent=2))
    else:
        for rate in rates:
            print(f"{rate.rate_name:<8} bid={rate.bid:.6f} ask={rate.ask:.6f}")

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

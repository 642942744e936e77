"""
Configuration loader module.

Loads engine configuration from YAML files and environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from fxengine.engine.context import canonicalize_pair
from fxengine.engine.cross_rate import CrossRateMode
from fxengine.engine.exceptions import ConfigurationError
from fxengine.engine.key_matcher import MatchMode
from fxengine.engine.models import CalcTarget, TargetKind

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Rate engine configuration."""

    base_pair: str = "USDTRY"
    minimum_source_count: int = 2
    match_mode: str = "suffix"  # "suffix" or "fixed_keys"
    fixed_feeds: list[str] = field(default_factory=lambda: ["pf1", "pf2"])
    cross_rate_mode: str = "side"  # "side" or "mid"
    calc_name_key: str = "calcName"
    supported_pairs: list[str] = field(default_factory=lambda: ["USDTRY", "EURUSD", "GBPUSD"])

    def get_match_mode(self) -> MatchMode:
        """
        Resolve the configured match mode.

        Raises:
            ConfigurationError: If the mode is not recognised.
        """
        try:
            return MatchMode(str(self.match_mode).lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown match mode: {self.match_mode}",
                details={"match_mode": self.match_mode},
            ) from None

    def get_cross_rate_mode(self) -> CrossRateMode:
        """
        Resolve the configured cross-rate mode.

        Raises:
            ConfigurationError: If the mode is not recognised.
        """
        try:
            return CrossRateMode(str(self.cross_rate_mode).lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown cross rate mode: {self.cross_rate_mode}",
                details={"cross_rate_mode": self.cross_rate_mode},
            ) from None

    def resolve_targets(self) -> dict[str, CalcTarget]:
        """
        Validate the engine section and build the closed set of targets.

        Identifiers are stored under their canonical form so that lookups
        at call time are a single dict access.

        Returns:
            Dict mapping canonical pair name to its CalcTarget.

        Raises:
            ConfigurationError: If any engine setting is invalid.
        """
        if self.minimum_source_count < 0:
            raise ConfigurationError(
                f"minimum_source_count must be >= 0, got {self.minimum_source_count}",
                details={"minimum_source_count": self.minimum_source_count},
            )

        if self.get_match_mode() is MatchMode.FIXED_KEYS and not self.fixed_feeds:
            raise ConfigurationError("fixed_keys match mode requires at least one fixed feed")

        # Validates the value even though targets don't carry it
        self.get_cross_rate_mode()

        try:
            base = canonicalize_pair(self.base_pair)
        except ValueError as e:
            raise ConfigurationError(f"Invalid base pair: {e}") from e

        pairs = list(self.supported_pairs or [])
        if base not in {canonicalize_pair(p) for p in pairs if str(p).strip()}:
            logger.warning(f"Base pair {self.base_pair} missing from supported_pairs, adding it")
            pairs.insert(0, self.base_pair)

        targets: dict[str, CalcTarget] = {}
        for pair in pairs:
            if not str(pair).strip():
                raise ConfigurationError("supported_pairs contains an empty pair name")
            canonical = canonicalize_pair(pair)
            kind = TargetKind.BASE if canonical == base else TargetKind.CROSS
            targets[canonical] = CalcTarget(name=str(pair).strip().upper(), pair=canonical, kind=kind)

        return targets


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"
    file: str | None = None


@dataclass
class AppConfig:
    """
    Main application configuration.

    Aggregates all configuration sections into a single object.
    """

    engine: EngineConfig = field(default_factory=EngineConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_env(env_file: Path = Path(".env")) -> None:
    """
    Load environment variables from .env file.

    Args:
        env_file: Path to .env file.
    """
    if env_file.exists():
        load_dotenv(env_file)
        logger.debug(f"Loaded environment from: {env_file}")
    else:
        logger.debug(f"No .env file found at: {env_file}")


def load_config(config_file: Path = Path("config/config.yaml")) -> AppConfig:
    """
    Load application configuration from YAML file.

    Environment overrides are applied after the file is parsed.

    Args:
        config_file: Path to configuration YAML file.

    Returns:
        AppConfig: Loaded configuration object.

    Raises:
        yaml.YAMLError: If config file is invalid.
        ConfigurationError: If a section has the wrong shape.
    """
    if not config_file.exists():
        logger.warning(f"Config file not found: {config_file}. Using defaults.")
        return apply_env_overrides(AppConfig())

    with open(config_file, encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        return apply_env_overrides(AppConfig())

    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {config_file}")

    config = apply_env_overrides(_parse_config(raw_config))
    logger.info(f"Loaded configuration from: {config_file}")
    return config


def _list_setting(section: dict[str, Any], key: str, default: list[str]) -> list[str]:
    value = section.get(key, default)
    if not isinstance(value, list):
        raise ConfigurationError(f"'{key}' must be a list, got {value!r}")
    return [str(v) for v in value]


def _int_setting(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}")
    return value


def _parse_config(raw: dict[str, Any]) -> AppConfig:
    """
    Parse raw YAML dict into AppConfig dataclass.

    Args:
        raw: Raw dictionary from YAML file.

    Returns:
        AppConfig: Parsed configuration object.

    Raises:
        ConfigurationError: If a section or setting has the wrong type.
    """
    engine_raw = raw.get("engine") or {}
    if not isinstance(engine_raw, dict):
        raise ConfigurationError("'engine' section must be a mapping")

    defaults = EngineConfig()
    engine = EngineConfig(
        base_pair=str(engine_raw.get("base_pair", defaults.base_pair)),
        minimum_source_count=_int_setting(engine_raw, "minimum_source_count", defaults.minimum_source_count),
        match_mode=str(engine_raw.get("match_mode", defaults.match_mode)),
        fixed_feeds=_list_setting(engine_raw, "fixed_feeds", defaults.fixed_feeds),
        cross_rate_mode=str(engine_raw.get("cross_rate_mode", defaults.cross_rate_mode)),
        calc_name_key=str(engine_raw.get("calc_name_key", defaults.calc_name_key)),
        supported_pairs=_list_setting(engine_raw, "supported_pairs", defaults.supported_pairs),
    )

    logging_raw = raw.get("logging") or {}
    logging_config = LoggingConfig(
        level=logging_raw.get("level", "INFO"),
        format=logging_raw.get("format", "text"),
        file=logging_raw.get("file"),
    )

    return AppConfig(engine=engine, logging=logging_config)


def apply_env_overrides(config: AppConfig) -> AppConfig:
    """
    Apply environment variable overrides to a loaded configuration.

    Args:
        config: Configuration to update in place.

    Returns:
        AppConfig: The same configuration object.
    """
    min_sources = get_env_var("FXENGINE_MIN_SOURCES")
    if min_sources:
        try:
            config.engine.minimum_source_count = int(min_sources)
        except ValueError:
            raise ConfigurationError(
                f"FXENGINE_MIN_SOURCES must be an integer, got {min_sources!r}"
            ) from None

    match_mode = get_env_var("FXENGINE_MATCH_MODE")
    if match_mode:
        config.engine.match_mode = match_mode

    cross_mode = get_env_var("FXENGINE_CROSS_MODE")
    if cross_mode:
        config.engine.cross_rate_mode = cross_mode

    level = get_env_var("LOG_LEVEL")
    if level:
        config.logging.level = level

    log_format = get_env_var("LOG_FORMAT")
    if log_format:
        config.logging.format = log_format

    return config


def get_env_var(key: str, default: str | None = None) -> str | None:
    """
    Get an environment variable with optional default.

    Args:
        key: Environment variable name.
        default: Default value if not set.

    Returns:
        Environment variable value or default.
    """
    return os.environ.get(key, default)

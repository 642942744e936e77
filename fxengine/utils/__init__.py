"""
Utility modules.

Configuration loading and logging setup.
"""

from fxengine.utils.config_loader import AppConfig, EngineConfig, load_config, load_env
from fxengine.utils.logging_setup import setup_logging

__all__ = [
    "load_config",
    "load_env",
    "AppConfig",
    "EngineConfig",
    "setup_logging",
]

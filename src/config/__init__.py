"""
Configuration loader: reads config.yaml, validates it against the bundled
JSON Schema, applies environment overrides for paths.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    BacktestConfig,
    ConfigError,
    DataConfig,
    JournalConfig,
    StrategyConfig,
    load_config,
)

__all__ = [
    "AlertingConfig",
    "AppConfig",
    "BacktestConfig",
    "ConfigError",
    "DataConfig",
    "JournalConfig",
    "StrategyConfig",
    "load_config",
]

"""
Config loader: YAML file -> frozen dataclass tree, validated against JSON Schema.

Schema: config/backtest_config.schema.json (ships with the package).

Paths may be overridden from the environment:
  - CTA_BAR_STORE_PATH
  - CTA_JOURNAL_PATH
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from cta_core.contracts import EngineMode

logger = logging.getLogger("cta.config")

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "backtest_config.schema.json"


class ConfigError(ValueError):
    """Raised when config loading or validation fails."""


@dataclass(frozen=True)
class DataConfig:
    bar_store_path: str = "data/bars.db"


@dataclass(frozen=True)
class BacktestConfig:
    start_date: datetime | None = None
    end_date: datetime | None = None
    init_days: int = 10
    capital: float = 1_000_000.0
    slippage: float = 0.0
    rate: float = 0.0
    size: float = 1.0
    price_tick: float = 0.0


@dataclass(frozen=True)
class StrategyConfig:
    name: str = "ema_cross"
    setting: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JournalConfig:
    path: str = "data/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class AppConfig:
    symbol: str
    mode: EngineMode
    data: DataConfig
    backtest: BacktestConfig
    strategy: StrategyConfig = StrategyConfig()
    journal: JournalConfig = JournalConfig()
    alerting: AlertingConfig = AlertingConfig()


def _stringify_dates(value: Any) -> Any:
    # yaml.safe_load turns bare ISO dates into date objects; the schema wants strings
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _stringify_dates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_dates(v) for v in value]
    return value


def _parse_datetime(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid date {value!r}: {exc}") from exc


def _validate_schema(data: dict[str, Any], schema_path: Path) -> None:
    """Validate *data* against the JSON Schema at *schema_path*."""
    if not schema_path.exists():
        raise ConfigError(f"Schema file not found: {schema_path}")
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise ConfigError(f"Config validation failed: {exc.message}") from exc


def _build_config(raw: dict[str, Any]) -> AppConfig:
    """Convert a raw dict (already validated) into the frozen dataclass tree."""
    data_raw = raw.get("data", {})
    data_cfg = DataConfig(
        bar_store_path=os.environ.get("CTA_BAR_STORE_PATH")
        or data_raw.get("bar_store_path", "data/bars.db"),
    )

    bt_raw = raw.get("backtest", {})
    bt_cfg = BacktestConfig(
        start_date=_parse_datetime(bt_raw.get("start_date")),
        end_date=_parse_datetime(bt_raw.get("end_date")),
        init_days=int(bt_raw.get("init_days", 10)),
        capital=float(bt_raw.get("capital", 1_000_000)),
        slippage=float(bt_raw.get("slippage", 0.0)),
        rate=float(bt_raw.get("rate", 0.0)),
        size=float(bt_raw.get("size", 1)),
        price_tick=float(bt_raw.get("price_tick", 0.0)),
    )
    if bt_cfg.start_date and bt_cfg.end_date and bt_cfg.end_date < bt_cfg.start_date:
        raise ConfigError("backtest.end_date is before backtest.start_date")

    s_raw = raw.get("strategy", {})
    s_cfg = StrategyConfig(
        name=s_raw.get("name", "ema_cross"),
        setting=dict(s_raw.get("setting", {})),
    )

    j_raw = raw.get("journal", {})
    j_cfg = JournalConfig(
        path=os.environ.get("CTA_JOURNAL_PATH") or j_raw.get("path", "data/journal.jsonl"),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    a_raw = raw.get("alerting", {})
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=str(a_raw.get("webhook_url", "")),
    )

    return AppConfig(
        symbol=raw.get("symbol", ""),
        mode=EngineMode(raw.get("mode", EngineMode.BAR.value)),
        data=data_cfg,
        backtest=bt_cfg,
        strategy=s_cfg,
        journal=j_cfg,
        alerting=a_cfg,
    )


def load_config(
    path: str | Path = "config.yaml",
    schema_path: str | Path | None = None,
) -> AppConfig:
    """Load and validate configuration from a YAML file.

    Raises
    ------
    FileNotFoundError
        If the config file does not exist.
    ConfigError
        If the file is unparseable, not a mapping, or fails schema validation.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config is not valid YAML: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    raw = _stringify_dates(raw)
    _validate_schema(raw, Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH)
    cfg = _build_config(raw)
    logger.debug("Loaded config from %s (symbol=%s, mode=%s)", config_path, cfg.symbol, cfg.mode.value)
    return cfg

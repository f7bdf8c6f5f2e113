"""
CSV import for `cta ingest`.

Bars:  datetime,open,high,low,close[,volume][,trading_day]
Ticks: datetime,last_price,ask_price_1,bid_price_1[,volume][,trading_day]

Header row required; column order is free. Datetimes are ISO 8601, naive
values are taken as UTC.
"""

import csv
from datetime import date, datetime, timezone
from pathlib import Path

from cta_core.contracts import Bar, Tick

BAR_COLUMNS = ("datetime", "open", "high", "low", "close")
TICK_COLUMNS = ("datetime", "last_price", "ask_price_1", "bid_price_1")


class CsvFormatError(ValueError):
    """Missing columns or unparseable values in an import file."""


def _parse_dt(value: str) -> datetime:
    ts = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _parse_day(value: str | None) -> date | None:
    if value is None or not value.strip():
        return None
    return date.fromisoformat(value.strip())


def _read_rows(path: str | Path, required: tuple[str, ...]) -> list[dict[str, str]]:
    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        missing = [c for c in required if c not in (reader.fieldnames or [])]
        if missing:
            raise CsvFormatError(f"{path}: missing columns {', '.join(missing)}")
        return list(reader)


def read_bars_csv(path: str | Path, symbol: str) -> list[Bar]:
    """Parse a bar CSV; result is sorted by datetime."""
    bars = []
    for line_no, row in enumerate(_read_rows(path, BAR_COLUMNS), start=2):
        try:
            bars.append(
                Bar(
                    symbol=symbol,
                    datetime=_parse_dt(row["datetime"]),
                    open=float(row["open"]),
                    high=float(row["high"]),
                    low=float(row["low"]),
                    close=float(row["close"]),
                    volume=float(row.get("volume") or 0),
                    trading_day=_parse_day(row.get("trading_day")),
                )
            )
        except ValueError as exc:
            raise CsvFormatError(f"{path}:{line_no}: {exc}") from exc
    bars.sort(key=lambda b: b.datetime)
    return bars


def read_ticks_csv(path: str | Path, symbol: str) -> list[Tick]:
    """Parse a tick CSV; result is sorted by datetime."""
    ticks = []
    for line_no, row in enumerate(_read_rows(path, TICK_COLUMNS), start=2):
        try:
            ticks.append(
                Tick(
                    symbol=symbol,
                    datetime=_parse_dt(row["datetime"]),
                    last_price=float(row["last_price"]),
                    ask_price_1=float(row["ask_price_1"]),
                    bid_price_1=float(row["bid_price_1"]),
                    volume=float(row.get("volume") or 0),
                    trading_day=_parse_day(row.get("trading_day")),
                )
            )
        except ValueError as exc:
            raise CsvFormatError(f"{path}:{line_no}: {exc}") from exc
    ticks.sort(key=lambda t: t.datetime)
    return ticks

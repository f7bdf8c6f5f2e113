"""
Read-only data access for the backtest dashboard.
Discovers symbols from data/<SYMBOL>/journal.jsonl and rebuilds equity, drawdown,
daily P&L and trade tables from the journaled events.
"""

import json
import os
from pathlib import Path
from typing import Any

import pandas as pd


def _data_dir() -> Path:
    """Base data dir: repo root / data, or CTA_DASHBOARD_DATA_DIR if set."""
    if env := os.environ.get("CTA_DASHBOARD_DATA_DIR"):
        return Path(env)
    return Path(__file__).resolve().parent.parent / "data"


def discover_symbols(data_dir: Path | None = None) -> list[str]:
    """Find symbols: any subdir of data/ that has a journal.jsonl."""
    root = data_dir or _data_dir()
    if not root.is_dir():
        return []
    return [child.name for child in sorted(root.iterdir()) if child.is_dir() and (child / "journal.jsonl").exists()]


def read_journal_events(
    symbol: str,
    event_type: str | None = None,
    data_dir: Path | None = None,
    all_runs: bool = False,
) -> list[dict[str, Any]]:
    """Journal events for a symbol in file order, optionally filtered by event type.

    The journal is append-only across runs. Unless `all_runs` is set, only
    events after the last `run_start` marker are returned.
    """
    root = data_dir or _data_dir()
    path = root / symbol / "journal.jsonl"
    if not path.exists():
        return []
    out = []
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if obj.get("event") == "run_start" and not all_runs:
                    out = []
                if event_type is None or obj.get("event") == event_type:
                    out.append(obj)
    except OSError:
        return []
    return out


def equity_curve(symbol: str, data_dir: Path | None = None) -> pd.DataFrame:
    """Cumulative P&L and drawdown per closed round trip, indexed by exit time."""
    results = read_journal_events(symbol, "trading_result", data_dir)
    if not results:
        return pd.DataFrame(columns=["pnl", "capital", "drawdown"])
    df = pd.DataFrame(
        {"pnl": [float(r["pnl"]) for r in results]},
        index=pd.to_datetime([r["exit_dt"] for r in results], utc=True),
    )
    df["capital"] = df["pnl"].cumsum()
    df["drawdown"] = df["capital"] - df["capital"].cummax()
    return df


def daily_net_pnl(symbol: str, data_dir: Path | None = None) -> pd.Series:
    """Net P&L per trading day."""
    days = read_journal_events(symbol, "daily_result", data_dir)
    if not days:
        return pd.Series(dtype=float, name="net_pnl")
    return pd.Series(
        [float(d["net_pnl"]) for d in days],
        index=pd.to_datetime([d["date"] for d in days]),
        name="net_pnl",
    )


def recent_trades(symbol: str, limit: int = 20, data_dir: Path | None = None) -> list[dict[str, Any]]:
    """Last `limit` fills, newest first."""
    trades = read_journal_events(symbol, "trade", data_dir)
    chosen = trades[-limit:] if limit else trades
    chosen.reverse()
    return chosen

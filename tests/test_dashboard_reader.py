"""Tests for the dashboard's read-only journal access."""

import json
from pathlib import Path

import pytest

from data_reader import daily_net_pnl, discover_symbols, equity_curve, read_journal_events, recent_trades


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    (tmp_path / "RB").mkdir()  # no journal
    symbol_dir = tmp_path / "IF"
    symbol_dir.mkdir()
    events = [
        {"event": "trade", "trade_id": "1", "price": 100.0},
        {"event": "trade", "trade_id": "2", "price": 110.0},
        {"event": "trading_result", "pnl": 10.0, "exit_dt": "2024-01-03T15:00:00+00:00"},
        {"event": "trading_result", "pnl": -4.0, "exit_dt": "2024-01-04T15:00:00+00:00"},
        {"event": "daily_result", "date": "2024-01-03", "net_pnl": 10.0},
        {"event": "daily_result", "date": "2024-01-04", "net_pnl": -4.0},
    ]
    lines = [json.dumps(e) for e in events]
    lines.insert(2, "not json")
    (symbol_dir / "journal.jsonl").write_text("\n".join(lines) + "\n")
    return tmp_path


def test_discover_symbols(data_dir: Path) -> None:
    assert discover_symbols(data_dir) == ["IF"]
    assert discover_symbols(data_dir / "missing") == []


def test_read_journal_skips_bad_lines(data_dir: Path) -> None:
    assert len(read_journal_events("IF", data_dir=data_dir)) == 6
    assert [e["trade_id"] for e in read_journal_events("IF", "trade", data_dir)] == ["1", "2"]


def test_equity_curve(data_dir: Path) -> None:
    df = equity_curve("IF", data_dir)
    assert list(df["capital"]) == [10.0, 6.0]
    assert list(df["drawdown"]) == [0.0, -4.0]


def test_daily_net_pnl(data_dir: Path) -> None:
    assert list(daily_net_pnl("IF", data_dir)) == [10.0, -4.0]


def test_recent_trades_newest_first(data_dir: Path) -> None:
    assert [t["trade_id"] for t in recent_trades("IF", data_dir=data_dir)] == ["2", "1"]


def test_missing_symbol(data_dir: Path) -> None:
    assert equity_curve("RB", data_dir).empty
    assert daily_net_pnl("RB", data_dir).empty
    assert recent_trades("RB", data_dir=data_dir) == []


def test_only_latest_run_is_read(tmp_path: Path) -> None:
    symbol_dir = tmp_path / "IF"
    symbol_dir.mkdir()
    run = [
        {"event": "run_start", "symbol": "IF", "strategy": "ema_cross"},
        {"event": "trade", "trade_id": "1", "price": 100.0},
        {"event": "trading_result", "pnl": 10.0, "exit_dt": "2024-01-03T15:00:00+00:00"},
        {"event": "daily_result", "date": "2024-01-03", "net_pnl": 10.0},
    ]
    lines = [json.dumps(e) for e in run + run]
    (symbol_dir / "journal.jsonl").write_text("\n".join(lines) + "\n")

    assert list(equity_curve("IF", tmp_path)["capital"]) == [10.0]
    assert len(daily_net_pnl("IF", tmp_path)) == 1
    assert len(recent_trades("IF", data_dir=tmp_path)) == 1
    assert len(read_journal_events("IF", "trade", tmp_path, all_runs=True)) == 2

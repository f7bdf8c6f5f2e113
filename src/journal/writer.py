"""
Structured journal: append-only JSON lines, one object per engine event.
"""

import json
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from cta_core.contracts import DailyResult, LimitOrder, StopOrder, Trade, TradingResult
from cta_core.result_calculator import BacktestResult

JOURNAL_EVENTS = ("order", "stop_order", "trade", "trading_result", "daily_result", "summary")


def _serialize(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return {k: _serialize(v) for k, v in vars(obj).items() if not k.startswith("_")}
    if isinstance(obj, dict):
        return {str(_serialize(k)): _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(x) for x in obj]
    return obj


class JournalWriter:
    """Append-only journal. Each line is a JSON object with event type and payload."""

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def run_start(self, symbol: str, strategy: str, mode: str, start: str, end: str = "") -> None:
        """Marks the start of a run; readers keep only events after the last marker."""
        self._write("run_start", {"symbol": symbol, "strategy": strategy, "mode": mode, "start": start, "end": end})

    def order(self, order: LimitOrder) -> None:
        self._write("order", _serialize(order))

    def stop_order(self, stop_order: StopOrder) -> None:
        self._write("stop_order", _serialize(stop_order))

    def trade(self, trade: Trade) -> None:
        self._write("trade", _serialize(trade))

    def trading_result(self, result: TradingResult) -> None:
        self._write("trading_result", _serialize(result))

    def daily_result(self, result: DailyResult) -> None:
        payload = _serialize(result)
        # trades are journaled individually
        payload["trades"] = [t.trade_id for t in result.trades]
        self._write("daily_result", payload)

    def summary(self, result: BacktestResult, **extra: Any) -> None:
        self._write(
            "summary",
            {
                "total_result": result.total_result,
                "capital": result.capital,
                "max_drawdown": result.max_drawdown,
                "winning_rate": result.winning_rate,
                "profit_loss_ratio": result.profit_loss_ratio,
                "total_commission": result.total_commission,
                "total_slippage": result.total_slippage,
                "total_turnover": result.total_turnover,
                "first_trade_time": result.first_trade_time,
                "last_trade_time": result.last_trade_time,
                **extra,
            },
        )

    def record(self, event_type: str, payload: object) -> None:
        """Engine event callback: dispatch to the matching writer method."""
        if event_type not in JOURNAL_EVENTS:
            raise ValueError(f"Unknown journal event: {event_type}")
        getattr(self, event_type)(payload)

"""
Daily P&L aggregation: trades + daily close prices -> per-day DailyResult.

Each day's P&L splits into:
    - position_pnl: yesterday's closing position carried through today's
      price change (previous_close -> close_price)
    - trading_pnl:  each of today's trades marked from its fill price to
      today's close

Optional summary statistics over the daily series (balance, drawdown,
log returns, Sharpe) are computed with pandas.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Iterable

import numpy as np
import pandas as pd

from cta_core.contracts import DailyResult, Direction, Trade

logger = logging.getLogger("cta.daily")

TRADING_DAYS_PER_YEAR = 240


class DailyResultError(KeyError):
    """Raised when a trade falls on a day no market data touched."""


def calculate_pnl(
    result: DailyResult,
    open_position: float = 0,
    size: float = 1,
    rate: float = 0,
    slippage: float = 0,
) -> DailyResult:
    """Finalize one bucket in place. `previous_close` must already be set."""
    result.open_position = open_position
    result.position_pnl = open_position * (result.close_price - result.previous_close) * size
    result.close_position = open_position
    result.trade_count = len(result.trades)

    result.trading_pnl = 0.0
    result.turnover = 0.0
    result.commission = 0.0
    result.slippage = 0.0
    for trade in result.trades:
        pos_change = trade.volume if trade.direction == Direction.LONG else -trade.volume
        result.trading_pnl += pos_change * (result.close_price - trade.price) * size
        result.close_position += pos_change
        turnover = trade.price * trade.volume * size
        result.turnover += turnover
        result.commission += turnover * rate
        result.slippage += trade.volume * size * slippage

    result.total_pnl = result.trading_pnl + result.position_pnl
    result.net_pnl = result.total_pnl - result.commission - result.slippage
    return result


class DailyAggregator:
    """Per-day buckets keyed by trading day, in first-seen (chronological) order."""

    def __init__(self) -> None:
        self._results: dict[date, DailyResult] = {}

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, day: date) -> bool:
        return day in self._results

    def get(self, day: date) -> DailyResult | None:
        return self._results.get(day)

    def update_close(self, day: date, price: float) -> None:
        """Record the running close for `day`, creating the bucket on first sight."""
        result = self._results.get(day)
        if result is None:
            self._results[day] = DailyResult(date=day, close_price=price)
        else:
            result.close_price = price

    def add_trade(self, trade: Trade, day: date | None = None) -> None:
        key = day or trade.datetime.date()
        result = self._results.get(key)
        if result is None:
            raise DailyResultError(f"No daily bucket for trade {trade.trade_id} on {key}")
        result.add_trade(trade)

    def calculate(
        self,
        trades: Iterable[Trade],
        size: float = 1,
        rate: float = 0,
        slippage: float = 0,
        day_of: Callable[[Trade], date] | None = None,
    ) -> list[DailyResult]:
        """Attach `trades` to their day and run the carry-forward pass.

        `day_of` maps a trade to its bucket key (defaults to the trade's
        calendar date). Buckets are processed in date order; the first day
        starts from previous_close = 0 and open_position = 0.
        """
        for result in self._results.values():
            result.trades = []
        for trade in trades:
            self.add_trade(trade, day_of(trade) if day_of else None)

        previous_close = 0.0
        open_position: float = 0
        ordered = [self._results[d] for d in sorted(self._results)]
        for result in ordered:
            result.previous_close = previous_close
            previous_close = result.close_price
            calculate_pnl(result, open_position, size, rate, slippage)
            open_position = result.close_position
        return ordered

    def clear(self) -> None:
        self._results.clear()


# ---------------------------------------------------------------------------
# Daily statistics
# ---------------------------------------------------------------------------


_DAILY_COLUMNS = [
    "close_price",
    "previous_close",
    "open_position",
    "close_position",
    "trade_count",
    "trading_pnl",
    "position_pnl",
    "total_pnl",
    "turnover",
    "commission",
    "slippage",
    "net_pnl",
]


def daily_results_frame(results: list[DailyResult]) -> pd.DataFrame:
    """Tabulate daily results, one row per date."""
    rows = [{"date": r.date, **{col: getattr(r, col) for col in _DAILY_COLUMNS}} for r in results]
    df = pd.DataFrame(rows, columns=["date", *_DAILY_COLUMNS])
    return df.set_index("date")


def calculate_daily_statistics(
    results: list[DailyResult],
    capital: float,
) -> tuple[pd.DataFrame, dict[str, Any]]:
    """Balance/drawdown/return series plus a summary dict.

    Returns an empty frame and {} when there are no daily results.
    """
    df = daily_results_frame(results)
    if df.empty:
        logger.info("No daily results to summarize")
        return df, {}

    df["balance"] = df["net_pnl"].cumsum() + capital
    df["return"] = np.log(df["balance"] / df["balance"].shift(1)).fillna(0)
    df["highlevel"] = df["balance"].cummax()
    df["drawdown"] = df["balance"] - df["highlevel"]
    df["dd_percent"] = df["drawdown"] / df["highlevel"] * 100

    total_days = len(df)
    end_balance = float(df["balance"].iloc[-1])
    total_return = (end_balance / capital - 1) * 100 if capital else 0.0
    daily_return = float(df["return"].mean()) * 100
    return_std = float(df["return"].std()) * 100 if total_days > 1 else 0.0
    if return_std:
        sharpe_ratio = daily_return / return_std * np.sqrt(TRADING_DAYS_PER_YEAR)
    else:
        sharpe_ratio = 0.0

    total_net_pnl = float(df["net_pnl"].sum())
    total_commission = float(df["commission"].sum())
    total_slippage = float(df["slippage"].sum())
    total_turnover = float(df["turnover"].sum())
    total_trade_count = int(df["trade_count"].sum())

    stats = {
        "start_date": df.index[0],
        "end_date": df.index[-1],
        "total_days": total_days,
        "profit_days": int((df["net_pnl"] > 0).sum()),
        "loss_days": int((df["net_pnl"] < 0).sum()),
        "capital": capital,
        "end_balance": end_balance,
        "max_drawdown": float(df["drawdown"].min()),
        "max_dd_percent": float(df["dd_percent"].min()),
        "total_net_pnl": total_net_pnl,
        "daily_net_pnl": total_net_pnl / total_days,
        "total_commission": total_commission,
        "daily_commission": total_commission / total_days,
        "total_slippage": total_slippage,
        "daily_slippage": total_slippage / total_days,
        "total_turnover": total_turnover,
        "daily_turnover": total_turnover / total_days,
        "total_trade_count": total_trade_count,
        "daily_trade_count": total_trade_count / total_days,
        "total_return": total_return,
        "annualized_return": total_return / total_days * TRADING_DAYS_PER_YEAR,
        "daily_return": daily_return,
        "return_std": return_std,
        "sharpe_ratio": float(sharpe_ratio),
    }
    return df, stats

"""
Result calculator: FIFO trade pairing, equity curve, drawdown, summary stats.

Runs once after the replay over the full trade ledger (in ledger order).
Each trade either opens exposure or closes the oldest open trades on the
opposite side first; volume left over after the opposite queue empties
flips the position and opens new exposure.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from cta_core.contracts import Direction, Trade, TradingResult
from cta_core.trading_result import generate_trading_result

logger = logging.getLogger("cta.results")


@dataclass
class _OpenTrade:
    """A not-yet-closed trade with its remaining volume."""

    price: float
    dt: datetime
    remaining: float


@dataclass(frozen=True)
class CostModel:
    """Cost parameters shared by every TradingResult of a run."""

    rate: float = 0.0
    slippage: float = 0.0
    size: float = 1.0


@dataclass
class PairingOutput:
    """FIFO pairing output: results plus the position trace at each entry/exit."""

    results: list[TradingResult] = field(default_factory=list)
    pos_list: list[int] = field(default_factory=lambda: [0])
    trade_time_list: list[datetime] = field(default_factory=list)


def pair_trades(
    trades: Iterable[Trade],
    costs: CostModel,
    end_price: float | None = None,
    end_dt: datetime | None = None,
) -> PairingOutput:
    """Pair trades FIFO into TradingResults.

    Trades still open at the end are closed at `end_price` / `end_dt`
    (the last observed price and time). Pass end_price=None to leave them
    unclosed.
    """
    out = PairingOutput()
    open_long: deque[_OpenTrade] = deque()
    open_short: deque[_OpenTrade] = deque()

    def _close(entry: _OpenTrade, exit_price: float, exit_dt: datetime, volume: float) -> None:
        result = generate_trading_result(
            entry.price, entry.dt, exit_price, exit_dt, volume,
            costs.rate, costs.slippage, costs.size,
        )
        out.results.append(result)
        # +1: a long round trip was held; -1: a short one
        out.pos_list.extend([1 if volume > 0 else -1, 0])
        out.trade_time_list.extend([result.entry_dt, result.exit_dt])

    for trade in trades:
        incoming = _OpenTrade(price=trade.price, dt=trade.datetime, remaining=trade.volume)
        if trade.direction == Direction.LONG:
            same_side, opposite, sign = open_long, open_short, -1
        else:
            same_side, opposite, sign = open_short, open_long, 1

        while opposite and incoming.remaining > 0:
            head = opposite[0]
            closed_volume = min(incoming.remaining, head.remaining)
            _close(head, incoming.price, incoming.dt, sign * closed_volume)
            head.remaining -= closed_volume
            incoming.remaining -= closed_volume
            if head.remaining <= 0:
                opposite.popleft()

        if incoming.remaining > 0:
            same_side.append(incoming)

    if end_price is not None and end_dt is not None:
        for entry in open_long:
            _close(entry, end_price, end_dt, entry.remaining)
        for entry in open_short:
            _close(entry, end_price, end_dt, -entry.remaining)

    return out


@dataclass
class BacktestResult:
    """Equity curve, drawdown series, and summary statistics for one run."""

    capital: float
    max_capital: float
    drawdown: float
    total_result: int
    total_turnover: float
    total_commission: float
    total_slippage: float
    time_list: list[datetime]
    pnl_list: list[float]
    capital_list: list[float]
    drawdown_list: list[float]
    winning_rate: float
    average_winning: float
    average_losing: float
    profit_loss_ratio: float
    pos_list: list[int] = field(default_factory=list)
    trade_time_list: list[datetime] = field(default_factory=list)
    results: list[TradingResult] = field(default_factory=list)
    winning_result: int = 0
    losing_result: int = 0

    @property
    def total_net_pnl(self) -> float:
        return self.capital

    @property
    def max_drawdown(self) -> float:
        return min(self.drawdown_list) if self.drawdown_list else 0.0

    @property
    def first_trade_time(self) -> datetime | None:
        if self.results:
            return min(r.entry_dt for r in self.results)
        return self.time_list[0] if self.time_list else None

    @property
    def last_trade_time(self) -> datetime | None:
        return self.time_list[-1] if self.time_list else None

    @property
    def average_pnl(self) -> float:
        return self.capital / self.total_result if self.total_result else 0.0

    @property
    def average_slippage(self) -> float:
        return self.total_slippage / self.total_result if self.total_result else 0.0

    @property
    def average_commission(self) -> float:
        return self.total_commission / self.total_result if self.total_result else 0.0


def summarize_results(
    results: list[TradingResult],
    pos_list: list[int] | None = None,
    trade_time_list: list[datetime] | None = None,
) -> BacktestResult | None:
    """Derive the equity curve and statistics. Returns None when there are no results."""
    if not results:
        logger.info("No trading results")
        return None

    capital = 0.0
    max_capital: float | None = None
    drawdown = 0.0

    total_turnover = 0.0
    total_commission = 0.0
    total_slippage = 0.0

    time_list: list[datetime] = []
    pnl_list: list[float] = []
    capital_list: list[float] = []
    drawdown_list: list[float] = []

    winning_result = 0
    losing_result = 0
    total_winning = 0.0
    total_losing = 0.0

    for result in results:
        capital += result.pnl
        max_capital = capital if max_capital is None else max(capital, max_capital)
        drawdown = capital - max_capital

        pnl_list.append(result.pnl)
        time_list.append(result.exit_dt)
        capital_list.append(capital)
        drawdown_list.append(drawdown)

        total_turnover += result.turnover
        total_commission += result.commission
        total_slippage += result.slippage

        if result.pnl >= 0:
            winning_result += 1
            total_winning += result.pnl
        else:
            losing_result += 1
            total_losing += result.pnl

    total_result = len(results)
    winning_rate = winning_result / total_result * 100

    average_winning = total_winning / winning_result if winning_result else 0.0
    average_losing = total_losing / losing_result if losing_result else 0.0
    profit_loss_ratio = -average_winning / average_losing if average_losing else 0.0

    return BacktestResult(
        capital=capital,
        max_capital=max_capital if max_capital is not None else 0.0,
        drawdown=drawdown,
        total_result=total_result,
        total_turnover=total_turnover,
        total_commission=total_commission,
        total_slippage=total_slippage,
        time_list=time_list,
        pnl_list=pnl_list,
        capital_list=capital_list,
        drawdown_list=drawdown_list,
        winning_rate=winning_rate,
        average_winning=average_winning,
        average_losing=average_losing,
        profit_loss_ratio=profit_loss_ratio,
        pos_list=list(pos_list or []),
        trade_time_list=list(trade_time_list or []),
        results=list(results),
        winning_result=winning_result,
        losing_result=losing_result,
    )


def calculate_backtesting_result(
    trades: Iterable[Trade],
    costs: CostModel,
    end_price: float | None,
    end_dt: datetime | None,
) -> BacktestResult | None:
    """FIFO-pair the ledger, close leftovers at the last price, summarize."""
    paired = pair_trades(trades, costs, end_price, end_dt)
    return summarize_results(paired.results, paired.pos_list, paired.trade_time_list)

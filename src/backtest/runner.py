"""
Event-driven backtest: replay bars or ticks in order, match working orders,
drive the strategy, collect trades and daily P&L.

No lookahead. Orders submitted while handling point N are first matched
against point N+1.

Usage:
    engine = BacktestingEngine()
    engine.set_symbol("IF")
    engine.set_start_date(datetime(2024, 1, 2), init_days=10)
    engine.load_history_data(loader)
    engine.init_strategy(EmaCrossStrategy, {"fast_k": 0.9})
    engine.run_backtesting()
    result = engine.calculate_backtesting_result()
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable

import pandas as pd

from config.loader import AppConfig
from cta_core.contracts import (
    Bar,
    DailyResult,
    EngineMode,
    MarketPoint,
    OrderType,
    Tick,
    Trade,
)
from cta_core.daily_result import DailyAggregator, calculate_daily_statistics
from cta_core.result_calculator import BacktestResult, CostModel, calculate_backtesting_result
from cta_core.strategy import Strategy
from data.loader import HistoryLoader, to_utc
from execution.order_book import OrderBook

logger = logging.getLogger("cta.engine")

EngineEventCallback = Callable[[str, object], None]


class BacktestError(RuntimeError):
    """Engine used out of order (no strategy, no start date, ...)."""


class BacktestingEngine:
    """Single-symbol replay driver. One strategy per run."""

    def __init__(self, *, event_callback: EngineEventCallback | None = None) -> None:
        self.symbol = ""
        self.mode = EngineMode.BAR
        self.start_date: datetime | None = None
        self.end_date: datetime | None = None
        self.init_days = 10
        self.capital = 1_000_000.0
        self.slippage = 0.0
        self.rate = 0.0
        self.size = 1.0
        self.price_tick = 0.0

        self.strategy: Strategy | None = None
        self.init_data: list[MarketPoint] = []
        self.history_data: list[MarketPoint] = []

        self._event_callback = event_callback
        self.order_book = OrderBook(event_callback=self._on_book_event)
        self.daily = DailyAggregator()
        self._trade_days: dict[str, date] = {}
        self.point: MarketPoint | None = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        event_callback: EngineEventCallback | None = None,
    ) -> BacktestingEngine:
        """Build an engine with symbol, mode, window and costs taken from config."""
        bt = config.backtest
        engine = cls(event_callback=event_callback)
        engine.set_symbol(config.symbol)
        engine.set_mode(config.mode)
        if bt.start_date is not None:
            engine.set_start_date(bt.start_date, bt.init_days)
        engine.set_end_date(bt.end_date)
        engine.set_capital(bt.capital)
        engine.set_slippage(bt.slippage)
        engine.set_rate(bt.rate)
        engine.set_size(bt.size)
        engine.set_price_tick(bt.price_tick)
        return engine

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def set_symbol(self, symbol: str) -> None:
        self.symbol = symbol

    def set_mode(self, mode: EngineMode | str) -> None:
        self.mode = EngineMode(mode)

    def set_start_date(self, start_date: datetime, init_days: int = 10) -> None:
        """First replayed point; warm-up data covers the `init_days` before it."""
        self.start_date = start_date
        self.init_days = init_days

    def set_end_date(self, end_date: datetime | None) -> None:
        self.end_date = end_date

    def set_capital(self, capital: float) -> None:
        self.capital = capital

    def set_slippage(self, slippage: float) -> None:
        self.slippage = slippage

    def set_rate(self, rate: float) -> None:
        self.rate = rate

    def set_size(self, size: float) -> None:
        self.size = size

    def set_price_tick(self, price_tick: float) -> None:
        self.price_tick = price_tick
        self.order_book.price_tick = price_tick

    @property
    def costs(self) -> CostModel:
        return CostModel(rate=self.rate, slippage=self.slippage, size=self.size)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def load_history_data(self, loader: HistoryLoader) -> None:
        """Pull the warm-up and replay windows through the loader."""
        if self.start_date is None:
            raise BacktestError("Start date not set; call set_start_date() first")
        init_start = self.start_date - timedelta(days=self.init_days)
        self.init_data = list(loader.load_series(self.symbol, init_start, self.start_date, self.mode))
        replay = list(loader.load_series(self.symbol, self.start_date, None, self.mode))
        if self.end_date is not None:
            # replay window is inclusive of the end date
            end_utc = to_utc(self.end_date)
            replay = [p for p in replay if to_utc(p.datetime) <= end_utc]
        self.history_data = replay
        logger.info(
            "Loaded %d warm-up and %d replay %ss for %s",
            len(self.init_data),
            len(self.history_data),
            self.mode.value,
            self.symbol,
        )

    def init_strategy(self, strategy_cls: type[Strategy], setting: dict[str, Any] | None = None) -> Strategy:
        """Instantiate the strategy bound to this engine."""
        setting = dict(setting or {})
        setting.setdefault("symbol", self.symbol)
        self.strategy = strategy_cls(self, setting)
        self.order_book.strategy = self.strategy
        logger.info("Strategy %s created for %s", self.strategy.name or strategy_cls.__name__, self.strategy.symbol)
        return self.strategy

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    def run_backtesting(self) -> None:
        """Warm up, then replay every point through matching and the strategy."""
        strategy = self.strategy
        if strategy is None:
            raise BacktestError("No strategy; call init_strategy() first")

        strategy.on_init()
        strategy.inited = True
        logger.info("Strategy initialised")

        strategy.trading = True
        strategy.on_start()
        logger.info("Strategy started; replaying %d points", len(self.history_data))

        for point in self.history_data:
            self.new_point(point)

        strategy.trading = False
        strategy.on_stop()
        logger.info("Replay finished: %d trades", len(self.order_book.trades))

    def new_point(self, point: MarketPoint) -> None:
        """Process one market point: match, then hand it to the strategy."""
        self.point = point
        self.order_book.set_market_point(point)
        limit_ids, stop_ids = self.order_book.snapshot_working()
        self.order_book.cross_limit_orders(order_ids=limit_ids)
        self.order_book.cross_stop_orders(stop_order_ids=stop_ids)
        if self.strategy is not None:
            if isinstance(point, Bar):
                self.strategy.on_bar(point)
            else:
                self.strategy.on_tick(point)
        self.daily.update_close(point.day, point.mark_price)

    # ------------------------------------------------------------------
    # StrategyEngine
    # ------------------------------------------------------------------

    def send_order(self, symbol: str, order_type: OrderType, price: float, volume: float) -> str:
        return self.order_book.submit_limit_order(symbol, order_type, price, volume)

    def send_stop_order(self, symbol: str, order_type: OrderType, price: float, volume: float) -> str:
        return self.order_book.submit_stop_order(symbol, order_type, price, volume)

    def cancel_order(self, order_id: str) -> None:
        self.order_book.cancel_limit_order(order_id)

    def cancel_stop_order(self, stop_order_id: str) -> None:
        self.order_book.cancel_stop_order(stop_order_id)

    def load_bar(self) -> list[Bar]:
        """Warm-up bars (empty in tick mode)."""
        return [p for p in self.init_data if isinstance(p, Bar)]

    def load_tick(self) -> list[Tick]:
        """Warm-up ticks (empty in bar mode)."""
        return [p for p in self.init_data if isinstance(p, Tick)]

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    @property
    def trades(self) -> list[Trade]:
        """Trade ledger in fill order."""
        return list(self.order_book.trades.values())

    def calculate_backtesting_result(self) -> BacktestResult | None:
        """FIFO-pair the ledger; leftovers close at the last observed price."""
        end_price = self.point.mark_price if self.point is not None else None
        end_dt = self.point.datetime if self.point is not None else None
        result = calculate_backtesting_result(self.trades, self.costs, end_price, end_dt)
        if result is None:
            logger.info("No trades; nothing to summarize")
            return None
        for trading_result in result.results:
            self._emit("trading_result", trading_result)
        self._emit("summary", result)
        return result

    def calculate_daily_result(self) -> list[DailyResult]:
        """Per-day P&L with position carried forward between days."""
        results = self.daily.calculate(
            self.trades,
            size=self.size,
            rate=self.rate,
            slippage=self.slippage,
            day_of=lambda trade: self._trade_days[trade.trade_id],
        )
        for daily_result in results:
            self._emit("daily_result", daily_result)
        return results

    def calculate_daily_statistics(
        self, results: list[DailyResult] | None = None
    ) -> tuple[pd.DataFrame, dict[str, Any]]:
        if results is None:
            results = self.calculate_daily_result()
        return calculate_daily_statistics(results, self.capital)

    def clear_backtesting_result(self) -> None:
        """Reset orders, trades, counters and daily buckets. Loaded data is kept."""
        self.order_book.reset()
        self.daily.clear()
        self._trade_days.clear()
        self.point = None
        if self.strategy is not None:
            self.strategy.pos = 0
            self.strategy.inited = False
            self.strategy.trading = False

    # ------------------------------------------------------------------

    def _on_book_event(self, event_type: str, payload: object) -> None:
        if event_type == "trade" and isinstance(payload, Trade) and self.point is not None:
            self._trade_days[payload.trade_id] = self.point.day
        self._emit(event_type, payload)

    def _emit(self, event_type: str, payload: object) -> None:
        if self._event_callback is not None:
            self._event_callback(event_type, payload)

"""Pytest fixtures: bar/tick sequences and a recording strategy for deterministic tests."""

from datetime import datetime, timezone

import pytest

from cta_core.contracts import Bar, Tick
from cta_core.strategy import Strategy


def _ts(year: int, month: int, day: int, hour: int = 15, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, 0, tzinfo=timezone.utc)


class ScriptedStrategy(Strategy):
    """Runs `script[i](strategy, point)` on the i-th replayed point and records every callback."""

    name = "scripted"

    def __init__(self, engine, setting=None) -> None:
        super().__init__(engine, setting)
        self.script: dict = {}
        self.warmup: list = []
        self.points: list = []
        self.events: list[tuple[str, str, str]] = []
        self.trades: list = []
        self.init_order_id: str | None = None

    def on_init(self) -> None:
        self.warmup = self.load_bar() or self.load_tick()
        # not trading yet: must come back empty
        self.init_order_id = self.buy(1.0, 1)

    def on_bar(self, bar) -> None:
        self._step(bar)

    def on_tick(self, tick) -> None:
        self._step(tick)

    def _step(self, point) -> None:
        i = len(self.points)
        self.points.append(point)
        action = self.script.get(i)
        if action is not None:
            action(self, point)

    def on_order(self, order) -> None:
        self.events.append(("order", order.order_id, order.status.value))

    def on_stop_order(self, stop_order) -> None:
        self.events.append(("stop_order", stop_order.stop_order_id, stop_order.status.value))

    def on_trade(self, trade) -> None:
        self.trades.append(trade)
        self.events.append(("trade", trade.trade_id, trade.order_id))


@pytest.fixture
def symbol() -> str:
    return "IF"


@pytest.fixture
def daily_bars(symbol: str) -> list[Bar]:
    """Six daily bars, Jan 1-6 2024. Each bar opens at the prior close."""
    rows = [
        (100.0, 102.0, 99.0, 101.0),
        (101.0, 103.0, 100.0, 102.0),
        (102.0, 104.0, 101.0, 103.0),
        (103.0, 106.0, 102.0, 105.0),
        (105.0, 108.0, 104.0, 107.0),
        (107.0, 108.0, 103.0, 104.0),
    ]
    return [
        Bar(symbol, _ts(2024, 1, i + 1), o, h, l, c, volume=1_000)
        for i, (o, h, l, c) in enumerate(rows)
    ]


@pytest.fixture
def cross_bars(symbol: str) -> list[Bar]:
    """Eight daily bars: a slide from 10 to 6, then a rally to 18 (one golden cross at bar 5)."""
    closes = [10.0, 9.0, 8.0, 7.0, 6.0, 10.0, 14.0, 18.0]
    bars = []
    prev = closes[0]
    for i, close in enumerate(closes):
        bars.append(
            Bar(
                symbol,
                _ts(2024, 1, i + 1),
                open=prev,
                high=max(prev, close) + 0.5,
                low=min(prev, close) - 0.5,
                close=close,
            )
        )
        prev = close
    return bars


@pytest.fixture
def ticks(symbol: str) -> list[Tick]:
    """Four ticks on one morning."""
    return [
        Tick(symbol, _ts(2024, 1, 2, 9, 30), last_price=10.1, ask_price_1=10.2, bid_price_1=10.0),
        Tick(symbol, _ts(2024, 1, 2, 9, 31), last_price=10.2, ask_price_1=10.3, bid_price_1=10.1),
        Tick(symbol, _ts(2024, 1, 2, 9, 32), last_price=10.4, ask_price_1=10.5, bid_price_1=10.3),
        Tick(symbol, _ts(2024, 1, 2, 9, 33), last_price=10.3, ask_price_1=10.4, bid_price_1=10.2),
    ]


@pytest.fixture
def strategy_cls() -> type[ScriptedStrategy]:
    return ScriptedStrategy

"""Tests for the strategy base class: command routing, trading gate, settings."""

import pytest

from cta_core.contracts import OrderType
from cta_core.strategy import Strategy
from strategies import STRATEGIES, EmaCrossStrategy, get_strategy


class FakeEngine:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def send_order(self, symbol, order_type, price, volume) -> str:
        self.calls.append(("send_order", symbol, order_type, price, volume))
        return "1"

    def send_stop_order(self, symbol, order_type, price, volume) -> str:
        self.calls.append(("send_stop_order", symbol, order_type, price, volume))
        return "STOP.1"

    def cancel_order(self, order_id) -> None:
        self.calls.append(("cancel_order", order_id))

    def cancel_stop_order(self, stop_order_id) -> None:
        self.calls.append(("cancel_stop_order", stop_order_id))

    def load_bar(self) -> list:
        return ["bar"]

    def load_tick(self) -> list:
        return []


class Plain(Strategy):
    name = "plain"


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def strategy(engine: FakeEngine) -> Plain:
    s = Plain(engine, {"symbol": "IF"})
    s.trading = True
    return s


class TestCommands:
    @pytest.mark.parametrize(
        "method, order_type",
        [("buy", OrderType.BUY), ("sell", OrderType.SELL), ("short", OrderType.SHORT), ("cover", OrderType.COVER)],
    )
    def test_limit_routing(self, strategy: Plain, engine: FakeEngine, method: str, order_type: OrderType) -> None:
        assert getattr(strategy, method)(100.0, 2) == "1"
        assert engine.calls == [("send_order", "IF", order_type, 100.0, 2)]

    def test_stop_routing(self, strategy: Plain, engine: FakeEngine) -> None:
        assert strategy.sell(95.0, 1, stop=True) == "STOP.1"
        assert engine.calls == [("send_stop_order", "IF", OrderType.SELL, 95.0, 1)]

    def test_not_trading_returns_empty(self, strategy: Plain, engine: FakeEngine) -> None:
        strategy.trading = False
        assert strategy.buy(100.0, 1) == ""
        assert strategy.short(100.0, 1, stop=True) == ""
        assert engine.calls == []

    def test_cancel_dispatches_on_prefix(self, strategy: Plain, engine: FakeEngine) -> None:
        strategy.cancel_order("STOP.3")
        strategy.cancel_order("4")
        assert engine.calls == [("cancel_stop_order", "STOP.3"), ("cancel_order", "4")]

    def test_cancel_empty_id_is_noop(self, strategy: Plain, engine: FakeEngine) -> None:
        strategy.cancel_order("")
        assert engine.calls == []

    def test_load_bar_delegates(self, strategy: Plain) -> None:
        assert strategy.load_bar() == ["bar"]
        assert strategy.load_tick() == []


class TestSettings:
    def test_defaults(self, engine: FakeEngine) -> None:
        s = Plain(engine)
        assert (s.symbol, s.inited, s.trading, s.pos) == ("", False, False, 0)

    def test_parameters_override(self, engine: FakeEngine) -> None:
        s = EmaCrossStrategy(engine, {"symbol": "RB", "fast_k": 0.5, "unknown": 1})
        assert s.symbol == "RB"
        assert s.fast_k == 0.5
        assert s.slow_k == 0.1
        assert not hasattr(s, "unknown")


def test_registry() -> None:
    assert STRATEGIES["ema_cross"] is EmaCrossStrategy
    assert get_strategy("ema_cross") is EmaCrossStrategy
    with pytest.raises(KeyError, match="available: ema_cross"):
        get_strategy("nope")

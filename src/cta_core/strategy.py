"""
Strategy capability interface.

A strategy receives market data and order lifecycle hooks from the engine
and sends orders back through the StrategyEngine it is bound to. The
engine updates `pos` before delivering the trade that changed it.
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Protocol

from cta_core.contracts import (
    Bar,
    LimitOrder,
    OrderType,
    StopOrder,
    Tick,
    Trade,
    is_stop_order_id,
)


class StrategyEngine(Protocol):
    """Engine-side commands available to a strategy."""

    def send_order(self, symbol: str, order_type: OrderType, price: float, volume: float) -> str:
        ...

    def send_stop_order(self, symbol: str, order_type: OrderType, price: float, volume: float) -> str:
        ...

    def cancel_order(self, order_id: str) -> None:
        ...

    def cancel_stop_order(self, stop_order_id: str) -> None:
        ...

    def load_bar(self) -> list[Bar]:
        ...

    def load_tick(self) -> list[Tick]:
        ...


class Strategy(ABC):
    """Base class for strategies. Override the hooks you need.

    `parameters` names the attributes a setting dict may override when the
    engine instantiates the strategy.
    """

    name: str = ""
    parameters: tuple[str, ...] = ()

    def __init__(self, engine: StrategyEngine, setting: dict[str, Any] | None = None) -> None:
        self.engine = engine
        self.symbol = ""
        self.inited = False
        self.trading = False
        self.pos: float = 0
        for key, value in (setting or {}).items():
            if key == "symbol":
                self.symbol = value
            elif key in self.parameters:
                setattr(self, key, value)

    # --- lifecycle ---

    def on_init(self) -> None:
        pass

    def on_start(self) -> None:
        pass

    def on_stop(self) -> None:
        pass

    # --- market data ---

    def on_bar(self, bar: Bar) -> None:
        pass

    def on_tick(self, tick: Tick) -> None:
        pass

    # --- order lifecycle ---

    def on_order(self, order: LimitOrder) -> None:
        pass

    def on_stop_order(self, stop_order: StopOrder) -> None:
        pass

    def on_trade(self, trade: Trade) -> None:
        pass

    # --- commands ---

    def buy(self, price: float, volume: float, stop: bool = False) -> str:
        """Open long."""
        return self.send_order(OrderType.BUY, price, volume, stop)

    def sell(self, price: float, volume: float, stop: bool = False) -> str:
        """Close long."""
        return self.send_order(OrderType.SELL, price, volume, stop)

    def short(self, price: float, volume: float, stop: bool = False) -> str:
        """Open short."""
        return self.send_order(OrderType.SHORT, price, volume, stop)

    def cover(self, price: float, volume: float, stop: bool = False) -> str:
        """Close short."""
        return self.send_order(OrderType.COVER, price, volume, stop)

    def send_order(self, order_type: OrderType, price: float, volume: float, stop: bool = False) -> str:
        """Route to the limit or stop path. Returns "" when not trading."""
        if not self.trading:
            return ""
        if stop:
            return self.engine.send_stop_order(self.symbol, order_type, price, volume)
        return self.engine.send_order(self.symbol, order_type, price, volume)

    def cancel_order(self, order_id: str) -> None:
        """Cancel a limit or stop order; empty IDs are ignored."""
        if not order_id or not self.trading:
            return
        if is_stop_order_id(order_id):
            self.engine.cancel_stop_order(order_id)
        else:
            self.engine.cancel_order(order_id)

    def load_bar(self) -> list[Bar]:
        return self.engine.load_bar()

    def load_tick(self) -> list[Tick]:
        return self.engine.load_tick()

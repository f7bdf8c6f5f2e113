"""
cta-core: deterministic backtesting core.

Data contracts, trade result generation, FIFO result calculation, daily
P&L aggregation, and the strategy capability interface. No I/O.
"""

from cta_core.contracts import (
    STOP_ORDER_PREFIX,
    Bar,
    DailyResult,
    Direction,
    EngineMode,
    LimitOrder,
    MarketPoint,
    Offset,
    OrderStatus,
    OrderType,
    StopOrder,
    StopOrderStatus,
    Tick,
    Trade,
    TradingResult,
    UnknownOrderTypeError,
    order_type_to_direction_offset,
)
from cta_core.strategy import Strategy, StrategyEngine

__all__ = [
    "STOP_ORDER_PREFIX",
    "Bar",
    "DailyResult",
    "Direction",
    "EngineMode",
    "LimitOrder",
    "MarketPoint",
    "Offset",
    "OrderStatus",
    "OrderType",
    "StopOrder",
    "StopOrderStatus",
    "Strategy",
    "StrategyEngine",
    "Tick",
    "Trade",
    "TradingResult",
    "UnknownOrderTypeError",
    "order_type_to_direction_offset",
]

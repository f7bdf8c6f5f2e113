"""
Data contracts for cta-core: market points, orders, trades, results.

The engine consumes Bar/Tick and produces LimitOrder/StopOrder/Trade records;
TradingResult and DailyResult are derived after the replay.
No I/O; these are plain dataclasses.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Union


STOP_ORDER_PREFIX = "STOP."


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Direction(str, Enum):
    """Side of an order or trade."""

    LONG = "LONG"
    SHORT = "SHORT"


class Offset(str, Enum):
    """Whether an order establishes or reduces exposure."""

    OPEN = "OPEN"
    CLOSE = "CLOSE"


class OrderStatus(str, Enum):
    """Limit order status.

    PARTTRADED and REJECTED are never produced: every fill is total.
    """

    UNSET = "UNSET"
    NOTTRADED = "NOTTRADED"
    PARTTRADED = "PARTTRADED"
    ALLTRADED = "ALLTRADED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


class StopOrderStatus(str, Enum):
    """Local stop order status. WAITING is the only non-terminal state."""

    WAITING = "WAITING"
    TRIGGERED = "TRIGGERED"
    CANCELLED = "CANCELLED"


class OrderType(str, Enum):
    """Strategy-level order intents."""

    BUY = "BUY"
    SELL = "SELL"
    SHORT = "SHORT"
    COVER = "COVER"


class EngineMode(str, Enum):
    """Replay granularity."""

    BAR = "bar"
    TICK = "tick"


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.ALLTRADED, OrderStatus.CANCELLED, OrderStatus.REJECTED})
TERMINAL_STOP_STATUSES = frozenset({StopOrderStatus.TRIGGERED, StopOrderStatus.CANCELLED})


class UnknownOrderTypeError(ValueError):
    """Raised when an order type has no (direction, offset) mapping."""


_ORDER_TYPE_MAP: dict[OrderType, tuple[Direction, Offset]] = {
    OrderType.BUY: (Direction.LONG, Offset.OPEN),
    OrderType.SELL: (Direction.SHORT, Offset.CLOSE),
    OrderType.SHORT: (Direction.SHORT, Offset.OPEN),
    OrderType.COVER: (Direction.LONG, Offset.CLOSE),
}


def order_type_to_direction_offset(order_type: OrderType | str) -> tuple[Direction, Offset]:
    """Map BUY/SELL/SHORT/COVER to its (direction, offset) pair.

    Raises UnknownOrderTypeError for anything outside the enum.
    """
    try:
        return _ORDER_TYPE_MAP[OrderType(order_type)]
    except (ValueError, KeyError):
        raise UnknownOrderTypeError(f"Unknown order type: {order_type!r}") from None


def is_stop_order_id(order_id: str) -> bool:
    """True when the ID belongs to the local stop-order namespace."""
    return order_id.startswith(STOP_ORDER_PREFIX)


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Bar:
    """OHLC bar. `datetime` is the bar end time."""

    symbol: str
    datetime: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0
    trading_day: date | None = None

    @property
    def day(self) -> date:
        """Trading day this bar belongs to (falls back to the calendar date)."""
        return self.trading_day or self.datetime.date()

    @property
    def mark_price(self) -> float:
        return self.close


@dataclass(frozen=True)
class Tick:
    """Quote/trade snapshot with best bid/ask and last price."""

    symbol: str
    datetime: datetime
    last_price: float
    ask_price_1: float
    bid_price_1: float
    volume: float = 0
    trading_day: date | None = None

    @property
    def day(self) -> date:
        return self.trading_day or self.datetime.date()

    @property
    def mark_price(self) -> float:
        return self.last_price


MarketPoint = Union[Bar, Tick]


# ---------------------------------------------------------------------------
# Orders and trades
# ---------------------------------------------------------------------------


@dataclass
class LimitOrder:
    """Working or historical limit order. Owned by the order book."""

    order_id: str
    symbol: str
    direction: Direction
    offset: Offset
    price: float
    total_volume: float
    traded_volume: float = 0
    status: OrderStatus = OrderStatus.UNSET
    order_time: datetime | None = None
    cancel_time: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status not in TERMINAL_ORDER_STATUSES


@dataclass
class StopOrder:
    """Locally simulated stop order. Becomes a filled limit order on trigger."""

    stop_order_id: str
    symbol: str
    direction: Direction
    offset: Offset
    price: float
    volume: float
    status: StopOrderStatus = StopOrderStatus.WAITING
    order_time: datetime | None = None
    limit_order_id: str | None = None  # set when triggered

    @property
    def is_active(self) -> bool:
        return self.status not in TERMINAL_STOP_STATUSES


@dataclass(frozen=True)
class Trade:
    """One fill. Volume is always positive; direction carries the sign."""

    trade_id: str
    order_id: str
    symbol: str
    direction: Direction
    offset: Offset
    price: float
    volume: float
    datetime: datetime

    @property
    def signed_volume(self) -> float:
        return self.volume if self.direction == Direction.LONG else -self.volume


# ---------------------------------------------------------------------------
# Derived results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TradingResult:
    """Financial outcome of one closing match (entry paired with exit).

    `volume` is signed so that (exit - entry) * volume * size is the gross
    pnl: positive when a long was closed, negative when a short was closed.
    """

    entry_price: float
    entry_dt: datetime
    exit_price: float
    exit_dt: datetime
    volume: float
    turnover: float
    commission: float
    slippage: float
    pnl: float


@dataclass
class DailyResult:
    """P&L bucket for one trading day."""

    date: date
    close_price: float
    previous_close: float = 0.0
    open_position: float = 0
    close_position: float = 0
    trades: list[Trade] = field(default_factory=list)
    trade_count: int = 0
    trading_pnl: float = 0.0
    position_pnl: float = 0.0
    total_pnl: float = 0.0
    turnover: float = 0.0
    commission: float = 0.0
    slippage: float = 0.0
    net_pnl: float = 0.0

    def add_trade(self, trade: Trade) -> None:
        self.trades.append(trade)

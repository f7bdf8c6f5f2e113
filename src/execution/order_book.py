"""
Order book: working limit/stop orders matched against each new market point.

Single writer (the replay loop). Strategy callbacks may submit or cancel
orders while a crossing pass is running; new orders wait for the next
point, cancelled ones are skipped.

Crossing prices per point:

    Limit orders   Bar: buy=low,  sell=high, best=open
                   Tick: buy=ask_price_1, sell=bid_price_1 (best likewise)
    Stop orders    Bar: buy=high, sell=low,  best=open
                   Tick: last_price for all three
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from cta_core.contracts import (
    STOP_ORDER_PREFIX,
    Bar,
    Direction,
    LimitOrder,
    MarketPoint,
    OrderStatus,
    OrderType,
    StopOrder,
    StopOrderStatus,
    Trade,
    order_type_to_direction_offset,
)
from cta_core.strategy import Strategy

logger = logging.getLogger("cta.orders")

EventCallback = Callable[[str, object], None]


class OrderBookError(RuntimeError):
    """Broken ledger invariant (e.g. ID collision). Aborts the run."""


def round_to_price_tick(price: float, price_tick: float | None) -> float:
    """Round to the nearest multiple of `price_tick`, halves away from zero.

    No-op when the tick is 0 or unset.
    """
    if not price_tick:
        return price
    tick = Decimal(str(price_tick))
    steps = (Decimal(str(price)) / tick).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return float(steps * tick)


class OrderBook:
    """Working and historical limit/stop orders plus the trade ledger for one run."""

    def __init__(
        self,
        strategy: Strategy | None = None,
        *,
        price_tick: float = 0,
        event_callback: EventCallback | None = None,
    ) -> None:
        self.strategy = strategy
        self.price_tick = price_tick
        self._event_callback = event_callback
        self.reset()

    def reset(self) -> None:
        """Drop all orders, trades, and counters."""
        self.limit_order_count = 0
        self.stop_order_count = 0
        self.trade_count = 0

        self.limit_orders: dict[str, LimitOrder] = {}
        self.stop_orders: dict[str, StopOrder] = {}
        self.trades: dict[str, Trade] = {}
        # ordered sets of IDs; the history dicts own the records
        self._working_limit: dict[str, None] = {}
        self._working_stop: dict[str, None] = {}

        self.point: MarketPoint | None = None
        self.dt: datetime | None = None

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def working_limit_orders(self) -> dict[str, LimitOrder]:
        return {oid: self.limit_orders[oid] for oid in self._working_limit}

    @property
    def working_stop_orders(self) -> dict[str, StopOrder]:
        return {sid: self.stop_orders[sid] for sid in self._working_stop}

    def set_market_point(self, point: MarketPoint) -> None:
        self.point = point
        self.dt = point.datetime

    def snapshot_working(self) -> tuple[list[str], list[str]]:
        """Working limit and stop IDs, taken before a point is matched.

        Orders submitted from callbacks during the matching passes are not in
        the snapshot and wait for the next point.
        """
        return list(self._working_limit), list(self._working_stop)

    # ------------------------------------------------------------------
    # Limit orders
    # ------------------------------------------------------------------

    def submit_limit_order(self, symbol: str, order_type: OrderType, price: float, volume: float) -> str:
        """Store a new UNSET limit order. No event is emitted."""
        direction, offset = order_type_to_direction_offset(order_type)
        self.limit_order_count += 1
        order_id = str(self.limit_order_count)
        order = LimitOrder(
            order_id=order_id,
            symbol=symbol,
            direction=direction,
            offset=offset,
            price=round_to_price_tick(price, self.price_tick),
            total_volume=volume,
            order_time=self.dt,
        )
        self._store_limit_order(order)
        self._working_limit[order_id] = None
        logger.debug("Limit order %s: %s %s %s @ %s", order_id, direction.value, offset.value, volume, order.price)
        return order_id

    def cancel_limit_order(self, order_id: str) -> None:
        """Cancel a working order. Unknown or terminal IDs are ignored.

        An order cancelled before its first match is reported NOTTRADED first.
        """
        if order_id not in self._working_limit:
            return
        order = self.limit_orders[order_id]
        if order.status == OrderStatus.UNSET:
            order.status = OrderStatus.NOTTRADED
            self._notify_order(order)
            if order_id not in self._working_limit:
                return
        order.status = OrderStatus.CANCELLED
        order.cancel_time = self.dt
        del self._working_limit[order_id]
        logger.debug("Limit order %s cancelled", order_id)
        self._notify_order(order)

    def cross_limit_orders(self, point: MarketPoint | None = None, order_ids: list[str] | None = None) -> None:
        """Match working limit orders (or the given subset) against the current point."""
        point = point or self.point
        if point is None:
            return
        if isinstance(point, Bar):
            buy_cross_price = point.low
            sell_cross_price = point.high
            buy_best_cross_price = point.open
            sell_best_cross_price = point.open
        else:
            buy_cross_price = point.ask_price_1
            sell_cross_price = point.bid_price_1
            buy_best_cross_price = point.ask_price_1
            sell_best_cross_price = point.bid_price_1

        for order_id in list(self._working_limit) if order_ids is None else order_ids:
            if order_id not in self._working_limit:
                continue  # cancelled by a callback earlier in this point
            order = self.limit_orders[order_id]

            if order.status == OrderStatus.UNSET:
                order.status = OrderStatus.NOTTRADED
                self._notify_order(order)
                if order_id not in self._working_limit:
                    continue

            # a zero best price means no genuine quote (locked market)
            buy_cross = (
                order.direction == Direction.LONG
                and order.price >= buy_cross_price
                and buy_cross_price > 0
            )
            sell_cross = (
                order.direction == Direction.SHORT
                and order.price <= sell_cross_price
                and sell_cross_price > 0
            )
            if not (buy_cross or sell_cross):
                continue

            if buy_cross:
                fill_price = min(order.price, buy_best_cross_price)
                pos_change = order.total_volume
            else:
                fill_price = max(order.price, sell_best_cross_price)
                pos_change = -order.total_volume

            trade = self._new_trade(order, fill_price, order.total_volume)
            self._update_pos(pos_change)

            order.traded_volume = order.total_volume
            order.status = OrderStatus.ALLTRADED
            del self._working_limit[order_id]

            self._notify_trade(trade)
            self._notify_order(order)

    # ------------------------------------------------------------------
    # Stop orders
    # ------------------------------------------------------------------

    def submit_stop_order(self, symbol: str, order_type: OrderType, price: float, volume: float) -> str:
        """Store a new WAITING stop order and notify the strategy."""
        direction, offset = order_type_to_direction_offset(order_type)
        self.stop_order_count += 1
        stop_order_id = f"{STOP_ORDER_PREFIX}{self.stop_order_count}"
        if stop_order_id in self.stop_orders:
            raise OrderBookError(f"Duplicate stop order ID {stop_order_id}")
        so = StopOrder(
            stop_order_id=stop_order_id,
            symbol=symbol,
            direction=direction,
            offset=offset,
            price=round_to_price_tick(price, self.price_tick),
            volume=volume,
            order_time=self.dt,
        )
        self.stop_orders[stop_order_id] = so
        self._working_stop[stop_order_id] = None
        logger.debug("Stop order %s: %s %s %s @ %s", stop_order_id, direction.value, offset.value, volume, so.price)
        self._notify_stop_order(so)
        return stop_order_id

    def cancel_stop_order(self, stop_order_id: str) -> None:
        """Cancel a waiting stop order. Unknown or terminal IDs are ignored."""
        if stop_order_id not in self._working_stop:
            return
        so = self.stop_orders[stop_order_id]
        so.status = StopOrderStatus.CANCELLED
        del self._working_stop[stop_order_id]
        logger.debug("Stop order %s cancelled", stop_order_id)
        self._notify_stop_order(so)

    def cross_stop_orders(self, point: MarketPoint | None = None, stop_order_ids: list[str] | None = None) -> None:
        """Trigger stop orders (or the given subset) whose threshold the current point touched.

        No positive-price guard: stops trigger even in a locked market.
        """
        point = point or self.point
        if point is None:
            return
        if isinstance(point, Bar):
            buy_cross_price = point.high
            sell_cross_price = point.low
            best_cross_price = point.open
        else:
            buy_cross_price = point.last_price
            sell_cross_price = point.last_price
            best_cross_price = point.last_price

        for stop_order_id in list(self._working_stop) if stop_order_ids is None else stop_order_ids:
            if stop_order_id not in self._working_stop:
                continue
            so = self.stop_orders[stop_order_id]

            buy_cross = so.direction == Direction.LONG and so.price <= buy_cross_price
            sell_cross = so.direction == Direction.SHORT and so.price >= sell_cross_price
            if not (buy_cross or sell_cross):
                continue

            if buy_cross:
                fill_price = max(best_cross_price, so.price)
                pos_change = so.volume
            else:
                fill_price = min(best_cross_price, so.price)
                pos_change = -so.volume

            self.limit_order_count += 1
            order = LimitOrder(
                order_id=str(self.limit_order_count),
                symbol=so.symbol,
                direction=so.direction,
                offset=so.offset,
                price=so.price,
                total_volume=so.volume,
                traded_volume=so.volume,
                status=OrderStatus.ALLTRADED,
                order_time=self.dt,
            )
            self._store_limit_order(order)
            trade = self._new_trade(order, fill_price, so.volume)
            self._update_pos(pos_change)

            so.status = StopOrderStatus.TRIGGERED
            so.limit_order_id = order.order_id
            del self._working_stop[stop_order_id]

            self._notify_stop_order(so)
            self._notify_order(order)
            self._notify_trade(trade)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _store_limit_order(self, order: LimitOrder) -> None:
        if order.order_id in self.limit_orders:
            raise OrderBookError(f"Duplicate order ID {order.order_id}")
        self.limit_orders[order.order_id] = order

    def _new_trade(self, order: LimitOrder, price: float, volume: float) -> Trade:
        self.trade_count += 1
        trade_id = str(self.trade_count)
        if trade_id in self.trades:
            raise OrderBookError(f"Duplicate trade ID {trade_id}")
        if self.dt is None:
            raise OrderBookError("Cannot fill before any market point was set")
        trade = Trade(
            trade_id=trade_id,
            order_id=order.order_id,
            symbol=order.symbol,
            direction=order.direction,
            offset=order.offset,
            price=price,
            volume=volume,
            datetime=self.dt,
        )
        self.trades[trade_id] = trade
        logger.debug("Trade %s: order %s %s %s @ %s", trade_id, order.order_id, trade.direction.value, volume, price)
        return trade

    def _update_pos(self, change: float) -> None:
        if self.strategy is not None:
            self.strategy.pos += change

    def _emit(self, event_type: str, payload: object) -> None:
        if self._event_callback is not None:
            self._event_callback(event_type, payload)

    def _notify_order(self, order: LimitOrder) -> None:
        self._emit("order", order)
        if self.strategy is not None:
            self.strategy.on_order(order)

    def _notify_stop_order(self, so: StopOrder) -> None:
        self._emit("stop_order", so)
        if self.strategy is not None:
            self.strategy.on_stop_order(so)

    def _notify_trade(self, trade: Trade) -> None:
        self._emit("trade", trade)
        if self.strategy is not None:
            self.strategy.on_trade(trade)


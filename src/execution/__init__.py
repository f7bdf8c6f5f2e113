"""
Simulated execution: order book with limit/stop crossing against market points.
Single writer (the replay loop). No live routing.
"""

from execution.order_book import OrderBook, OrderBookError, round_to_price_tick

__all__ = ["OrderBook", "OrderBookError", "round_to_price_tick"]

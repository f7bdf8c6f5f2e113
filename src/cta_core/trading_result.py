"""
Trade result generator: one closed match -> turnover, commission, slippage, pnl.
"""

from datetime import datetime

from cta_core.contracts import TradingResult


def generate_trading_result(
    entry_price: float,
    entry_dt: datetime,
    exit_price: float,
    exit_dt: datetime,
    volume: float,
    rate: float,
    slippage: float,
    size: float,
) -> TradingResult:
    """Compute the financial result of closing `volume` between entry and exit.

    turnover   = (entry + exit) * size * |volume|
    commission = turnover * rate
    slippage   = slippage * 2 * size * |volume|   (charged on both legs)
    pnl        = (exit - entry) * volume * size - commission - slippage
    """
    qty = abs(volume)
    turnover = (entry_price + exit_price) * size * qty
    commission = turnover * rate
    slippage_cost = slippage * 2 * size * qty
    pnl = (exit_price - entry_price) * volume * size - commission - slippage_cost
    return TradingResult(
        entry_price=entry_price,
        entry_dt=entry_dt,
        exit_price=exit_price,
        exit_dt=exit_dt,
        volume=volume,
        turnover=turnover,
        commission=commission,
        slippage=slippage_cost,
        pnl=pnl,
    )

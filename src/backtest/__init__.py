"""
Backtest engine: load history, replay it through the order book and the
strategy, compute trade and daily results.
"""

from backtest.runner import BacktestError, BacktestingEngine

__all__ = ["BacktestError", "BacktestingEngine"]

"""
EMA crossover demo strategy.

Fast and slow exponential moving averages of the bar close. A golden cross
goes long one lot, a death cross goes short one lot; an opposite position is
closed first. Orders are placed at the bar close.
"""

from __future__ import annotations

import logging
from typing import Any

from cta_core.contracts import Bar
from cta_core.strategy import Strategy, StrategyEngine

logger = logging.getLogger("cta.strategy.ema_cross")


class EmaCrossStrategy(Strategy):
    name = "ema_cross"
    parameters = ("fast_k", "slow_k", "fixed_size")

    def __init__(self, engine: StrategyEngine, setting: dict[str, Any] | None = None) -> None:
        self.fast_k = 0.9
        self.slow_k = 0.1
        self.fixed_size = 1
        super().__init__(engine, setting)

        self.fast_ma: list[float] = []
        self.fast_ma0 = 0.0
        self.fast_ma1 = 0.0
        self.slow_ma: list[float] = []
        self.slow_ma0 = 0.0
        self.slow_ma1 = 0.0

    def on_init(self) -> None:
        bars = self.load_bar()
        logger.info("Warming up on %d bars", len(bars))
        for bar in bars:
            self.on_bar(bar)

    def on_bar(self, bar: Bar) -> None:
        if not self.fast_ma0:
            self.fast_ma0 = bar.close
        else:
            self.fast_ma1 = self.fast_ma0
            self.fast_ma0 = bar.close * self.fast_k + self.fast_ma0 * (1 - self.fast_k)
        self.fast_ma.append(self.fast_ma0)

        if not self.slow_ma0:
            self.slow_ma0 = bar.close
        else:
            self.slow_ma1 = self.slow_ma0
            self.slow_ma0 = bar.close * self.slow_k + self.slow_ma0 * (1 - self.slow_k)
        self.slow_ma.append(self.slow_ma0)

        cross_over = self.fast_ma0 > self.slow_ma0 and self.fast_ma1 < self.slow_ma1
        cross_below = self.fast_ma0 < self.slow_ma0 and self.fast_ma1 > self.slow_ma1

        if cross_over:
            if self.pos == 0:
                self.buy(bar.close, self.fixed_size)
            elif self.pos < 0:
                self.cover(bar.close, self.fixed_size)
                self.buy(bar.close, self.fixed_size)
        elif cross_below:
            if self.pos == 0:
                self.short(bar.close, self.fixed_size)
            elif self.pos > 0:
                self.sell(bar.close, self.fixed_size)
                self.short(bar.close, self.fixed_size)

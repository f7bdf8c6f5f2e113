"""
History loaders: the boundary the engine pulls market data through.

A loader returns one chronologically sorted series per call; the engine
asks for two windows (warm-up and replay).
"""

from datetime import datetime, timezone
from typing import Protocol, Sequence

from cta_core.contracts import Bar, EngineMode, MarketPoint, Tick

from data.bar_store import BarStore


def to_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class HistoryLoader(Protocol):
    """Protocol for history sources. Implement per storage backend."""

    def load_series(
        self,
        symbol: str,
        start: datetime,
        end: datetime | None,
        mode: EngineMode,
    ) -> list[MarketPoint]:
        """Points with start <= datetime < end (end=None: no upper bound), oldest first."""
        ...


class StoreHistoryLoader:
    """Reads bars or ticks from a BarStore."""

    def __init__(self, store: BarStore) -> None:
        self._store = store

    def load_series(
        self,
        symbol: str,
        start: datetime,
        end: datetime | None,
        mode: EngineMode,
    ) -> list[MarketPoint]:
        if EngineMode(mode) == EngineMode.TICK:
            return list(self._store.get_ticks(symbol, since=start, until=end, include_until=False))
        return list(self._store.get_bars(symbol, since=start, until=end, include_until=False))


class InMemoryHistoryLoader:
    """Serves a preloaded series; for tests and scripted runs."""

    def __init__(self, points: Sequence[MarketPoint]) -> None:
        self._points = sorted(points, key=lambda p: to_utc(p.datetime))

    def load_series(
        self,
        symbol: str,
        start: datetime,
        end: datetime | None,
        mode: EngineMode,
    ) -> list[MarketPoint]:
        kind = Tick if EngineMode(mode) == EngineMode.TICK else Bar
        start_utc = to_utc(start)
        end_utc = to_utc(end) if end is not None else None
        return [
            p
            for p in self._points
            if isinstance(p, kind)
            and p.symbol == symbol
            and to_utc(p.datetime) >= start_utc
            and (end_utc is None or to_utc(p.datetime) < end_utc)
        ]

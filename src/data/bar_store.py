"""
Persist and load bars and ticks (SQLite). Timestamps in UTC.
"""

import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Sequence

from cta_core.contracts import Bar, Tick


def _utc_ts(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _parse_ts(value: str) -> datetime:
    # SQLite has no native datetime; we store ISO strings
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _parse_day(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class BarStore:
    """SQLite-backed bar and tick storage. One file per path."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._path))

    def _init_schema(self) -> None:
        with self._conn() as c:
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS bars (
                    symbol TEXT NOT NULL,
                    ts_utc TEXT NOT NULL,
                    trading_day TEXT,
                    open REAL NOT NULL,
                    high REAL NOT NULL,
                    low REAL NOT NULL,
                    close REAL NOT NULL,
                    volume REAL NOT NULL,
                    PRIMARY KEY (symbol, ts_utc)
                )
                """
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS ticks (
                    symbol TEXT NOT NULL,
                    ts_utc TEXT NOT NULL,
                    trading_day TEXT,
                    last_price REAL NOT NULL,
                    ask_price_1 REAL NOT NULL,
                    bid_price_1 REAL NOT NULL,
                    volume REAL NOT NULL,
                    PRIMARY KEY (symbol, ts_utc)
                )
                """
            )

    # ------------------------------------------------------------------
    # Bars
    # ------------------------------------------------------------------

    def write_bars(self, bars: Sequence[Bar]) -> None:
        """Upsert bars (by symbol, ts_utc)."""
        with self._conn() as c:
            for b in bars:
                c.execute(
                    """
                    INSERT OR REPLACE INTO bars (symbol, ts_utc, trading_day, open, high, low, close, volume)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        b.symbol,
                        _utc_ts(b.datetime).isoformat(),
                        b.trading_day.isoformat() if b.trading_day else None,
                        b.open,
                        b.high,
                        b.low,
                        b.close,
                        b.volume,
                    ),
                )

    def get_bars(
        self,
        symbol: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
        include_until: bool = True,
    ) -> list[Bar]:
        """Return bars in ascending time order. All timestamps in UTC."""
        q = "SELECT ts_utc, trading_day, open, high, low, close, volume FROM bars WHERE symbol = ?"
        rows = self._select(q, symbol, since, until, limit, include_until)
        return [
            Bar(
                symbol=symbol,
                datetime=_parse_ts(ts_utc),
                open=o,
                high=h,
                low=l,
                close=c,
                volume=vol,
                trading_day=_parse_day(day),
            )
            for ts_utc, day, o, h, l, c, vol in rows
        ]

    def count_bars(self, symbol: str) -> int:
        """Return the total number of bars stored for a symbol."""
        return self._count("bars", symbol)

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def write_ticks(self, ticks: Sequence[Tick]) -> None:
        """Upsert ticks (by symbol, ts_utc)."""
        with self._conn() as c:
            for t in ticks:
                c.execute(
                    """
                    INSERT OR REPLACE INTO ticks (symbol, ts_utc, trading_day, last_price, ask_price_1, bid_price_1, volume)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        t.symbol,
                        _utc_ts(t.datetime).isoformat(),
                        t.trading_day.isoformat() if t.trading_day else None,
                        t.last_price,
                        t.ask_price_1,
                        t.bid_price_1,
                        t.volume,
                    ),
                )

    def get_ticks(
        self,
        symbol: str,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
        include_until: bool = True,
    ) -> list[Tick]:
        """Return ticks in ascending time order."""
        q = "SELECT ts_utc, trading_day, last_price, ask_price_1, bid_price_1, volume FROM ticks WHERE symbol = ?"
        rows = self._select(q, symbol, since, until, limit, include_until)
        return [
            Tick(
                symbol=symbol,
                datetime=_parse_ts(ts_utc),
                last_price=last,
                ask_price_1=ask,
                bid_price_1=bid,
                volume=vol,
                trading_day=_parse_day(day),
            )
            for ts_utc, day, last, ask, bid, vol in rows
        ]

    def count_ticks(self, symbol: str) -> int:
        return self._count("ticks", symbol)

    # ------------------------------------------------------------------

    def _select(
        self,
        q: str,
        symbol: str,
        since: datetime | None,
        until: datetime | None,
        limit: int | None,
        include_until: bool,
    ) -> list:
        params: list = [symbol]
        if since is not None:
            q += " AND ts_utc >= ?"
            params.append(_utc_ts(since).isoformat())
        if until is not None:
            q += " AND ts_utc <= ?" if include_until else " AND ts_utc < ?"
            params.append(_utc_ts(until).isoformat())
        q += " ORDER BY ts_utc ASC"
        if limit is not None:
            q += " LIMIT ?"
            params.append(limit)
        with self._conn() as c:
            return c.execute(q, params).fetchall()

    def _count(self, table: str, symbol: str) -> int:
        with self._conn() as c:
            row = c.execute(f"SELECT COUNT(*) FROM {table} WHERE symbol = ?", (symbol,)).fetchone()
        return row[0] if row else 0

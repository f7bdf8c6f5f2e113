"""Integration tests for the data pipeline: bar/tick store, history loaders, CSV import."""

from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from cta_core.contracts import Bar, EngineMode, Tick
from data.bar_store import BarStore
from data.csv_import import CsvFormatError, read_bars_csv, read_ticks_csv
from data.loader import InMemoryHistoryLoader, StoreHistoryLoader


def _ts(y: int, m: int, d: int, h: int = 15) -> datetime:
    return datetime(y, m, d, h, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path: Path) -> BarStore:
    return BarStore(tmp_path / "nested" / "bars.db")


class TestBarStore:
    def test_write_and_get(self, store: BarStore, daily_bars: list) -> None:
        store.write_bars(daily_bars)
        out = store.get_bars("IF")
        assert out == daily_bars
        assert store.count_bars("IF") == 6
        assert store.count_bars("RB") == 0

    def test_upsert_by_timestamp(self, store: BarStore, daily_bars: list) -> None:
        store.write_bars(daily_bars)
        replaced = Bar("IF", daily_bars[0].datetime, 1.0, 2.0, 0.5, 1.5)
        store.write_bars([replaced])
        assert store.count_bars("IF") == 6
        assert store.get_bars("IF")[0].close == 1.5

    def test_range_and_limit(self, store: BarStore, daily_bars: list) -> None:
        store.write_bars(daily_bars)
        window = store.get_bars("IF", since=_ts(2024, 1, 2), until=_ts(2024, 1, 4), include_until=False)
        assert [b.datetime.day for b in window] == [2, 3]
        assert len(store.get_bars("IF", limit=2)) == 2

    def test_trading_day_round_trip(self, store: BarStore) -> None:
        bar = Bar("IF", _ts(2024, 1, 2, 21), 1, 2, 0.5, 1.5, trading_day=date(2024, 1, 3))
        store.write_bars([bar])
        assert store.get_bars("IF")[0].trading_day == date(2024, 1, 3)

    def test_naive_timestamps_stored_as_utc(self, store: BarStore) -> None:
        store.write_bars([Bar("IF", datetime(2024, 1, 2, 9, 30), 1, 2, 0.5, 1.5)])
        assert store.get_bars("IF")[0].datetime == datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)

    def test_ticks(self, store: BarStore, ticks: list) -> None:
        store.write_ticks(ticks)
        assert store.get_ticks("IF") == ticks
        assert store.count_ticks("IF") == 4
        assert store.count_bars("IF") == 0


class TestLoaders:
    def test_store_loader_half_open_window(self, store: BarStore, daily_bars: list) -> None:
        store.write_bars(daily_bars)
        loader = StoreHistoryLoader(store)
        out = loader.load_series("IF", datetime(2024, 1, 2), datetime(2024, 1, 4, 15), EngineMode.BAR)
        assert [b.datetime.day for b in out] == [2, 3]

    def test_store_loader_open_end(self, store: BarStore, daily_bars: list) -> None:
        store.write_bars(daily_bars)
        out = StoreHistoryLoader(store).load_series("IF", datetime(2024, 1, 5), None, EngineMode.BAR)
        assert [b.datetime.day for b in out] == [5, 6]

    def test_store_loader_tick_mode(self, store: BarStore, daily_bars: list, ticks: list) -> None:
        store.write_bars(daily_bars)
        store.write_ticks(ticks)
        out = StoreHistoryLoader(store).load_series("IF", datetime(2024, 1, 2), None, "tick")
        assert all(isinstance(t, Tick) for t in out)
        assert len(out) == 4

    def test_in_memory_sorts_and_filters(self, daily_bars: list, ticks: list) -> None:
        loader = InMemoryHistoryLoader(list(reversed(daily_bars)) + ticks)
        bars = loader.load_series("IF", datetime(2024, 1, 1), None, EngineMode.BAR)
        assert bars == daily_bars
        assert loader.load_series("IF", datetime(2024, 1, 1), None, EngineMode.TICK) == ticks
        assert loader.load_series("RB", datetime(2024, 1, 1), None, EngineMode.BAR) == []


class TestCsvImport:
    def test_read_bars(self, tmp_path: Path) -> None:
        path = tmp_path / "bars.csv"
        path.write_text(
            "datetime,open,high,low,close,volume,trading_day\n"
            "2024-01-03T15:00:00,102,104,101,103,10,\n"
            "2024-01-02T15:00:00,101,103,100,102,,2024-01-02\n"
        )
        bars = read_bars_csv(path, "IF")
        assert [b.close for b in bars] == [102.0, 103.0]
        assert bars[0].trading_day == date(2024, 1, 2)
        assert bars[0].volume == 0
        assert bars[1].trading_day is None
        assert bars[0].datetime.tzinfo is not None

    def test_read_ticks(self, tmp_path: Path) -> None:
        path = tmp_path / "ticks.csv"
        path.write_text(
            "datetime,last_price,ask_price_1,bid_price_1\n"
            "2024-01-02T09:30:00Z,10.1,10.2,10.0\n"
        )
        (tick,) = read_ticks_csv(path, "IF")
        assert tick.ask_price_1 == 10.2
        assert tick.datetime == datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc)

    def test_missing_columns(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        path.write_text("datetime,open,close\n2024-01-02,1,2\n")
        with pytest.raises(CsvFormatError, match="high, low"):
            read_bars_csv(path, "IF")

    def test_bad_value_reports_line(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        path.write_text("datetime,open,high,low,close\n2024-01-02,1,2,0.5,abc\n")
        with pytest.raises(CsvFormatError, match=":2:"):
            read_bars_csv(path, "IF")

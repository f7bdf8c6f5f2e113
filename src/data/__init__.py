"""
Data pipeline: import CSV history, persist bars/ticks, serve replay windows.

Depends on cta_core.contracts for Bar/Tick; no dependency from cta_core back to data.
"""

from data.bar_store import BarStore
from data.csv_import import CsvFormatError, read_bars_csv, read_ticks_csv
from data.loader import HistoryLoader, InMemoryHistoryLoader, StoreHistoryLoader

__all__ = [
    "BarStore",
    "CsvFormatError",
    "HistoryLoader",
    "InMemoryHistoryLoader",
    "StoreHistoryLoader",
    "read_bars_csv",
    "read_ticks_csv",
]

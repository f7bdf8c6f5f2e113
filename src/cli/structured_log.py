"""
Structured JSON event logger for backtest runs.

Emits one JSON object per line to stderr. Events are designed to be
parsed by log aggregators (Grafana Loki, CloudWatch, ELK).

Optional webhook: when configured, alert events (run_complete, no_trades,
error) are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("cta.events")


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        symbol: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._symbol = symbol
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr
        self._ALERT_EVENTS = {
            "run_complete",
            "no_trades",
            "error",
        }

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "symbol": self._symbol,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record, default=str) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in self._ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            data = json.dumps(record, default=str).encode("utf-8")
            req = urllib.request.Request(
                self._webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            urllib.request.urlopen(req, timeout=5)
        except Exception as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def run_start(self, strategy: str, mode: str, start: str, end: str = "") -> dict:
        return self._emit("run_start", strategy=strategy, mode=mode, start=start, end=end)

    def data_loaded(self, warmup_points: int, replay_points: int) -> dict:
        return self._emit(
            "data_loaded",
            warmup_points=warmup_points,
            replay_points=replay_points,
        )

    def trade_filled(
        self,
        trade_id: str,
        direction: str,
        offset: str,
        price: float,
        volume: float,
    ) -> dict:
        return self._emit(
            "trade_filled",
            trade_id=trade_id,
            direction=direction,
            offset=offset,
            price=price,
            volume=volume,
        )

    def run_complete(self, trades: int, results: int, net_pnl: float, max_drawdown: float) -> dict:
        return self._emit(
            "run_complete",
            trades=trades,
            results=results,
            net_pnl=round(net_pnl, 4),
            max_drawdown=round(max_drawdown, 4),
        )

    def no_trades(self, replay_points: int) -> dict:
        return self._emit("no_trades", replay_points=replay_points)

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)

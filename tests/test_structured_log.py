"""Tests for structured JSON event logger."""

import io
import json

import pytest

from cli.structured_log import StructuredEventLogger


@pytest.fixture
def buf() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(buf: io.StringIO) -> StructuredEventLogger:
    return StructuredEventLogger("IF", enabled=True, stream=buf)


class TestEmit:
    """Basic event emission and format."""

    def test_run_start_json(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.run_start(strategy="ema_cross", mode="bar", start="2017-05-10T00:00:00")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "run_start"
        assert record["symbol"] == "IF"
        assert record["strategy"] == "ema_cross"
        assert record["end"] == ""
        assert "ts" in record

    def test_data_loaded(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.data_loaded(warmup_points=5, replay_points=240)
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "data_loaded"
        assert record["warmup_points"] == 5
        assert record["replay_points"] == 240

    def test_trade_filled(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.trade_filled(trade_id="3", direction="LONG", offset="OPEN", price=3512.0, volume=1)
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "trade_filled"
        assert record["trade_id"] == "3"
        assert record["price"] == 3512.0

    def test_run_complete_rounds(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.run_complete(trades=4, results=2, net_pnl=44.47512345, max_drawdown=-10.123456)
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "run_complete"
        assert record["net_pnl"] == 44.4751
        assert record["max_drawdown"] == -10.1235

    def test_no_trades(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.no_trades(replay_points=12)
        assert json.loads(buf.getvalue().strip())["replay_points"] == 12

    def test_error_event(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.error(message="backtest failed", detail="No strategy")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "error"
        assert record["detail"] == "No strategy"


class TestDisabled:
    """When structured_logs=False, nothing is written to stream."""

    def test_no_output_when_disabled(self, buf: io.StringIO) -> None:
        logger = StructuredEventLogger("IF", enabled=False, stream=buf)
        logger.run_start(strategy="x", mode="bar", start="t")
        logger.no_trades(replay_points=0)
        assert buf.getvalue() == ""


class TestWebhook:
    def test_alert_events_posted(self, buf: io.StringIO, monkeypatch: pytest.MonkeyPatch) -> None:
        posted = []
        monkeypatch.setattr("urllib.request.urlopen", lambda req, timeout: posted.append(req))
        logger = StructuredEventLogger("IF", stream=buf, webhook_url="http://hook.local/x")
        logger.data_loaded(1, 2)
        logger.run_complete(trades=1, results=1, net_pnl=1.0, max_drawdown=0.0)
        assert len(posted) == 1
        assert json.loads(posted[0].data)["event"] == "run_complete"

    def test_webhook_failure_is_logged(self, buf: io.StringIO, monkeypatch: pytest.MonkeyPatch) -> None:
        def boom(req, timeout):
            raise OSError("down")

        monkeypatch.setattr("urllib.request.urlopen", boom)
        logger = StructuredEventLogger("IF", stream=buf, webhook_url="http://hook.local/x")
        record = logger.error(message="x")
        assert record["event"] == "error"


class TestMultipleEvents:
    """Multiple events produce multiple JSON lines."""

    def test_newline_delimited(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.run_start(strategy="ema_cross", mode="bar", start="t1")
        logger.no_trades(replay_points=0)
        lines = buf.getvalue().strip().split("\n")
        assert len(lines) == 2
        assert json.loads(lines[0])["event"] == "run_start"
        assert json.loads(lines[1])["event"] == "no_trades"

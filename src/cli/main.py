"""
CLI entry point: cta ingest | backtest | health.

Every command loads config from --config (default config.yaml),
prints a human-readable report, and logs to the journal.
"""

import logging
import sys

import click
from dotenv import load_dotenv

from config import ConfigError, load_config

load_dotenv()

logger = logging.getLogger("cta")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _load(ctx: click.Context):
    try:
        return load_config(ctx.obj["config_path"])
    except (ConfigError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """cta-backtest: deterministic bar/tick replay for CTA strategies."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- cta ingest ----------


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--mode", type=click.Choice(["bar", "tick"]), default=None, help="Data kind in the file. Defaults to config mode.")
@click.pass_context
def ingest(ctx: click.Context, csv_path: str, mode: str | None) -> None:
    """Import bars or ticks from a CSV file into the local store."""
    cfg = _load(ctx)
    from data.bar_store import BarStore
    from data.csv_import import CsvFormatError, read_bars_csv, read_ticks_csv

    store = BarStore(cfg.data.bar_store_path)
    kind = mode or cfg.mode.value

    try:
        if kind == "tick":
            points = read_ticks_csv(csv_path, cfg.symbol)
            store.write_ticks(points)
            total = store.count_ticks(cfg.symbol)
        else:
            points = read_bars_csv(csv_path, cfg.symbol)
            store.write_bars(points)
            total = store.count_bars(cfg.symbol)
    except CsvFormatError as exc:
        raise click.ClickException(str(exc)) from exc

    if not points:
        click.echo(f"No {kind}s found in {csv_path}.")
        return
    click.echo(f"Stored {len(points)} {kind}s for {cfg.symbol} in {cfg.data.bar_store_path}")
    click.echo(f"  Range: {points[0].datetime.isoformat()} -> {points[-1].datetime.isoformat()}")
    click.echo(f"  Total {kind}s in store: {total}")


# ---------- cta backtest ----------


@cli.command()
@click.option("--strategy", "strategy_name", default=None, help="Registered strategy name. Defaults to config value.")
@click.option("--daily", is_flag=True, default=False, help="Also show daily results and statistics.")
@click.pass_context
def backtest(ctx: click.Context, strategy_name: str | None, daily: bool) -> None:
    """Replay stored history through a strategy and report results."""
    cfg = _load(ctx)
    from backtest import BacktestError, BacktestingEngine
    from cli.output import format_backtest_summary, format_daily_results, format_daily_statistics
    from cli.structured_log import StructuredEventLogger
    from cta_core.contracts import Trade
    from data.bar_store import BarStore
    from data.loader import StoreHistoryLoader
    from journal.writer import JournalWriter
    from strategies import get_strategy

    name = strategy_name or cfg.strategy.name
    try:
        strategy_cls = get_strategy(name)
    except KeyError as exc:
        raise click.ClickException(exc.args[0]) from exc
    if cfg.backtest.start_date is None:
        raise click.ClickException("backtest.start_date is not set in config")

    events = StructuredEventLogger(
        cfg.symbol,
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)

    def on_event(event_type: str, payload: object) -> None:
        journal.record(event_type, payload)
        if event_type == "trade" and isinstance(payload, Trade):
            events.trade_filled(
                payload.trade_id,
                payload.direction.value,
                payload.offset.value,
                payload.price,
                payload.volume,
            )

    engine = BacktestingEngine.from_config(cfg, event_callback=on_event)
    end = cfg.backtest.end_date.isoformat() if cfg.backtest.end_date else ""
    journal.run_start(cfg.symbol, name, cfg.mode.value, cfg.backtest.start_date.isoformat(), end)
    events.run_start(name, cfg.mode.value, cfg.backtest.start_date.isoformat(), end)

    try:
        engine.load_history_data(StoreHistoryLoader(BarStore(cfg.data.bar_store_path)))
        events.data_loaded(len(engine.init_data), len(engine.history_data))
        if not engine.history_data:
            click.echo(f"No {cfg.mode.value}s in store for the replay window. Run 'cta ingest' first.")
            return

        engine.init_strategy(strategy_cls, cfg.strategy.setting)
        click.echo(f"Running backtest: {cfg.symbol} {name}, {len(engine.history_data)} {cfg.mode.value}s ...")
        engine.run_backtesting()
        result = engine.calculate_backtesting_result()
    except BacktestError as exc:
        events.error("backtest failed", str(exc))
        raise click.ClickException(str(exc)) from exc

    click.echo(format_backtest_summary(result, cfg.symbol))
    if result is None:
        events.no_trades(len(engine.history_data))
    else:
        events.run_complete(len(engine.trades), result.total_result, result.capital, result.max_drawdown)

    if daily:
        daily_results = engine.calculate_daily_result()
        _, stats = engine.calculate_daily_statistics(daily_results)
        click.echo(format_daily_results(daily_results))
        click.echo(format_daily_statistics(stats))


# ---------- cta health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: config, store access, stored history.

    Exit code 0 = healthy, 1 = unhealthy.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded ({cfg.symbol} {cfg.mode.value})"))
    except (ConfigError, FileNotFoundError) as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        from strategies import get_strategy
        get_strategy(cfg.strategy.name)
        checks.append(("strategy", True, cfg.strategy.name))
    except KeyError as e:
        checks.append(("strategy", False, e.args[0]))

    try:
        from data.bar_store import BarStore
        store = BarStore(cfg.data.bar_store_path)
        if cfg.mode.value == "tick":
            count = store.count_ticks(cfg.symbol)
        else:
            count = store.count_bars(cfg.symbol)
        if count > 0:
            checks.append(("history", True, f"{count} {cfg.mode.value}s for {cfg.symbol}"))
        else:
            checks.append(("history", False, f"no {cfg.mode.value}s for {cfg.symbol}"))
    except Exception as e:
        checks.append(("history", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()

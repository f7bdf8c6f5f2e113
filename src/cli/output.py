"""
Human-readable backtest output for the terminal.

Every CLI command uses these formatters. Journal receives the same data.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cta_core.contracts import DailyResult
    from cta_core.result_calculator import BacktestResult


def _fmt_time(ts) -> str:
    return ts.isoformat() if ts is not None else "-"


def format_backtest_summary(result: BacktestResult | None, symbol: str = "") -> str:
    """Format the FIFO-paired trade summary."""
    header = f"=== Backtest: {symbol} ===" if symbol else "=== Backtest ==="
    if result is None:
        return "\n".join([header, "No trades; nothing to report.", "==="])

    lines = [
        header,
        f"First trade  : {_fmt_time(result.first_trade_time)}",
        f"Last trade   : {_fmt_time(result.last_trade_time)}",
        f"Results      : {result.total_result} (W:{result.winning_result} / L:{result.losing_result})",
        f"Net P&L      : {result.capital:,.2f}",
        f"Max drawdown : {result.max_drawdown:,.2f}",
        f"Avg P&L      : {result.average_pnl:,.2f}",
        f"Avg slippage : {result.average_slippage:,.2f}",
        f"Avg commiss. : {result.average_commission:,.2f}",
        f"Win rate     : {result.winning_rate:.2f}%",
        f"Avg win      : {result.average_winning:,.2f}",
        f"Avg loss     : {result.average_losing:,.2f}",
        f"P/L ratio    : {result.profit_loss_ratio:.2f}",
    ]
    if result.results:
        lines.append("")
        for i, r in enumerate(result.results, 1):
            side = "LONG" if r.volume > 0 else "SHORT"
            lines.append(f"  #{i}: {side} {abs(r.volume):g} | entry {r.entry_price:.2f} @ {_fmt_time(r.entry_dt)}")
            lines.append(f"       exit  {r.exit_price:.2f} @ {_fmt_time(r.exit_dt)} | P&L {r.pnl:+.2f}")
    lines.append("===")
    return "\n".join(lines)


def format_daily_results(results: list[DailyResult]) -> str:
    """One line per trading day."""
    if not results:
        return "No daily results."
    lines = ["--- Daily results ---"]
    for r in results:
        lines.append(
            f"  {r.date.isoformat()}  close {r.close_price:>10.2f}  pos {r.open_position:g}->{r.close_position:g}"
            f"  trades {r.trade_count:>3d}  net {r.net_pnl:+,.2f}"
        )
    return "\n".join(lines)


def format_daily_statistics(stats: dict[str, Any]) -> str:
    if not stats:
        return "No daily statistics."
    lines = [
        "--- Daily statistics ---",
        f"Period        : {stats['start_date']} -> {stats['end_date']}",
        f"Days          : {stats['total_days']} (profit {stats['profit_days']} / loss {stats['loss_days']})",
        f"Capital       : {stats['capital']:,.2f}",
        f"End balance   : {stats['end_balance']:,.2f}",
        f"Total return  : {stats['total_return']:+.2f}%",
        f"Annual return : {stats['annualized_return']:+.2f}%",
        f"Max drawdown  : {stats['max_drawdown']:,.2f} ({stats['max_dd_percent']:.2f}%)",
        f"Net P&L       : {stats['total_net_pnl']:,.2f} (daily {stats['daily_net_pnl']:,.2f})",
        f"Commission    : {stats['total_commission']:,.2f}",
        f"Slippage      : {stats['total_slippage']:,.2f}",
        f"Turnover      : {stats['total_turnover']:,.2f}",
        f"Trades        : {stats['total_trade_count']}",
        f"Sharpe ratio  : {stats['sharpe_ratio']:.2f}",
    ]
    return "\n".join(lines)

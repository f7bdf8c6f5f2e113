"""
Backtest dashboard: equity curve, drawdown, daily P&L and recent trades per symbol.
Run from repo root: streamlit run dashboard/app.py
Or with data dir: CTA_DASHBOARD_DATA_DIR=/path/to/data streamlit run dashboard/app.py
"""

import streamlit as st

from data_reader import (
    _data_dir,
    daily_net_pnl,
    discover_symbols,
    equity_curve,
    read_journal_events,
    recent_trades,
)

st.set_page_config(page_title="CTA Backtest Dashboard", layout="wide")
st.title("CTA Backtest Dashboard")

data_dir = _data_dir()
symbols = discover_symbols(data_dir)

if not symbols:
    st.warning(f"No symbols found under: `{data_dir}`")
    st.caption("Expect subdirs like data/IF/, data/RB/ each with a journal.jsonl. Point journal.path there and run 'cta backtest'.")
    st.stop()

if st.button("Refresh"):
    st.rerun()

for symbol in symbols:
    equity = equity_curve(symbol)
    daily = daily_net_pnl(symbol)
    summaries = read_journal_events(symbol, "summary")
    summary = summaries[-1] if summaries else None

    with st.container():
        st.subheader(symbol)
        c1, c2, c3, c4 = st.columns(4)
        with c1:
            st.metric("Net P&L", f"{summary['capital']:,.2f}" if summary else "—")
        with c2:
            st.metric("Max drawdown", f"{summary['max_drawdown']:,.2f}" if summary else "—")
        with c3:
            st.metric("Win rate", f"{summary['winning_rate']:.1f}%" if summary else "—")
        with c4:
            st.metric("Round trips", summary["total_result"] if summary else "—")

        if equity.empty:
            st.caption("No closed round trips yet.")
        else:
            st.caption("Equity")
            st.line_chart(equity["capital"])
            st.caption("Drawdown")
            st.area_chart(equity["drawdown"])

        if not daily.empty:
            st.caption("Daily net P&L")
            st.bar_chart(daily)

        with st.expander("Recent trades", expanded=False):
            trades = recent_trades(symbol, limit=20)
            if not trades:
                st.caption("No trades yet.")
            else:
                for t in trades:
                    ts = (t.get("datetime") or "")[:19]
                    st.text(f"{ts}  #{t.get('trade_id')}  {t.get('direction')} {t.get('offset')}  {t.get('volume')} @ {t.get('price')}")

    st.divider()

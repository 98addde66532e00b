from __future__ import annotations

import json
import os
from pathlib import Path

import streamlit as st

from swingtrack.monitoring.summary import event_rows, state_summary
from swingtrack.runtime.state_store import state_from_dict


def _load_json(path: Path) -> dict | None:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return None


def _format_currency(value: float, currency: str) -> str:
    return f"{currency}{value:,.2f}"


def main() -> None:
    st.set_page_config(page_title="Swingtrack HUD", layout="wide")
    st.title("Swingtrack: Replay HUD")

    default_state_dir = os.getenv("SWINGTRACK_STATE_DIR", "runtime/states")
    currency = os.getenv("SWINGTRACK_CURRENCY", "₹")
    state_dir = Path(st.sidebar.text_input("State directory", value=default_state_dir))

    paths = sorted(state_dir.glob("*.json")) if state_dir.exists() else []
    if not paths:
        st.warning(f"No simulation states found in {state_dir}")
        return

    selected = st.sidebar.selectbox("Plan", paths, format_func=lambda path: path.stem)
    payload = _load_json(selected)
    if payload is None:
        st.error(f"Could not read {selected}")
        return

    state = state_from_dict(payload)
    summary = state_summary(state, payload.get("symbol", selected.stem))

    col_a, col_b, col_c, col_d = st.columns(4)
    col_a.metric("Status", summary["status"])
    col_b.metric("Total P&L", _format_currency(summary["total_pnl"], currency))
    col_c.metric("Return", f"{summary['total_return_pct']:.2f}%")
    col_d.metric("Peak Gain", f"{summary['peak_gain_pct']:.2f}%")

    col_e, col_f, col_g, col_h = st.columns(4)
    col_e.metric("Entry", "n/a" if summary["entry_price"] is None else f"{summary['entry_price']:.2f}")
    col_f.metric("Qty", f"{summary['qty_remaining']}/{summary['qty_total']}")
    col_g.metric("Trailing Stop", f"{summary['trailing_stop']:.2f}")
    col_h.metric("Realized", _format_currency(summary["realized_pnl"], currency))

    st.subheader("Events")
    st.dataframe(event_rows(state), use_container_width=True)

    if "plan" in payload:
        st.subheader("Plan")
        st.json(payload["plan"])


if __name__ == "__main__":
    main()

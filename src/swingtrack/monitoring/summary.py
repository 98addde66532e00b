"""Flat views of a simulation state for dashboards and reports."""

from __future__ import annotations

from typing import Any, Optional

from swingtrack.simulator.models import SimulationState


def state_summary(state: SimulationState, symbol: Optional[str] = None) -> dict[str, Any]:
    return {
        "symbol": symbol,
        "status": state.status.value,
        "entry_price": state.entry_price,
        "entry_date": state.entry_date.isoformat() if state.entry_date else None,
        "qty_total": state.qty_total,
        "qty_remaining": state.qty_remaining,
        "trailing_stop": state.trailing_stop,
        "realized_pnl": state.realized_pnl,
        "unrealized_pnl": state.unrealized_pnl,
        "total_pnl": state.total_pnl,
        "total_return_pct": state.total_return_pct,
        "peak_gain_pct": state.peak_gain_pct,
        "events": len(state.events),
    }


def event_rows(state: SimulationState) -> list[dict[str, Any]]:
    rows = []
    for event in state.events:
        rows.append(
            {
                "date": event.date.isoformat(),
                "type": event.type.value,
                "price": event.price,
                "qty": event.qty,
                "pnl": event.pnl,
                "quality": event.entry_quality.quality.value if event.entry_quality else "",
                "detail": event.detail,
            }
        )
    return rows

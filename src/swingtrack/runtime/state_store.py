"""Persist and load SimulationState snapshots."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Optional

from swingtrack.quality.models import EntryQuality
from swingtrack.simulator.models import EntryQualityTag, Event, EventType, SimulationState, SimulationStatus


def _parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    return date.fromisoformat(value[:10])


def _serialize_date(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def _serialize_event(event: Event) -> dict[str, Any]:
    payload = {
        "date": _serialize_date(event.date),
        "type": event.type.value,
        "price": event.price,
        "qty": event.qty,
        "pnl": event.pnl,
        "detail": event.detail,
        "entry_quality": None,
    }
    if event.entry_quality is not None:
        payload["entry_quality"] = {
            "quality": event.entry_quality.quality.value,
            "premium_pct": event.entry_quality.premium_pct,
        }
    return payload


def _parse_event(data: dict[str, Any]) -> Event:
    tag = data.get("entry_quality")
    return Event(
        date=_parse_date(data["date"]),
        type=EventType(data["type"]),
        price=float(data["price"]),
        qty=int(data.get("qty", 0)),
        pnl=float(data.get("pnl", 0.0)),
        detail=str(data.get("detail", "")),
        entry_quality=(
            EntryQualityTag(quality=EntryQuality(tag["quality"]), premium_pct=float(tag["premium_pct"]))
            if tag
            else None
        ),
    )


def state_to_dict(state: SimulationState) -> dict[str, Any]:
    payload = asdict(state)
    payload["status"] = state.status.value
    payload["entry_date"] = _serialize_date(state.entry_date)
    payload["signal_date"] = _serialize_date(state.signal_date)
    payload["events"] = [_serialize_event(event) for event in state.events]
    return payload


def state_from_dict(data: dict[str, Any]) -> SimulationState:
    def optional_float(key: str) -> Optional[float]:
        value = data.get(key)
        return None if value is None else float(value)

    return SimulationState(
        capital=float(data["capital"]),
        trailing_stop=float(data["trailing_stop"]),
        status=SimulationStatus(data.get("status", SimulationStatus.WAITING.value)),
        entry_price=optional_float("entry_price"),
        entry_date=_parse_date(data.get("entry_date")),
        qty_total=int(data.get("qty_total", 0)),
        qty_remaining=int(data.get("qty_remaining", 0)),
        qty_exited=int(data.get("qty_exited", 0)),
        realized_pnl=float(data.get("realized_pnl", 0.0)),
        unrealized_pnl=float(data.get("unrealized_pnl", 0.0)),
        total_pnl=float(data.get("total_pnl", 0.0)),
        total_return_pct=float(data.get("total_return_pct", 0.0)),
        peak_price=float(data.get("peak_price", 0.0)),
        peak_gain_pct=float(data.get("peak_gain_pct", 0.0)),
        signal_date=_parse_date(data.get("signal_date")),
        signal_close=optional_float("signal_close"),
        planned_qty=int(data.get("planned_qty", 0)),
        t2_booked=bool(data.get("t2_booked", False)),
        events=[_parse_event(item) for item in data.get("events", [])],
    )


def load_simulation_state(path: str | Path) -> SimulationState:
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    return state_from_dict(data)


def save_simulation_state(path: str | Path, state: SimulationState, extra: Optional[dict] = None) -> None:
    payload = state_to_dict(state)
    if extra:
        payload.update(extra)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

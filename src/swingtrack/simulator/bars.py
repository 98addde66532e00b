"""Daily bar records from JSON."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Mapping

from swingtrack.errors import DataGapError
from swingtrack.simulator.models import Bar


def _parse_day(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def bar_from_record(record: Mapping[str, Any]) -> Bar:
    try:
        return Bar(
            date=_parse_day(record["date"]),
            open=float(record["open"]),
            high=float(record["high"]),
            low=float(record["low"]),
            close=float(record["close"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DataGapError(f"Malformed bar record {dict(record)!r}: {exc}") from exc


def bars_from_records(records: Iterable[Mapping[str, Any]]) -> list[Bar]:
    return [bar_from_record(record) for record in records]


def load_bars(path: str | Path) -> list[Bar]:
    """Read ``[{"date", "open", "high", "low", "close"}, ...]`` or ``{"bars": [...]}``."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("bars", [])
    return bars_from_records(data)


def bar_to_record(bar: Bar) -> dict[str, Any]:
    return {"date": bar.date.isoformat(), "open": bar.open, "high": bar.high, "low": bar.low, "close": bar.close}

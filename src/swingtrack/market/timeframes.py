"""Timeframe parsing and candle freshness."""

from __future__ import annotations

from datetime import datetime, timedelta


def timeframe_minutes(tf: str) -> int:
    """Convert a timeframe label such as '15m', '1h' or '1d' to minutes."""
    tf = tf.strip().lower()
    if tf.endswith("m") and tf[:-1].isdigit():
        return int(tf[:-1])
    if tf.endswith("h") and tf[:-1].isdigit():
        return int(tf[:-1]) * 60
    if tf.endswith("d") and tf[:-1].isdigit():
        return int(tf[:-1]) * 60 * 24
    raise ValueError(f"Unsupported timeframe: {tf}")


def timeframe_delta(tf: str) -> timedelta:
    return timedelta(minutes=timeframe_minutes(tf))


def is_stale(candle_time: datetime, now: datetime, timeframe: str, multiplier: float = 2.0) -> bool:
    """A candle is stale once it is older than ``multiplier`` timeframes."""
    if candle_time.tzinfo is None or now.tzinfo is None:
        raise ValueError("candle_time and now must be timezone-aware")
    return now - candle_time > timeframe_delta(timeframe) * multiplier

"""Daily tracking inputs and outputs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from swingtrack.errors import ConfigurationError


class TrackingStatus(str, Enum):
    WATCHING = "WATCHING"
    APPROACHING = "APPROACHING"
    ENTRY_ZONE = "ENTRY_ZONE"
    RETEST_ZONE = "RETEST_ZONE"
    ABOVE_ENTRY = "ABOVE_ENTRY"
    TARGET1_HIT = "TARGET1_HIT"
    TARGET2_HIT = "TARGET2_HIT"
    TARGET3_HIT = "TARGET3_HIT"
    STOPPED_OUT = "STOPPED_OUT"


class TrackingFlag(str, Enum):
    RSI_EXIT = "RSI_EXIT"
    RSI_DANGER = "RSI_DANGER"
    VOLUME_SPIKE = "VOLUME_SPIKE"
    APPROACHING_ENTRY = "APPROACHING_ENTRY"
    GAP_DOWN = "GAP_DOWN"


@dataclass(frozen=True)
class TrackingLevels:
    entry: float
    stop: float
    target1: Optional[float] = None
    target2: Optional[float] = None
    target3: Optional[float] = None
    entry_range: Optional[tuple[float, float]] = None
    archetype: Optional[str] = None

    @property
    def entry_low(self) -> float:
        if self.entry_range is not None:
            return self.entry_range[0]
        return self.entry * 0.99

    @property
    def entry_high(self) -> float:
        if self.entry_range is not None:
            return self.entry_range[1]
        return self.entry * 1.01

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TrackingLevels":
        for key in ("entry", "stop"):
            if data.get(key) is None:
                raise ConfigurationError(f"Missing required level: {key}")

        def optional(key: str) -> Optional[float]:
            value = data.get(key)
            return None if value is None else float(value)

        entry_range = data.get("entry_range")
        if entry_range is not None:
            if len(entry_range) != 2:
                raise ConfigurationError("entry_range must have exactly two values")
            entry_range = (float(entry_range[0]), float(entry_range[1]))
        return cls(
            entry=float(data["entry"]),
            stop=float(data["stop"]),
            target1=optional("target1"),
            target2=optional("target2"),
            target3=optional("target3"),
            entry_range=entry_range,
            archetype=data.get("archetype"),
        )


@dataclass(frozen=True)
class DailySnapshot:
    ltp: float
    open: Optional[float] = None
    prev_close: Optional[float] = None
    daily_rsi: Optional[float] = None
    todays_volume: Optional[float] = None
    avg_volume_50d: Optional[float] = None


@dataclass(frozen=True)
class TrackingAlert:
    trigger: bool
    reason: Optional[str] = None

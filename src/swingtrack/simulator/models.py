"""Replay data structures: plans, bars, events and the position state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Mapping, Optional

from swingtrack.errors import ConfigurationError
from swingtrack.quality.models import EntryQuality


class EntryConfirmation(str, Enum):
    CLOSE_ABOVE = "close_above"
    TOUCH = "touch"


class WeekEndRule(str, Enum):
    EXIT_IF_NO_T1 = "exit_if_no_t1"
    HOLD_IF_ABOVE_ENTRY = "hold_if_above_entry"
    TRAIL_OR_EXIT = "trail_or_exit"


class SimulationStatus(str, Enum):
    WAITING = "WAITING"
    ENTRY_SIGNALED = "ENTRY_SIGNALED"
    ENTERED = "ENTERED"
    PARTIAL_EXIT = "PARTIAL_EXIT"
    FULL_EXIT = "FULL_EXIT"
    STOPPED_OUT = "STOPPED_OUT"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self in {SimulationStatus.FULL_EXIT, SimulationStatus.STOPPED_OUT, SimulationStatus.EXPIRED}

    @property
    def in_position(self) -> bool:
        return self in {SimulationStatus.ENTERED, SimulationStatus.PARTIAL_EXIT}


class EventType(str, Enum):
    ENTRY_SIGNAL = "ENTRY_SIGNAL"
    ENTRY = "ENTRY"
    ENTRY_SKIPPED = "ENTRY_SKIPPED"
    EXPIRED = "EXPIRED"
    T1_HIT = "T1_HIT"
    T2_HIT = "T2_HIT"
    T3_HIT = "T3_HIT"
    STOPPED_OUT = "STOPPED_OUT"
    TRAILING_STOP = "TRAILING_STOP"
    WEEK_END_EXIT = "WEEK_END_EXIT"
    WEEK_END_HOLD = "WEEK_END_HOLD"
    TRAIL_TIGHTENED = "TRAIL_TIGHTENED"


@dataclass(frozen=True)
class LevelPlan:
    entry: float
    stop: float
    target1: float
    target2: Optional[float] = None
    target3: Optional[float] = None
    entry_confirmation: EntryConfirmation = EntryConfirmation.CLOSE_ABOVE
    entry_window_days: int = 3
    max_hold_days: int = 5
    week_end_rule: WeekEndRule = WeekEndRule.EXIT_IF_NO_T1
    symbol: Optional[str] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        for name in ("entry", "stop", "target1"):
            value = getattr(self, name)
            if value is None or value <= 0:
                raise ConfigurationError(f"{name} must be a positive price, got {value!r}")
        if self.target3 is not None and self.target2 is None:
            raise ConfigurationError("target3 requires target2")

        levels = [("stop", self.stop), ("entry", self.entry), ("target1", self.target1)]
        if self.target2 is not None:
            levels.append(("target2", self.target2))
        if self.target3 is not None:
            levels.append(("target3", self.target3))
        for (low_name, low), (high_name, high) in zip(levels, levels[1:]):
            if not low < high:
                raise ConfigurationError(f"{low_name} ({low}) must be below {high_name} ({high})")

        if self.entry_window_days < 1:
            raise ConfigurationError("entry_window_days must be at least 1")
        if self.max_hold_days < 1:
            raise ConfigurationError("max_hold_days must be at least 1")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LevelPlan":
        def parse_enum(enum_cls, value: Any, key: str):
            try:
                return enum_cls(value)
            except ValueError as exc:
                raise ConfigurationError(f"Invalid {key}: {value}") from exc

        def optional_float(key: str) -> Optional[float]:
            value = data.get(key)
            if value is None:
                return None
            return float(value)

        for key in ("entry", "stop", "target1"):
            if data.get(key) is None:
                raise ConfigurationError(f"Missing required plan field: {key}")

        try:
            prices = {
                "entry": float(data["entry"]),
                "stop": float(data["stop"]),
                "target1": float(data["target1"]),
                "target2": optional_float("target2"),
                "target3": optional_float("target3"),
            }
            entry_window_days = int(data.get("entry_window_days", 3))
            max_hold_days = int(data.get("max_hold_days", 5))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid level plan: {exc}") from exc

        return cls(
            **prices,
            entry_confirmation=parse_enum(
                EntryConfirmation, data.get("entry_confirmation", "close_above"), "entry_confirmation"
            ),
            entry_window_days=entry_window_days,
            max_hold_days=max_hold_days,
            week_end_rule=parse_enum(WeekEndRule, data.get("week_end_rule", "exit_if_no_t1"), "week_end_rule"),
            symbol=data.get("symbol"),
        )

    def to_mapping(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "entry": self.entry,
            "stop": self.stop,
            "target1": self.target1,
            "target2": self.target2,
            "target3": self.target3,
            "entry_confirmation": self.entry_confirmation.value,
            "entry_window_days": self.entry_window_days,
            "max_hold_days": self.max_hold_days,
            "week_end_rule": self.week_end_rule.value,
        }


@dataclass(frozen=True)
class Bar:
    date: date
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class EntryQualityTag:
    quality: EntryQuality
    premium_pct: float


@dataclass(frozen=True)
class Event:
    date: date
    type: EventType
    price: float
    qty: int
    pnl: float
    detail: str
    entry_quality: Optional[EntryQualityTag] = None


@dataclass
class SimulationState:
    capital: float
    trailing_stop: float
    status: SimulationStatus = SimulationStatus.WAITING
    entry_price: Optional[float] = None
    entry_date: Optional[date] = None
    qty_total: int = 0
    qty_remaining: int = 0
    qty_exited: int = 0
    realized_pnl: float = 0.0
    unrealized_pnl: float = 0.0
    total_pnl: float = 0.0
    total_return_pct: float = 0.0
    peak_price: float = 0.0
    peak_gain_pct: float = 0.0
    signal_date: Optional[date] = None
    signal_close: Optional[float] = None
    planned_qty: int = 0
    t2_booked: bool = False
    events: list[Event] = field(default_factory=list)

    def events_of(self, event_type: EventType) -> list[Event]:
        return [event for event in self.events if event.type == event_type]

    @property
    def qty_balanced(self) -> bool:
        return self.qty_remaining + self.qty_exited == self.qty_total

"""Trigger, invalidation and warning definitions plus evaluation progress."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional
from zoneinfo import ZoneInfo

from swingtrack.errors import ConfigurationError
from swingtrack.market.time import DEFAULT_TIMEZONE
from swingtrack.market.timeframes import timeframe_minutes

DEFAULT_WITHIN_SESSIONS = 5
DEFAULT_EXPIRY_BARS = 20


class Operator(str, Enum):
    GE = ">="
    GT = ">"
    LE = "<="
    LT = "<"
    EQ = "=="
    NE = "!="
    CROSSES_ABOVE = "crosses_above"
    CROSSES_BELOW = "crosses_below"

    @property
    def is_cross(self) -> bool:
        return self in {Operator.CROSSES_ABOVE, Operator.CROSSES_BELOW}


class CheckAction(str, Enum):
    EXECUTE_ORDER = "execute_order"
    CONTINUE_MONITORING = "continue_monitoring"
    CANCEL_MONITORING = "cancel_monitoring"
    CANCEL_ENTRY = "cancel_entry"
    CLOSE_POSITION = "close_position"


def _parse_enum(enum_cls, value: Any, key: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid {key}: {value}") from exc


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in data or data[key] is None:
        raise ConfigurationError(f"Missing required key: {where}.{key}")
    return data[key]


@dataclass(frozen=True)
class Operand:
    ref: str
    value: Optional[float] = None
    offset: float = 0.0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | str | float | int) -> "Operand":
        # Bare numbers are literal values, bare strings are data references.
        if isinstance(data, (int, float)) and not isinstance(data, bool):
            return cls(ref="value", value=float(data))
        if isinstance(data, str):
            return cls(ref=data)
        ref = _require(data, "ref", "operand")
        value = data.get("value")
        try:
            return cls(
                ref=str(ref),
                value=None if value is None else float(value),
                offset=float(data.get("offset") or 0.0),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid operand {data!r}: {exc}") from exc

    def describe(self) -> str:
        if self.ref == "value":
            return str(self.value)
        if self.offset:
            return f"{self.ref}{self.offset:+g}"
        return self.ref


@dataclass(frozen=True)
class Condition:
    timeframe: str
    left: Operand
    op: Operator
    right: Operand

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], where: str = "condition") -> "Condition":
        timeframe = str(_require(data, "timeframe", where))
        try:
            timeframe_minutes(timeframe)
        except ValueError as exc:
            raise ConfigurationError(f"{where}: {exc}") from exc
        return cls(
            timeframe=timeframe,
            left=Operand.from_mapping(_require(data, "left", where)),
            op=_parse_enum(Operator, _require(data, "op", where), f"{where}.op"),
            right=Operand.from_mapping(_require(data, "right", where)),
        )

    @property
    def key(self) -> str:
        return f"{self.timeframe}:{self.left.describe()}:{self.op.value}:{self.right.describe()}"

    def describe(self) -> str:
        return f"{self.left.describe()} {self.op.value} {self.right.describe()}"


@dataclass(frozen=True)
class OccurrenceRequirement:
    count: int = 1
    consecutive: bool = True

    def __post_init__(self) -> None:
        if self.count < 1:
            raise ConfigurationError("occurrences.count must be at least 1")


@dataclass(frozen=True)
class TriggerSpec:
    id: str
    condition: Condition
    occurrences: OccurrenceRequirement = field(default_factory=OccurrenceRequirement)
    within_sessions: int = DEFAULT_WITHIN_SESSIONS
    expiry_bars: int = DEFAULT_EXPIRY_BARS

    def __post_init__(self) -> None:
        if self.within_sessions < 1:
            raise ConfigurationError(f"{self.id}: within_sessions must be at least 1")
        if self.expiry_bars < 1:
            raise ConfigurationError(f"{self.id}: expiry_bars must be at least 1")

    @property
    def timeframe(self) -> str:
        return self.condition.timeframe

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        within_sessions: int = DEFAULT_WITHIN_SESSIONS,
        expiry_bars: int = DEFAULT_EXPIRY_BARS,
    ) -> "TriggerSpec":
        trigger_id = str(_require(data, "id", "trigger"))
        occurrences = data.get("occurrences") or {}
        try:
            count = int(occurrences.get("count", 1))
            consecutive = bool(occurrences.get("consecutive", True))
            raw_sessions = data.get("within_sessions")
            raw_bars = data.get("expiry_bars")
            sessions = within_sessions if raw_sessions is None else int(raw_sessions)
            bars = expiry_bars if raw_bars is None else int(raw_bars)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid trigger {trigger_id}: {exc}") from exc

        return cls(
            id=trigger_id,
            condition=Condition.from_mapping(data, where=f"trigger {trigger_id}"),
            occurrences=OccurrenceRequirement(count=count, consecutive=consecutive),
            within_sessions=sessions,
            expiry_bars=bars,
        )


@dataclass(frozen=True)
class InvalidationSpec:
    condition: Condition
    action: CheckAction
    scope: str = "pre_entry"

    def __post_init__(self) -> None:
        if self.action not in {CheckAction.CANCEL_ENTRY, CheckAction.CLOSE_POSITION}:
            raise ConfigurationError(f"Invalidation action must be cancel_entry or close_position, got {self.action}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "InvalidationSpec":
        return cls(
            condition=Condition.from_mapping(data, where="invalidation"),
            action=_parse_enum(CheckAction, data.get("action", "cancel_entry"), "invalidation.action"),
            scope=str(data.get("scope", "pre_entry")),
        )


@dataclass(frozen=True)
class WarningSpec:
    code: str
    severity: str = "medium"
    text: str = ""
    mitigation: Optional[str] = None
    applies_when: tuple[Condition, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "WarningSpec":
        code = str(_require(data, "code", "warning"))
        return cls(
            code=code,
            severity=str(data.get("severity", "medium")),
            text=str(data.get("text", "")),
            mitigation=data.get("mitigation"),
            applies_when=tuple(
                Condition.from_mapping(item, where=f"warning {code}") for item in data.get("applies_when") or []
            ),
        )


@dataclass(frozen=True)
class StrategySpec:
    id: str
    triggers: tuple[TriggerSpec, ...] = ()
    invalidations: tuple[InvalidationSpec, ...] = ()
    warnings: tuple[WarningSpec, ...] = ()

    def __post_init__(self) -> None:
        ids = [trigger.id for trigger in self.triggers]
        if len(ids) != len(set(ids)):
            raise ConfigurationError(f"Strategy {self.id} has duplicate trigger ids")

    @property
    def max_sessions(self) -> int:
        if not self.triggers:
            return DEFAULT_WITHIN_SESSIONS
        return min(trigger.within_sessions for trigger in self.triggers)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        within_sessions: int = DEFAULT_WITHIN_SESSIONS,
        expiry_bars: int = DEFAULT_EXPIRY_BARS,
    ) -> "StrategySpec":
        return cls(
            id=str(_require(data, "id", "strategy")),
            triggers=tuple(
                TriggerSpec.from_mapping(item, within_sessions=within_sessions, expiry_bars=expiry_bars)
                for item in data.get("triggers") or []
            ),
            invalidations=tuple(InvalidationSpec.from_mapping(item) for item in data.get("invalidations") or []),
            warnings=tuple(WarningSpec.from_mapping(item) for item in data.get("warnings") or []),
        )


@dataclass(frozen=True)
class TimeframeSnapshot:
    """Latest closed candle for one timeframe plus its indicator values."""

    timestamp: datetime
    values: Mapping[str, float]

    def get(self, ref: str) -> Optional[float]:
        value = self.values.get(ref)
        if value is None:
            return None
        return float(value)


@dataclass(frozen=True)
class TriggerResult:
    trigger_id: str
    satisfied: bool
    expired: bool
    bars_checked: int = 0
    max_bars: int = 0
    condition_met: bool = False
    occurrences_satisfied: bool = False
    reason: Optional[str] = None


@dataclass(frozen=True)
class ActiveWarning:
    code: str
    severity: str
    text: str
    mitigation: Optional[str] = None


@dataclass(frozen=True)
class InvalidationHit:
    scope: str
    condition: str
    timeframe: str


@dataclass(frozen=True)
class CheckResult:
    action: CheckAction
    success: bool
    reason: Optional[str] = None
    triggers: tuple[TriggerResult, ...] = ()
    warnings: tuple[ActiveWarning, ...] = ()
    invalidation: Optional[InvalidationHit] = None
    expired_trigger: Optional[str] = None


@dataclass
class SessionCounter:
    plan_id: str
    strategy_id: str
    started_at: datetime
    last_session_date: date
    max_sessions: int = DEFAULT_WITHIN_SESSIONS
    current_session: int = 1
    is_active: bool = True
    expired_reason: Optional[str] = None


@dataclass
class BarCounter:
    trigger_id: str
    max_bars: int = DEFAULT_EXPIRY_BARS
    bars_checked: int = 0
    is_expired: bool = False
    last_bar_time: Optional[datetime] = None

    @property
    def progress_pct(self) -> float:
        return round(self.bars_checked / self.max_bars * 100, 1)


class ValueHistory:
    """Rolling per-bar values; a repeat timestamp overwrites the newest entry."""

    def __init__(self, maxlen: int = 2) -> None:
        self._entries: deque[tuple[datetime, Any]] = deque(maxlen=maxlen)

    def record(self, timestamp: datetime, value: Any) -> None:
        if self._entries and self._entries[-1][0] == timestamp:
            self._entries[-1] = (timestamp, value)
            return
        self._entries.append((timestamp, value))

    def values(self) -> list[Any]:
        return [value for _, value in self._entries]

    def previous(self) -> Optional[Any]:
        if len(self._entries) < 2:
            return None
        return self._entries[-2][1]

    def __len__(self) -> int:
        return len(self._entries)


def market_data_from_mapping(data: Mapping[str, Any], timezone: str = DEFAULT_TIMEZONE) -> dict[str, TimeframeSnapshot]:
    """Build per-timeframe snapshots from ``{tf: {"timestamp": ..., **values}}``.

    Naive timestamps are read in the trading-calendar timezone.
    """
    snapshots: dict[str, TimeframeSnapshot] = {}
    for timeframe, payload in data.items():
        raw = _require(payload, "timestamp", f"market_data.{timeframe}")
        timestamp = raw if isinstance(raw, datetime) else datetime.fromisoformat(str(raw))
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=ZoneInfo(timezone))
        values = {key: value for key, value in payload.items() if key != "timestamp"}
        snapshots[timeframe] = TimeframeSnapshot(timestamp=timestamp, values=values)
    return snapshots

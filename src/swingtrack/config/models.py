"""Configuration models for reproducible replays and monitoring runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional

from swingtrack.market.time import DEFAULT_TIMEZONE


@dataclass(frozen=True)
class SimulatorSection:
    capital: float = 100000.0
    currency: str = "₹"
    good_max_pct: float = 2.0
    extended_max_pct: float = 5.0
    check_data_gaps: bool = True


@dataclass(frozen=True)
class MarketSection:
    timezone: str = DEFAULT_TIMEZONE
    pre_open: time = time(9, 0)
    regular_open: time = time(9, 15)
    regular_close: time = time(15, 30)
    post_close: time = time(16, 0)
    holidays: tuple[date, ...] = ()


@dataclass(frozen=True)
class TriggerSection:
    stale_multiplier: float = 2.0
    within_sessions: int = 5
    expiry_bars: int = 20
    cleanup_max_age_days: int = 7


@dataclass(frozen=True)
class MonitoringSection:
    audit_log_path: str = "runtime/audit.log"
    log_level: str = "INFO"
    log_file: Optional[str] = None


@dataclass(frozen=True)
class RuntimeSection:
    state_dir: str = "runtime/states"
    max_workers: int = 4


@dataclass(frozen=True)
class AppConfig:
    name: str
    version: str
    run_id_prefix: str
    simulator: SimulatorSection = field(default_factory=SimulatorSection)
    market: MarketSection = field(default_factory=MarketSection)
    triggers: TriggerSection = field(default_factory=TriggerSection)
    monitoring: MonitoringSection = field(default_factory=MonitoringSection)
    runtime: RuntimeSection = field(default_factory=RuntimeSection)

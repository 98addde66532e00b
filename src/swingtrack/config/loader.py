"""Load and freeze configuration, level plan and strategy files."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from swingtrack.config.models import (
    AppConfig,
    MarketSection,
    MonitoringSection,
    RuntimeSection,
    SimulatorSection,
    TriggerSection,
)
from swingtrack.errors import ConfigurationError
from swingtrack.simulator.models import LevelPlan
from swingtrack.triggers.models import StrategySpec


def load_config(path: str | Path) -> AppConfig:
    path = Path(path)
    data = _load_yaml(path)

    name = str(_require(data, "name"))
    version = str(_require(data, "version"))

    return AppConfig(
        name=name,
        version=version,
        run_id_prefix=str(data.get("run_id_prefix", name)),
        simulator=_parse_simulator(data.get("simulator") or {}),
        market=_parse_market(data.get("market") or {}),
        triggers=_parse_triggers(data.get("triggers") or {}),
        monitoring=_parse_monitoring(data.get("monitoring") or {}),
        runtime=_parse_runtime(data.get("runtime") or {}),
    )


def load_level_plan(path: str | Path) -> LevelPlan:
    data = _load_yaml(Path(path))
    return LevelPlan.from_mapping(data.get("plan", data))


def load_strategy(path: str | Path, config: Optional[AppConfig] = None) -> StrategySpec:
    data = _load_yaml(Path(path))
    triggers = config.triggers if config is not None else TriggerSection()
    return StrategySpec.from_mapping(
        data.get("strategy", data),
        within_sessions=triggers.within_sessions,
        expiry_bars=triggers.expiry_bars,
    )


def compute_config_hash(path: str | Path) -> str:
    path = Path(path)
    content = path.read_bytes()
    return hashlib.sha256(content).hexdigest()


def freeze_config(path: str | Path, lock_path: Optional[str | Path] = None) -> Path:
    path = Path(path)
    config_hash = compute_config_hash(path)
    if lock_path is None:
        lock_path = path.with_suffix(path.suffix + ".lock.json")
    lock_path = Path(lock_path)

    payload = {
        "config_path": str(path),
        "config_hash": config_hash,
        "frozen_at_utc": datetime.now(timezone.utc).isoformat(),
    }
    lock_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return lock_path


def verify_config_lock(path: str | Path, lock_path: Optional[str | Path] = None) -> bool:
    path = Path(path)
    if lock_path is None:
        lock_path = path.with_suffix(path.suffix + ".lock.json")
    lock_path = Path(lock_path)
    if not lock_path.exists():
        return False
    payload = json.loads(lock_path.read_text(encoding="utf-8"))
    return payload.get("config_hash") == compute_config_hash(path)


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")
    return data


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ConfigurationError(f"Missing required config key: {key}")
    return data[key]


def _parse_time(value: Any, key: str) -> time:
    if isinstance(value, time):
        return value
    # YAML reads an unquoted 09:15 as sexagesimal minutes
    if isinstance(value, int):
        return time(value // 60, value % 60)
    try:
        return time.fromisoformat(str(value))
    except ValueError as exc:
        raise ConfigurationError(f"Invalid {key}: {value}") from exc


def _parse_date(value: Any, key: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ConfigurationError(f"Invalid {key}: {value}") from exc


def _parse_simulator(data: dict[str, Any]) -> SimulatorSection:
    section = SimulatorSection(
        capital=float(data.get("capital", 100000.0)),
        currency=str(data.get("currency", "₹")),
        good_max_pct=float(data.get("good_max_pct", 2.0)),
        extended_max_pct=float(data.get("extended_max_pct", 5.0)),
        check_data_gaps=bool(data.get("check_data_gaps", True)),
    )
    if section.capital <= 0:
        raise ConfigurationError("simulator.capital must be positive")
    if not 0 <= section.good_max_pct <= section.extended_max_pct:
        raise ConfigurationError("simulator thresholds must satisfy 0 <= good_max_pct <= extended_max_pct")
    return section


def _parse_market(data: dict[str, Any]) -> MarketSection:
    defaults = MarketSection()
    return MarketSection(
        timezone=str(data.get("timezone", defaults.timezone)),
        pre_open=_parse_time(data.get("pre_open", defaults.pre_open), "market.pre_open"),
        regular_open=_parse_time(data.get("regular_open", defaults.regular_open), "market.regular_open"),
        regular_close=_parse_time(data.get("regular_close", defaults.regular_close), "market.regular_close"),
        post_close=_parse_time(data.get("post_close", defaults.post_close), "market.post_close"),
        holidays=tuple(_parse_date(item, "market.holidays") for item in data.get("holidays") or []),
    )


def _parse_triggers(data: dict[str, Any]) -> TriggerSection:
    section = TriggerSection(
        stale_multiplier=float(data.get("stale_multiplier", 2.0)),
        within_sessions=int(data.get("within_sessions", 5)),
        expiry_bars=int(data.get("expiry_bars", 20)),
        cleanup_max_age_days=int(data.get("cleanup_max_age_days", 7)),
    )
    if section.within_sessions < 1 or section.expiry_bars < 1:
        raise ConfigurationError("triggers.within_sessions and triggers.expiry_bars must be at least 1")
    return section


def _parse_monitoring(data: dict[str, Any]) -> MonitoringSection:
    return MonitoringSection(
        audit_log_path=str(data.get("audit_log_path", "runtime/audit.log")),
        log_level=str(data.get("log_level", "INFO")).upper(),
        log_file=data.get("log_file"),
    )


def _parse_runtime(data: dict[str, Any]) -> RuntimeSection:
    return RuntimeSection(
        state_dir=str(data.get("state_dir", "runtime/states")),
        max_workers=int(data.get("max_workers", 4)),
    )


def serialize_config(config: AppConfig) -> dict[str, Any]:
    payload = asdict(config)
    market = payload["market"]
    for key in ("pre_open", "regular_open", "regular_close", "post_close"):
        market[key] = market[key].strftime("%H:%M")
    market["holidays"] = [day.isoformat() for day in config.market.holidays]
    return payload

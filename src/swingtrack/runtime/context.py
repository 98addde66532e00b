"""Run context creation and component wiring from configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from swingtrack.config.loader import compute_config_hash
from swingtrack.config.models import AppConfig
from swingtrack.market.calendar import TradingCalendar, build_calendar
from swingtrack.quality.classifier import EntryQualityClassifier
from swingtrack.quality.models import QualityThresholds
from swingtrack.simulator.replay import SimulatorConfig, TradeSimulator
from swingtrack.triggers.evaluator import TriggerEvaluator
from swingtrack.triggers.store import TriggerStateStore


@dataclass(frozen=True)
class RunContext:
    run_id: str
    config_path: Path
    config_hash: str
    started_at: datetime


def create_run_context(
    config_path: str | Path,
    run_id_prefix: str,
    run_id: Optional[str] = None,
) -> RunContext:
    path = Path(config_path)
    config_hash = compute_config_hash(path)
    started_at = datetime.now(timezone.utc)
    if run_id is None:
        stamp = started_at.strftime("%Y%m%dT%H%M%SZ")
        run_id = f"{run_id_prefix}-{stamp}-{config_hash[:8]}"
    return RunContext(
        run_id=run_id,
        config_path=path,
        config_hash=config_hash,
        started_at=started_at,
    )


def calendar_from_config(config: AppConfig) -> TradingCalendar:
    market = config.market
    return build_calendar(
        market.timezone,
        market.holidays,
        pre_open=market.pre_open,
        regular_open=market.regular_open,
        regular_close=market.regular_close,
        post_close=market.post_close,
    )


def classifier_from_config(config: AppConfig) -> EntryQualityClassifier:
    return EntryQualityClassifier(
        QualityThresholds(
            good_max_pct=config.simulator.good_max_pct,
            extended_max_pct=config.simulator.extended_max_pct,
        )
    )


def simulator_from_config(config: AppConfig) -> TradeSimulator:
    return TradeSimulator(
        SimulatorConfig(
            capital=config.simulator.capital,
            currency=config.simulator.currency,
            check_data_gaps=config.simulator.check_data_gaps,
        ),
        classifier=classifier_from_config(config),
        calendar=calendar_from_config(config),
    )


def evaluator_from_config(
    config: AppConfig,
    store: Optional[TriggerStateStore] = None,
    audit_log: Optional[object] = None,
) -> TriggerEvaluator:
    return TriggerEvaluator(
        store=store,
        calendar=calendar_from_config(config),
        audit_log=audit_log,
        stale_multiplier=config.triggers.stale_multiplier,
    )

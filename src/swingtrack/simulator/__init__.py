"""Trade replay helpers."""

from swingtrack.simulator.bars import bar_from_record, bar_to_record, bars_from_records, load_bars
from swingtrack.simulator.batch import (
    BatchAssessment,
    ReplayJob,
    ReplayOutcome,
    assess_batch,
    open_positions,
    replay_batch,
)
from swingtrack.simulator.models import (
    Bar,
    EntryConfirmation,
    EntryQualityTag,
    Event,
    EventType,
    LevelPlan,
    SimulationState,
    SimulationStatus,
    WeekEndRule,
)
from swingtrack.simulator.replay import SimulatorConfig, TradeSimulator, simulate

__all__ = [
    "Bar",
    "BatchAssessment",
    "EntryConfirmation",
    "EntryQualityTag",
    "Event",
    "EventType",
    "LevelPlan",
    "ReplayJob",
    "ReplayOutcome",
    "SimulationState",
    "SimulationStatus",
    "SimulatorConfig",
    "TradeSimulator",
    "WeekEndRule",
    "assess_batch",
    "bar_from_record",
    "bar_to_record",
    "bars_from_records",
    "load_bars",
    "open_positions",
    "replay_batch",
    "simulate",
]

"""Live trigger evaluation."""

from swingtrack.triggers.conditions import compare, crossed, evaluate_condition, occurrences_met, resolve_operand
from swingtrack.triggers.evaluator import TriggerEvaluator
from swingtrack.triggers.models import (
    ActiveWarning,
    BarCounter,
    CheckAction,
    CheckResult,
    Condition,
    InvalidationHit,
    InvalidationSpec,
    OccurrenceRequirement,
    Operand,
    Operator,
    SessionCounter,
    StrategySpec,
    TimeframeSnapshot,
    TriggerResult,
    TriggerSpec,
    ValueHistory,
    WarningSpec,
    market_data_from_mapping,
)
from swingtrack.triggers.store import TriggerStateStore, session_key

__all__ = [
    "ActiveWarning",
    "BarCounter",
    "CheckAction",
    "CheckResult",
    "Condition",
    "InvalidationHit",
    "InvalidationSpec",
    "OccurrenceRequirement",
    "Operand",
    "Operator",
    "SessionCounter",
    "StrategySpec",
    "TimeframeSnapshot",
    "TriggerEvaluator",
    "TriggerResult",
    "TriggerSpec",
    "TriggerStateStore",
    "ValueHistory",
    "WarningSpec",
    "compare",
    "crossed",
    "evaluate_condition",
    "market_data_from_mapping",
    "occurrences_met",
    "resolve_operand",
    "session_key",
]

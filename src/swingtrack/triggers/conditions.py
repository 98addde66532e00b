"""Operand resolution and comparison/crossover evaluation."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from swingtrack.triggers.models import (
    Condition,
    OccurrenceRequirement,
    Operand,
    Operator,
    TimeframeSnapshot,
    ValueHistory,
)

logger = logging.getLogger("swingtrack.triggers")

# Timeframe-suffixed indicator names fall back to the generic column of the
# snapshot that already belongs to that timeframe.
INDICATOR_ALIASES = {
    "rsi14_1h": "rsi",
    "rsi14_15m": "rsi",
    "rsi14_1m": "rsi",
    "ema20_1h": "ema20",
    "ema20_15m": "ema20",
    "ema20_1m": "ema20",
    "ema50_1h": "ema50",
    "ema50_15m": "ema50",
    "ema50_1m": "ema50",
}

PLAN_REFS = frozenset({"entry", "stopLoss", "target"})


def resolve_operand(operand: Operand, snapshot: TimeframeSnapshot) -> Optional[float]:
    """Return the operand's numeric value, or None when it cannot be resolved."""
    if operand.ref == "value" or operand.ref in PLAN_REFS:
        return operand.value

    value = snapshot.get(operand.ref)
    if value is None:
        alias = INDICATOR_ALIASES.get(operand.ref)
        if alias is not None:
            value = snapshot.get(alias)
            if value is not None:
                logger.debug("Using %s for missing %s", alias, operand.ref)
    if value is None:
        logger.debug("Reference %s not found in snapshot (%s)", operand.ref, sorted(snapshot.values))
        return None
    if math.isnan(value):
        return None
    return value + operand.offset


def compare(left: float, op: Operator, right: float) -> bool:
    if op == Operator.GE:
        return left >= right
    if op == Operator.GT:
        return left > right
    if op == Operator.LE:
        return left <= right
    if op == Operator.LT:
        return left < right
    if op == Operator.EQ:
        return left == right
    if op == Operator.NE:
        return left != right
    raise ValueError(f"{op.value} is not a comparison operator")


def crossed(previous: Optional[float], current: float, threshold: float, op: Operator) -> bool:
    """Crossover between the previous and current bar; no history never crosses."""
    if previous is None:
        return False
    if op == Operator.CROSSES_ABOVE:
        return previous <= threshold and current > threshold
    if op == Operator.CROSSES_BELOW:
        return previous >= threshold and current < threshold
    raise ValueError(f"{op.value} is not a crossover operator")


def evaluate_condition(
    condition: Condition,
    snapshot: TimeframeSnapshot,
    history: Optional[ValueHistory] = None,
) -> bool:
    """Evaluate ``condition`` on ``snapshot``.

    Crossovers record the left value into ``history`` keyed by the snapshot
    timestamp and compare against the value of the preceding bar. Without a
    history a crossover is never satisfied. Unresolvable operands leave the
    condition unmet.
    """
    left = resolve_operand(condition.left, snapshot)
    right = resolve_operand(condition.right, snapshot)
    if left is None or right is None:
        return False

    if not condition.op.is_cross:
        return compare(left, condition.op, right)

    if history is None:
        return False
    history.record(snapshot.timestamp, left)
    return crossed(history.previous(), left, right, condition.op)


def occurrences_met(requirement: OccurrenceRequirement, outcomes: Iterable[bool]) -> bool:
    recent = list(outcomes)[-requirement.count:]
    if len(recent) < requirement.count:
        return False
    if requirement.consecutive:
        return all(recent)
    return sum(1 for outcome in recent if outcome) >= requirement.count

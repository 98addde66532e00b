"""Replay many plans at once and summarize the outcomes."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from swingtrack.simulator.models import Bar, EventType, LevelPlan, SimulationState, SimulationStatus
from swingtrack.simulator.replay import TradeSimulator


@dataclass(frozen=True)
class ReplayJob:
    symbol: str
    plan: LevelPlan
    bars: Sequence[Bar]
    current_price: Optional[float] = None


@dataclass(frozen=True)
class ReplayOutcome:
    symbol: str
    state: Optional[SimulationState]
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchAssessment:
    total: int
    status_counts: dict[str, int]
    entered: int
    winners: int
    win_rate: float
    average_return_pct: float
    total_pnl: float
    target_hits: dict[str, int] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)


def _run_job(simulator: TradeSimulator, job: ReplayJob) -> ReplayOutcome:
    try:
        state = simulator.simulate(job.plan, job.bars, job.current_price)
    except ValueError as exc:
        return ReplayOutcome(symbol=job.symbol, state=None, error=str(exc))
    return ReplayOutcome(symbol=job.symbol, state=state)


def replay_batch(
    simulator: TradeSimulator,
    jobs: Iterable[ReplayJob],
    max_workers: int = 4,
) -> list[ReplayOutcome]:
    """Replay independent jobs on a thread pool, preserving input order.

    Input errors are reported per job so one malformed symbol does not sink
    the batch.
    """
    jobs_list = list(jobs)
    if not jobs_list:
        return []
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        return list(pool.map(lambda job: _run_job(simulator, job), jobs_list))


def assess_batch(outcomes: Iterable[ReplayOutcome]) -> BatchAssessment:
    outcomes_list = list(outcomes)
    errors = {outcome.symbol: outcome.error for outcome in outcomes_list if outcome.error}
    states = [outcome.state for outcome in outcomes_list if outcome.state is not None]

    status_counts: dict[str, int] = {}
    for state in states:
        status_counts[state.status.value] = status_counts.get(state.status.value, 0) + 1

    entered = [state for state in states if state.entry_price is not None]
    winners = [state for state in entered if state.total_pnl > 0]
    target_hits = {
        event_type.value: sum(1 for state in entered if state.events_of(event_type))
        for event_type in (EventType.T1_HIT, EventType.T2_HIT, EventType.T3_HIT)
    }
    average_return = sum(state.total_return_pct for state in entered) / len(entered) if entered else 0.0

    return BatchAssessment(
        total=len(outcomes_list),
        status_counts=status_counts,
        entered=len(entered),
        winners=len(winners),
        win_rate=len(winners) / len(entered) if entered else 0.0,
        average_return_pct=round(average_return, 2),
        total_pnl=round(sum(state.total_pnl for state in states), 2),
        target_hits=target_hits,
        errors=errors,
    )


def open_positions(outcomes: Iterable[ReplayOutcome]) -> list[str]:
    return [
        outcome.symbol
        for outcome in outcomes
        if outcome.state is not None
        and outcome.state.status in {SimulationStatus.ENTERED, SimulationStatus.PARTIAL_EXIT}
    ]

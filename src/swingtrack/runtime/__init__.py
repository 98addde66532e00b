"""Runtime context exports."""

from swingtrack.runtime.context import (
    RunContext,
    calendar_from_config,
    classifier_from_config,
    create_run_context,
    evaluator_from_config,
    simulator_from_config,
)
from swingtrack.runtime.state_store import load_simulation_state, save_simulation_state

__all__ = [
    "RunContext",
    "calendar_from_config",
    "classifier_from_config",
    "create_run_context",
    "evaluator_from_config",
    "load_simulation_state",
    "save_simulation_state",
    "simulator_from_config",
]

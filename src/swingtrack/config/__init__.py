"""Config loading and freezing."""

from swingtrack.config.loader import (
    compute_config_hash,
    freeze_config,
    load_config,
    load_level_plan,
    load_strategy,
    serialize_config,
    verify_config_lock,
)
from swingtrack.config.models import (
    AppConfig,
    MarketSection,
    MonitoringSection,
    RuntimeSection,
    SimulatorSection,
    TriggerSection,
)

__all__ = [
    "AppConfig",
    "MarketSection",
    "MonitoringSection",
    "RuntimeSection",
    "SimulatorSection",
    "TriggerSection",
    "compute_config_hash",
    "freeze_config",
    "load_config",
    "load_level_plan",
    "load_strategy",
    "serialize_config",
    "verify_config_lock",
]

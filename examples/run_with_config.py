from pathlib import Path

from swingtrack.config import freeze_config, load_config, load_level_plan, load_strategy, verify_config_lock
from swingtrack.monitoring import AuditLog, LogNotifier, Monitor, setup_logging
from swingtrack.runtime import create_run_context, evaluator_from_config, save_simulation_state, simulator_from_config
from swingtrack.simulator import load_bars


config_path = Path("configs") / "swingtrack.yaml"
config = load_config(config_path)
lock_path = freeze_config(config_path)
assert verify_config_lock(config_path, lock_path)

setup_logging(config.monitoring.log_level)
context = create_run_context(config_path, config.run_id_prefix)

monitor = Monitor(LogNotifier())
audit = AuditLog(
    Path(config.monitoring.audit_log_path),
    run_id=context.run_id,
    config_hash=context.config_hash,
)
audit.log("run_start", {"config": str(config_path), "lock": str(lock_path)})

plan = load_level_plan(Path("configs") / "plans" / "sample_plan.yaml")
state = simulator_from_config(config).simulate(plan, load_bars(Path("data") / "sample_bars.json"))
monitor.dispatch_events(state.events, plan.symbol)
save_simulation_state(Path(config.runtime.state_dir) / f"{plan.symbol}.json", state, extra={"symbol": plan.symbol})
audit.log("replay_complete", {"symbol": plan.symbol, "status": state.status.value, "total_pnl": state.total_pnl})

strategy = load_strategy(Path("configs") / "strategies" / "sample_strategy.yaml", config)
evaluator = evaluator_from_config(config, audit_log=audit)
evaluator.initialize(plan.symbol, strategy)

print("Run ready:", context.run_id)

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from swingtrack.config import load_config, load_level_plan
from swingtrack.errors import SwingTrackError
from swingtrack.monitoring import AuditLog, LogNotifier, Monitor, setup_logging
from swingtrack.runtime import create_run_context, save_simulation_state, simulator_from_config
from swingtrack.simulator import load_bars

logger = logging.getLogger("swingtrack.scripts")


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay a level plan over daily bars")
    parser.add_argument("--config", default="configs/swingtrack.yaml")
    parser.add_argument("--plan", required=True)
    parser.add_argument("--bars", required=True)
    parser.add_argument("--output", default=None)
    parser.add_argument("--current-price", type=float, default=None)
    parser.add_argument("--notify", action="store_true", help="forward replay events to the log notifier")
    args = parser.parse_args()

    config_path = Path(args.config)
    config = load_config(config_path)
    setup_logging(config.monitoring.log_level, Path("runtime") / "logs", config.monitoring.log_file)

    context = create_run_context(config_path, config.run_id_prefix)
    audit = AuditLog(config.monitoring.audit_log_path, run_id=context.run_id, config_hash=context.config_hash)

    try:
        plan = load_level_plan(args.plan)
        bars = load_bars(args.bars)
        state = simulator_from_config(config).simulate(plan, bars, args.current_price)
    except SwingTrackError as exc:
        audit.log("replay_rejected", {"plan": args.plan, "bars": args.bars, "error": str(exc)})
        raise SystemExit(f"Replay rejected: {exc}") from exc

    symbol = plan.symbol or Path(args.plan).stem
    output = Path(args.output) if args.output else Path(config.runtime.state_dir) / f"{symbol}.json"
    save_simulation_state(output, state, extra={"symbol": symbol, "plan": plan.to_mapping(), "run_id": context.run_id})
    audit.log(
        "replay_complete",
        {
            "symbol": symbol,
            "status": state.status.value,
            "events": len(state.events),
            "total_pnl": state.total_pnl,
            "total_return_pct": state.total_return_pct,
            "state_path": str(output),
        },
    )

    if args.notify:
        Monitor(LogNotifier()).dispatch_events(state.events, symbol)

    logger.info(
        "%s: %s, pnl %.2f (%.2f%%), %d events -> %s",
        symbol,
        state.status.value,
        state.total_pnl,
        state.total_return_pct,
        len(state.events),
        output,
    )


if __name__ == "__main__":
    main()

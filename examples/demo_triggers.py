from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from swingtrack.triggers import StrategySpec, TriggerEvaluator, market_data_from_mapping

IST = ZoneInfo("Asia/Kolkata")

strategy = StrategySpec.from_mapping(
    {
        "id": "breakout",
        "triggers": [
            {
                "id": "close_above_entry",
                "timeframe": "15m",
                "left": {"ref": "close"},
                "op": ">=",
                "right": {"ref": "entry", "value": 100.0},
                "occurrences": {"count": 2, "consecutive": True},
            }
        ],
        "invalidations": [
            {
                "timeframe": "15m",
                "left": {"ref": "close"},
                "op": "<",
                "right": {"ref": "stopLoss", "value": 97.0},
                "action": "cancel_entry",
            }
        ],
    }
)

evaluator = TriggerEvaluator()
start = datetime(2024, 6, 4, 10, 0, tzinfo=IST)
evaluator.initialize("plan-1", strategy, now=start)

for step, close in enumerate([99.5, 100.4, 100.9]):
    bar_time = start + timedelta(minutes=15 * step)
    market = market_data_from_mapping({"15m": {"timestamp": bar_time.isoformat(), "close": close}})
    result = evaluator.check("plan-1", strategy, market, now=bar_time + timedelta(minutes=1))
    print(f"{bar_time:%H:%M} close={close} -> {result.action.value}")

print(evaluator.session_status("plan-1_breakout"))
evaluator.cleanup("plan-1_breakout")

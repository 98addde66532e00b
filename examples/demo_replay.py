from datetime import date, timedelta

from swingtrack.simulator import Bar, LevelPlan, ReplayJob, TradeSimulator, assess_batch, replay_batch


def _bars(start: date, rows: list[tuple[float, float, float, float]]) -> list[Bar]:
    bars = []
    day = start
    for open_, high, low, close in rows:
        while day.weekday() >= 5:
            day += timedelta(days=1)
        bars.append(Bar(date=day, open=open_, high=high, low=low, close=close))
        day += timedelta(days=1)
    return bars


simulator = TradeSimulator()

runner = ReplayJob(
    symbol="RUNNER",
    plan=LevelPlan(entry=100.0, stop=97.0, target1=105.0, target2=110.0, symbol="RUNNER"),
    bars=_bars(
        date(2024, 6, 3),
        [
            (99.0, 100.9, 98.8, 100.5),
            (100.8, 103.0, 100.6, 102.5),
            (102.6, 105.4, 102.0, 105.0),
            (105.1, 110.3, 104.9, 109.8),
        ],
    ),
)
chaser = ReplayJob(
    symbol="CHASER",
    plan=LevelPlan(entry=200.0, stop=194.0, target1=210.0, symbol="CHASER"),
    bars=_bars(
        date(2024, 6, 3),
        [
            (199.0, 206.0, 198.5, 205.0),
            (212.0, 214.0, 209.0, 211.0),
            (211.0, 212.0, 207.0, 208.0),
            (208.0, 209.0, 205.0, 206.0),
        ],
    ),
)

outcomes = replay_batch(simulator, [runner, chaser], max_workers=2)
for outcome in outcomes:
    state = outcome.state
    print(f"{outcome.symbol}: {state.status.value} pnl={state.total_pnl:.2f}")
    for event in state.events:
        print(f"  {event.date} {event.type.value:<15} {event.detail}")

print("Assessment:", assess_batch(outcomes))

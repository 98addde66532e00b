from __future__ import annotations

import threading
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from swingtrack.triggers import (
    Condition,
    Operand,
    Operator,
    StrategySpec,
    TimeframeSnapshot,
    TriggerEvaluator,
    TriggerSpec,
    TriggerStateStore,
    session_key,
)

IST = ZoneInfo("Asia/Kolkata")
NOW = datetime(2024, 6, 4, 11, 0, tzinfo=IST)


def _strategy() -> StrategySpec:
    trigger = TriggerSpec(
        id="never",
        condition=Condition("15m", Operand("close"), Operator.GT, Operand("value", 1000.0)),
        expiry_bars=10000,
    )
    return StrategySpec(id="load", triggers=(trigger,))


def test_concurrent_checks_count_every_bar() -> None:
    store = TriggerStateStore()
    evaluator = TriggerEvaluator(store=store)
    strategy = _strategy()
    evaluator.initialize("SAMPLE", strategy, NOW)
    threads_count = 8
    per_thread = 50

    def worker(offset: int) -> None:
        for index in range(per_thread):
            stamp = NOW - timedelta(seconds=offset * per_thread + index)
            data = {"15m": TimeframeSnapshot(timestamp=stamp, values={"close": 99.0})}
            evaluator.check("SAMPLE", strategy, data, NOW)

    threads = [threading.Thread(target=worker, args=(offset,)) for offset in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    status = evaluator.session_status(session_key("SAMPLE", "load"))
    assert status["triggers"][0]["bars_checked"] == threads_count * per_thread


def test_cleanup_races_with_checks() -> None:
    evaluator = TriggerEvaluator()
    strategy = _strategy()
    keys = [f"PLAN{index}" for index in range(10)]
    for plan_id in keys:
        evaluator.initialize(plan_id, strategy, NOW)

    released: list[bool] = []
    lock = threading.Lock()

    def cleaner(plan_id: str) -> None:
        result = evaluator.cleanup(session_key(plan_id, "load"))
        with lock:
            released.append(result)

    threads = [threading.Thread(target=cleaner, args=(plan_id,)) for plan_id in keys for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert released.count(True) == len(keys)
    assert evaluator.store.keys() == []


def test_lock_for_returns_one_lock_per_key() -> None:
    store = TriggerStateStore()

    assert store.lock_for("a") is store.lock_for("a")
    assert store.lock_for("a") is not store.lock_for("b")
    assert store.release("missing") is False


def test_release_keeps_the_key_lock() -> None:
    store = TriggerStateStore()
    lock = store.lock_for("a")
    store.history("a", "values:close").record(datetime(2024, 6, 4, 10, 0), 101.0)

    with lock:
        assert store.release("a") is True

    assert store.lock_for("a") is lock
    assert len(store.history("a", "values:close")) == 0

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from swingtrack.triggers import (
    CheckAction,
    Condition,
    InvalidationSpec,
    OccurrenceRequirement,
    Operand,
    Operator,
    StrategySpec,
    TimeframeSnapshot,
    TriggerEvaluator,
    TriggerSpec,
    WarningSpec,
    session_key,
)

IST = ZoneInfo("Asia/Kolkata")
TUESDAY = datetime(2024, 6, 4, 10, 0, tzinfo=IST)


class _ListAudit:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def log(self, event: str, payload: dict) -> None:
        self.events.append((event, payload))


def _close_above(count: int = 1, within_sessions: int = 5, expiry_bars: int = 20) -> TriggerSpec:
    return TriggerSpec(
        id="close_above_entry",
        condition=Condition("15m", Operand("close"), Operator.GE, Operand("entry", 100.0)),
        occurrences=OccurrenceRequirement(count=count),
        within_sessions=within_sessions,
        expiry_bars=expiry_bars,
    )


def _strategy(*triggers: TriggerSpec, **kwargs) -> StrategySpec:
    return StrategySpec(id="breakout", triggers=triggers or (_close_above(),), **kwargs)


def _data(now: datetime, close: float, **extra) -> dict[str, TimeframeSnapshot]:
    data = {"15m": TimeframeSnapshot(timestamp=now - timedelta(minutes=1), values={"close": close})}
    for timeframe, values in extra.items():
        data[timeframe] = TimeframeSnapshot(timestamp=now - timedelta(minutes=1), values=values)
    return data


def test_initialize_uses_tightest_session_limit():
    evaluator = TriggerEvaluator()
    strategy = _strategy(
        _close_above(within_sessions=3),
        TriggerSpec(
            id="rsi",
            condition=Condition("1h", Operand("rsi"), Operator.GT, Operand("value", 55.0)),
            within_sessions=5,
        ),
    )

    session = evaluator.initialize("SAMPLE", strategy, TUESDAY)

    assert session.max_sessions == 3
    assert session.current_session == 1
    status = evaluator.session_status(session_key("SAMPLE", "breakout"))
    assert status["initialized"] is True
    assert [item["trigger_id"] for item in status["triggers"]] == ["close_above_entry", "rsi"]


def test_execute_after_consecutive_occurrences():
    evaluator = TriggerEvaluator()
    strategy = _strategy(_close_above(count=2))
    evaluator.initialize("SAMPLE", strategy, TUESDAY)

    first = evaluator.check("SAMPLE", strategy, _data(TUESDAY, 100.4), TUESDAY)
    later = TUESDAY + timedelta(minutes=15)
    second = evaluator.check("SAMPLE", strategy, _data(later, 100.9), later)

    assert first.action == CheckAction.CONTINUE_MONITORING
    assert first.triggers[0].condition_met is True
    assert first.triggers[0].occurrences_satisfied is False
    assert second.action == CheckAction.EXECUTE_ORDER
    assert second.success is True
    assert second.reason == "all_triggers_satisfied"


def test_repolling_the_same_bar_counts_once():
    evaluator = TriggerEvaluator()
    strategy = _strategy()
    evaluator.initialize("SAMPLE", strategy, TUESDAY)
    data = _data(TUESDAY, 99.0)

    for _ in range(3):
        evaluator.check("SAMPLE", strategy, data, TUESDAY)

    status = evaluator.session_status(session_key("SAMPLE", "breakout"))
    assert status["triggers"][0]["bars_checked"] == 1


def test_trigger_expires_after_bar_budget():
    audit = _ListAudit()
    evaluator = TriggerEvaluator(audit_log=audit)
    strategy = _strategy(_close_above(expiry_bars=3))
    evaluator.initialize("SAMPLE", strategy, TUESDAY)

    results = []
    for index in range(3):
        now = TUESDAY + timedelta(minutes=15 * index)
        results.append(evaluator.check("SAMPLE", strategy, _data(now, 99.0), now))

    assert [result.action for result in results[:2]] == [CheckAction.CONTINUE_MONITORING] * 2
    assert results[2].action == CheckAction.CANCEL_MONITORING
    assert results[2].expired_trigger == "close_above_entry"
    assert results[2].reason == "Trigger close_above_entry expired after 3 bars"
    assert audit.events[-1][0] == "trigger_decision"
    assert audit.events[-1][1]["action"] == "cancel_monitoring"

    after = TUESDAY + timedelta(minutes=60)
    again = evaluator.check("SAMPLE", strategy, _data(after, 101.0), after)
    assert again.action == CheckAction.CANCEL_MONITORING
    assert again.reason == "Session not found or inactive"


def test_session_limit_across_trading_days():
    evaluator = TriggerEvaluator()
    strategy = _strategy(_close_above(within_sessions=2))
    evaluator.initialize("SAMPLE", strategy, TUESDAY)

    wednesday = TUESDAY + timedelta(days=1)
    thursday = TUESDAY + timedelta(days=2)
    assert evaluator.check("SAMPLE", strategy, _data(TUESDAY, 99.0), TUESDAY).action == CheckAction.CONTINUE_MONITORING
    assert evaluator.check("SAMPLE", strategy, _data(wednesday, 99.0), wednesday).action == CheckAction.CONTINUE_MONITORING

    result = evaluator.check("SAMPLE", strategy, _data(thursday, 99.0), thursday)

    assert result.action == CheckAction.CANCEL_MONITORING
    assert result.reason == "Session limit exceeded (2 sessions)"
    status = evaluator.session_status(session_key("SAMPLE", "breakout"))
    assert status["session"]["is_active"] is False
    assert all(item["is_expired"] for item in status["triggers"])


def test_uninitialized_pair_is_cancelled():
    result = TriggerEvaluator().check("SAMPLE", _strategy(), _data(TUESDAY, 101.0), TUESDAY)

    assert result.action == CheckAction.CANCEL_MONITORING
    assert result.reason == "Session not found or inactive"


def test_invalidation_short_circuits_triggers():
    stop_breach = InvalidationSpec(
        condition=Condition("15m", Operand("close"), Operator.LT, Operand("stopLoss", 97.0)),
        action=CheckAction.CANCEL_ENTRY,
    )
    evaluator = TriggerEvaluator()
    strategy = _strategy(invalidations=(stop_breach,))
    evaluator.initialize("SAMPLE", strategy, TUESDAY)

    result = evaluator.check("SAMPLE", strategy, _data(TUESDAY, 96.5), TUESDAY)

    assert result.action == CheckAction.CANCEL_ENTRY
    assert result.invalidation.scope == "pre_entry"
    assert result.invalidation.timeframe == "15m"
    assert result.triggers == ()
    status = evaluator.session_status(session_key("SAMPLE", "breakout"))
    assert status["triggers"][0]["bars_checked"] == 0


def test_warnings_reported_alongside_triggers():
    hot = WarningSpec(
        code="RSI_HOT",
        severity="high",
        text="RSI above 70",
        applies_when=(Condition("1h", Operand("rsi14_1h"), Operator.GT, Operand("value", 70.0)),),
    )
    evaluator = TriggerEvaluator()
    strategy = _strategy(warnings=(hot,))
    evaluator.initialize("SAMPLE", strategy, TUESDAY)

    result = evaluator.check("SAMPLE", strategy, _data(TUESDAY, 101.0, **{"1h": {"rsi": 74.0}}), TUESDAY)

    assert result.action == CheckAction.EXECUTE_ORDER
    assert [warning.code for warning in result.warnings] == ["RSI_HOT"]


def test_warning_crossover_tracks_bars_skipped_by_earlier_condition():
    volume_breakout = WarningSpec(
        code="VOL_BREAKOUT",
        severity="medium",
        text="Close crossed 100 on heavy volume",
        applies_when=(
            Condition("15m", Operand("volume"), Operator.GT, Operand("value", 1000.0)),
            Condition("15m", Operand("close"), Operator.CROSSES_ABOVE, Operand("value", 100.0)),
        ),
    )
    never = TriggerSpec(
        id="far_above",
        condition=Condition("15m", Operand("close"), Operator.GT, Operand("value", 1000.0)),
        expiry_bars=100,
    )

    def run(bars):
        evaluator = TriggerEvaluator()
        strategy = _strategy(never, warnings=(volume_breakout,))
        evaluator.initialize("SAMPLE", strategy, TUESDAY)
        codes = []
        for index, (close, volume) in enumerate(bars):
            now = TUESDAY + timedelta(minutes=15 * index)
            values = {"close": close, "volume": volume}
            data = {"15m": TimeframeSnapshot(timestamp=now - timedelta(minutes=1), values=values)}
            result = evaluator.check("SAMPLE", strategy, data, now)
            codes.append([warning.code for warning in result.warnings])
        return codes

    # The cross happened on the thin-volume bar, so the next bar is already above.
    assert run([(98.0, 2000.0), (101.0, 500.0), (102.0, 2000.0)]) == [[], [], []]
    assert run([(99.0, 2000.0), (101.0, 2000.0)]) == [[], ["VOL_BREAKOUT"]]


def test_missing_and_stale_data_are_not_counted():
    evaluator = TriggerEvaluator()
    strategy = _strategy()
    evaluator.initialize("SAMPLE", strategy, TUESDAY)

    missing = evaluator.check("SAMPLE", strategy, {}, TUESDAY)
    stale_data = {"15m": TimeframeSnapshot(timestamp=TUESDAY - timedelta(minutes=45), values={"close": 101.0})}
    stale = evaluator.check("SAMPLE", strategy, stale_data, TUESDAY)

    assert missing.triggers[0].reason == "no_data"
    assert stale.triggers[0].reason == "stale_data"
    assert stale.action == CheckAction.CONTINUE_MONITORING
    status = evaluator.session_status(session_key("SAMPLE", "breakout"))
    assert status["triggers"][0]["bars_checked"] == 0


def test_closed_market_keeps_monitoring_without_progress():
    evaluator = TriggerEvaluator()
    strategy = _strategy(_close_above(within_sessions=1))
    evaluator.initialize("SAMPLE", strategy, TUESDAY)

    evening = TUESDAY.replace(hour=20)
    saturday = TUESDAY + timedelta(days=4)
    for now in (evening, saturday):
        result = evaluator.check("SAMPLE", strategy, _data(now, 101.0), now)
        assert result.action == CheckAction.CONTINUE_MONITORING
        assert result.reason == "market_closed"

    status = evaluator.session_status(session_key("SAMPLE", "breakout"))
    assert status["session"]["current_session"] == 1
    assert status["session"]["is_active"] is True


def test_cleanup_is_idempotent():
    audit = _ListAudit()
    evaluator = TriggerEvaluator(audit_log=audit)
    evaluator.initialize("SAMPLE", _strategy(), TUESDAY)
    key = session_key("SAMPLE", "breakout")

    assert evaluator.cleanup(key) is True
    assert evaluator.cleanup(key) is False
    assert evaluator.session_status(key) == {"initialized": False}
    assert [event for event, _ in audit.events] == ["trigger_cleanup"]


def test_cleanup_inactive_removes_only_old_expired_sessions():
    evaluator = TriggerEvaluator()
    strategy = _strategy(_close_above(within_sessions=1))
    evaluator.initialize("OLD", strategy, TUESDAY)
    evaluator.initialize("LIVE", strategy, TUESDAY)
    wednesday = TUESDAY + timedelta(days=1)
    evaluator.check("OLD", strategy, _data(wednesday, 99.0), wednesday)

    assert evaluator.cleanup_inactive(now=TUESDAY + timedelta(days=2)) == []
    removed = evaluator.cleanup_inactive(now=TUESDAY + timedelta(days=8))

    assert removed == [session_key("OLD", "breakout")]
    assert evaluator.session_status(session_key("LIVE", "breakout"))["initialized"] is True


def test_initialize_twice_keeps_progress():
    evaluator = TriggerEvaluator()
    strategy = _strategy()
    evaluator.initialize("SAMPLE", strategy, TUESDAY)
    evaluator.check("SAMPLE", strategy, _data(TUESDAY, 99.0), TUESDAY)

    evaluator.initialize("SAMPLE", strategy, TUESDAY + timedelta(hours=1))

    status = evaluator.session_status(session_key("SAMPLE", "breakout"))
    assert status["triggers"][0]["bars_checked"] == 1
    assert status["session"]["started_at"] == TUESDAY.isoformat()


def test_empty_strategy_never_executes():
    evaluator = TriggerEvaluator()
    strategy = StrategySpec(id="empty")
    evaluator.initialize("SAMPLE", strategy, TUESDAY)

    result = evaluator.check("SAMPLE", strategy, _data(TUESDAY, 101.0), TUESDAY)

    assert result.action == CheckAction.CONTINUE_MONITORING

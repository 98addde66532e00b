"""Live trigger evaluation with session limits, bar budgets and invalidations.

Each ``check`` call for a plan/strategy pair runs under that pair's lock, so
bar counters and crossover histories see one writer at a time. Missing data,
stale candles and a closed market produce reason-coded results rather than
exceptions.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional
from zoneinfo import ZoneInfo

from swingtrack.market.calendar import TradingCalendar
from swingtrack.market.timeframes import is_stale
from swingtrack.triggers.conditions import evaluate_condition, occurrences_met, resolve_operand
from swingtrack.triggers.models import (
    ActiveWarning,
    BarCounter,
    CheckAction,
    CheckResult,
    Condition,
    InvalidationHit,
    SessionCounter,
    StrategySpec,
    TimeframeSnapshot,
    TriggerResult,
    TriggerSpec,
)
from swingtrack.triggers.store import TriggerStateStore, session_key

logger = logging.getLogger("swingtrack.triggers")

MarketData = Mapping[str, TimeframeSnapshot]


class TriggerEvaluator:
    def __init__(
        self,
        store: Optional[TriggerStateStore] = None,
        calendar: Optional[TradingCalendar] = None,
        audit_log: Optional[object] = None,
        clock: Optional[Callable[[], datetime]] = None,
        stale_multiplier: float = 2.0,
    ) -> None:
        self.store = store or TriggerStateStore()
        self.calendar = calendar or TradingCalendar()
        self.stale_multiplier = stale_multiplier
        self._audit_log = audit_log
        self._clock = clock

    def _log(self, event: str, payload: dict) -> None:
        if self._audit_log is None:
            return
        self._audit_log.log(event, payload)

    def _now(self, now: Optional[datetime] = None) -> datetime:
        if now is None:
            now = self._clock() if self._clock is not None else datetime.now(tz=ZoneInfo(self.calendar.timezone))
        return self._aware(now)

    def _aware(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=ZoneInfo(self.calendar.timezone))
        return value

    def initialize(self, plan_id: str, strategy: StrategySpec, now: Optional[datetime] = None) -> SessionCounter:
        """Start tracking a plan/strategy pair; existing progress is kept."""
        now = self._now(now)
        key = session_key(plan_id, strategy.id)
        with self.store.lock_for(key):
            session = self.store.session(key)
            if session is None:
                session = SessionCounter(
                    plan_id=plan_id,
                    strategy_id=strategy.id,
                    started_at=now,
                    last_session_date=self.calendar.trading_date(now),
                    max_sessions=strategy.max_sessions,
                )
                self.store.put_session(key, session)
                logger.info("Initialized %s: max %s sessions", key, session.max_sessions)
            for trigger in strategy.triggers:
                if self.store.bar_counter(key, trigger.id) is None:
                    self.store.put_bar_counter(key, BarCounter(trigger_id=trigger.id, max_bars=trigger.expiry_bars))
        return session

    def evaluate(
        self,
        trigger: TriggerSpec,
        snapshot: Optional[TimeframeSnapshot],
        key: str,
        now: Optional[datetime] = None,
    ) -> TriggerResult:
        now = self._now(now)
        with self.store.lock_for(key):
            return self._evaluate(trigger, snapshot, key, now)

    def check(
        self,
        plan_id: str,
        strategy: StrategySpec,
        market_data: MarketData,
        now: Optional[datetime] = None,
    ) -> CheckResult:
        now = self._now(now)
        market = self.calendar.session_for(now)
        if not market.is_open:
            return CheckResult(action=CheckAction.CONTINUE_MONITORING, success=False, reason="market_closed")

        key = session_key(plan_id, strategy.id)
        with self.store.lock_for(key):
            result = self._check(key, strategy, market_data, now)

        if result.action != CheckAction.CONTINUE_MONITORING:
            logger.info("%s: %s (%s)", key, result.action.value, result.reason)
            self._log(
                "trigger_decision",
                {
                    "plan_id": plan_id,
                    "strategy_id": strategy.id,
                    "action": result.action.value,
                    "reason": result.reason,
                    "expired_trigger": result.expired_trigger,
                    "warnings": [warning.code for warning in result.warnings],
                },
            )
        return result

    def _check(self, key: str, strategy: StrategySpec, market_data: MarketData, now: datetime) -> CheckResult:
        session = self.store.session(key)
        reason = self._session_invalid_reason(key, session, now)
        if reason is not None:
            return CheckResult(action=CheckAction.CANCEL_MONITORING, success=False, reason=reason)

        self._record_crossovers(key, strategy, market_data, now)

        for invalidation in strategy.invalidations:
            snapshot = market_data.get(invalidation.condition.timeframe)
            if snapshot is None:
                continue
            if self._condition_met(key, invalidation.condition, snapshot):
                logger.warning("%s: invalidation met (%s)", key, invalidation.scope)
                return CheckResult(
                    action=invalidation.action,
                    success=False,
                    reason=f"Invalidation condition met: {invalidation.scope}",
                    invalidation=InvalidationHit(
                        scope=invalidation.scope,
                        condition=invalidation.condition.describe(),
                        timeframe=invalidation.condition.timeframe,
                    ),
                )

        warnings = tuple(self._active_warnings(key, strategy, market_data))

        results: list[TriggerResult] = []
        for trigger in strategy.triggers:
            result = self._evaluate(trigger, market_data.get(trigger.timeframe), key, now)
            results.append(result)
            if result.expired:
                self._expire_session(key, f"Trigger {trigger.id} expired")
                return CheckResult(
                    action=CheckAction.CANCEL_MONITORING,
                    success=False,
                    reason=f"Trigger {trigger.id} expired after {trigger.expiry_bars} bars",
                    triggers=tuple(results),
                    warnings=warnings,
                    expired_trigger=trigger.id,
                )

        all_satisfied = bool(results) and all(result.satisfied for result in results)
        return CheckResult(
            action=CheckAction.EXECUTE_ORDER if all_satisfied else CheckAction.CONTINUE_MONITORING,
            success=all_satisfied,
            reason="all_triggers_satisfied" if all_satisfied else None,
            triggers=tuple(results),
            warnings=warnings,
        )

    def _session_invalid_reason(self, key: str, session: Optional[SessionCounter], now: datetime) -> Optional[str]:
        if session is None or not session.is_active:
            return "Session not found or inactive"
        if session.current_session > session.max_sessions:
            self._expire_session(key, "Session limit exceeded")
            return f"Session limit exceeded ({session.max_sessions} sessions)"

        today = self.calendar.trading_date(now)
        if today != session.last_session_date:
            session.current_session += 1
            session.last_session_date = today
            logger.info("%s: trading session %s/%s", key, session.current_session, session.max_sessions)
            if session.current_session > session.max_sessions:
                self._expire_session(key, "Session limit exceeded on new day")
                return f"Session limit exceeded ({session.max_sessions} sessions)"
        return None

    def _evaluate(
        self,
        trigger: TriggerSpec,
        snapshot: Optional[TimeframeSnapshot],
        key: str,
        now: datetime,
    ) -> TriggerResult:
        counter = self.store.bar_counter(key, trigger.id)
        if counter is None:
            return TriggerResult(trigger.id, satisfied=False, expired=False, reason="not_initialized")
        if counter.is_expired:
            return self._expired(trigger, counter)
        if snapshot is None:
            return self._pending(trigger, counter, "no_data")

        bar_time = self._aware(snapshot.timestamp)
        if self._is_stale(snapshot, trigger.timeframe, now):
            return self._pending(trigger, counter, "stale_data")

        if counter.last_bar_time != bar_time:
            counter.bars_checked += 1
            counter.last_bar_time = bar_time
            logger.debug("%s: bar %s/%s (%s)", trigger.id, counter.bars_checked, counter.max_bars, trigger.timeframe)

        if counter.bars_checked >= counter.max_bars:
            counter.is_expired = True
            logger.info("%s: expired after %s bars", trigger.id, counter.bars_checked)
            return self._expired(trigger, counter)

        condition_met = self._condition_met(key, trigger.condition, snapshot)
        outcomes = self.store.history(key, f"occurrences:{trigger.id}", maxlen=trigger.occurrences.count)
        outcomes.record(bar_time, condition_met)
        occurrences_satisfied = occurrences_met(trigger.occurrences, outcomes.values())

        return TriggerResult(
            trigger_id=trigger.id,
            satisfied=condition_met and occurrences_satisfied,
            expired=False,
            bars_checked=counter.bars_checked,
            max_bars=counter.max_bars,
            condition_met=condition_met,
            occurrences_satisfied=occurrences_satisfied,
        )

    def _is_stale(self, snapshot: TimeframeSnapshot, timeframe: str, now: datetime) -> bool:
        if not self.calendar.is_open(now):
            return False
        return is_stale(self._aware(snapshot.timestamp), now, timeframe, self.stale_multiplier)

    def _record_crossovers(self, key: str, strategy: StrategySpec, market_data: MarketData, now: datetime) -> None:
        """Feed every crossover history with this bar.

        Invalidations and warnings stop at the first decisive condition, so a
        crossover further down the list would otherwise miss bars and compare
        against a value older than the preceding bar.
        """
        conditions = [invalidation.condition for invalidation in strategy.invalidations]
        conditions.extend(condition for warning in strategy.warnings for condition in warning.applies_when)
        for condition in conditions:
            self._record_crossover(key, condition, market_data.get(condition.timeframe))
        for trigger in strategy.triggers:
            snapshot = market_data.get(trigger.timeframe)
            if snapshot is not None and not self._is_stale(snapshot, trigger.timeframe, now):
                self._record_crossover(key, trigger.condition, snapshot)

    def _record_crossover(self, key: str, condition: Condition, snapshot: Optional[TimeframeSnapshot]) -> None:
        if snapshot is None or not condition.op.is_cross:
            return
        value = resolve_operand(condition.left, snapshot)
        if value is not None:
            self.store.history(key, f"values:{condition.key}").record(snapshot.timestamp, value)

    def _condition_met(self, key: str, condition: Condition, snapshot: TimeframeSnapshot) -> bool:
        history = self.store.history(key, f"values:{condition.key}") if condition.op.is_cross else None
        return evaluate_condition(condition, snapshot, history)

    def _active_warnings(self, key: str, strategy: StrategySpec, market_data: MarketData):
        for warning in strategy.warnings:
            if not warning.applies_when:
                continue
            applies = True
            for condition in warning.applies_when:
                snapshot = market_data.get(condition.timeframe)
                if snapshot is None or not self._condition_met(key, condition, snapshot):
                    applies = False
                    break
            if applies:
                logger.warning("%s: warning %s - %s", key, warning.code, warning.text)
                yield ActiveWarning(
                    code=warning.code,
                    severity=warning.severity,
                    text=warning.text,
                    mitigation=warning.mitigation,
                )

    def _expire_session(self, key: str, reason: str) -> None:
        session = self.store.session(key)
        if session is not None:
            session.is_active = False
            session.expired_reason = reason
        for counter in self.store.bar_counters(key):
            counter.is_expired = True
        logger.info("Session expired: %s - %s", key, reason)

    @staticmethod
    def _expired(trigger: TriggerSpec, counter: BarCounter) -> TriggerResult:
        return TriggerResult(
            trigger_id=trigger.id,
            satisfied=False,
            expired=True,
            bars_checked=counter.bars_checked,
            max_bars=counter.max_bars,
            reason="expired",
        )

    @staticmethod
    def _pending(trigger: TriggerSpec, counter: BarCounter, reason: str) -> TriggerResult:
        return TriggerResult(
            trigger_id=trigger.id,
            satisfied=False,
            expired=False,
            bars_checked=counter.bars_checked,
            max_bars=counter.max_bars,
            reason=reason,
        )

    def cleanup(self, key: str) -> bool:
        """Release all progress for ``key``. Safe to call repeatedly."""
        with self.store.lock_for(key):
            released = self.store.release(key)
        if released:
            logger.info("Released trigger state for %s", key)
            self._log("trigger_cleanup", {"session_key": key})
        return released

    def cleanup_inactive(self, max_age: timedelta = timedelta(days=7), now: Optional[datetime] = None) -> list[str]:
        now = self._now(now)
        cutoff = now - max_age
        removed: list[str] = []
        for key in self.store.keys():
            session = self.store.session(key)
            if session is None or session.is_active or session.started_at >= cutoff:
                continue
            if self.cleanup(key):
                removed.append(key)
        return removed

    def session_status(self, key: str) -> dict[str, Any]:
        with self.store.lock_for(key):
            session = self.store.session(key)
            if session is None:
                return {"initialized": False}
            return {
                "initialized": True,
                "session": {
                    "current_session": session.current_session,
                    "max_sessions": session.max_sessions,
                    "started_at": session.started_at.isoformat(),
                    "is_active": session.is_active,
                    "last_session_date": session.last_session_date.isoformat(),
                    "expired_reason": session.expired_reason,
                },
                "triggers": [
                    {
                        "trigger_id": counter.trigger_id,
                        "bars_checked": counter.bars_checked,
                        "max_bars": counter.max_bars,
                        "is_expired": counter.is_expired,
                        "progress_pct": counter.progress_pct,
                    }
                    for counter in self.store.bar_counters(key)
                ],
            }

"""Bar-by-bar replay of a level plan.

Each bar is handed to the handler registered for the current status. A
handler returns ``True`` when the bar must also be processed by the handler
of the status it just moved to (a fill falls through to the exit checks on
the same bar) and ``False`` when the bar is done.

Exit checks inside a position run in a fixed order: stop, T1, T2, T3. A bar
whose low breaches the trailing stop is always a stop-out, even when its
high also reaches a target.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from swingtrack.errors import ConfigurationError, DataGapError
from swingtrack.market.calendar import TradingCalendar
from swingtrack.market.time import trading_day_for
from swingtrack.quality.classifier import EntryQualityClassifier, planned_quantity
from swingtrack.quality.models import EntryAssessment, EntryQuality
from swingtrack.simulator.models import (
    Bar,
    EntryConfirmation,
    EntryQualityTag,
    Event,
    EventType,
    LevelPlan,
    SimulationState,
    SimulationStatus,
    WeekEndRule,
)

logger = logging.getLogger("swingtrack.simulator")

T2_BOOK_PERCENT = 70


@dataclass(frozen=True)
class SimulatorConfig:
    capital: float = 100000.0
    currency: str = "₹"
    check_data_gaps: bool = True


class _Run:
    """Mutable per-call context; never shared between simulate() calls."""

    def __init__(self, plan: LevelPlan, state: SimulationState) -> None:
        self.plan = plan
        self.state = state
        self.day_count = 0
        self.bar: Optional[Bar] = None
        self.prev_bar: Optional[Bar] = None

    def advance(self, bar: Bar) -> None:
        self.prev_bar = self.bar
        self.bar = bar
        self.day_count += 1


class TradeSimulator:
    def __init__(
        self,
        config: Optional[SimulatorConfig] = None,
        classifier: Optional[EntryQualityClassifier] = None,
        calendar: Optional[TradingCalendar] = None,
    ) -> None:
        self.config = config or SimulatorConfig()
        self.classifier = classifier or EntryQualityClassifier()
        self.calendar = calendar or TradingCalendar()
        self._handlers: dict[SimulationStatus, Callable[[_Run], bool]] = {
            SimulationStatus.WAITING: self._on_waiting,
            SimulationStatus.ENTRY_SIGNALED: self._on_entry_signaled,
            SimulationStatus.ENTERED: self._on_in_position,
            SimulationStatus.PARTIAL_EXIT: self._on_in_position,
        }

    def simulate(
        self,
        plan: LevelPlan,
        bars: Iterable[Bar],
        current_price: Optional[float] = None,
    ) -> SimulationState:
        plan.validate()
        if planned_quantity(self.config.capital, plan.entry) < 1:
            raise ConfigurationError(
                f"Capital {self.config.capital} cannot buy one share at entry {plan.entry}"
            )
        ordered = self.validate_bars(bars)

        state = SimulationState(capital=self.config.capital, trailing_stop=plan.stop)
        run = _Run(plan, state)
        for bar in ordered:
            if state.status.is_terminal:
                break
            run.advance(bar)
            self._step(run)

        last_close = ordered[-1].close if ordered else None
        self._finalize(state, current_price if current_price is not None else last_close)
        logger.debug(
            "%s replay finished: %s after %d bars, total pnl %.2f",
            plan.symbol or "plan",
            state.status.value,
            run.day_count,
            state.total_pnl,
        )
        return state

    def validate_bars(self, bars: Iterable[Bar]) -> list[Bar]:
        ordered = sorted(bars, key=lambda bar: bar.date)
        for bar in ordered:
            if min(bar.open, bar.high, bar.low, bar.close) <= 0:
                raise DataGapError(f"Bar {bar.date} has a non-positive price")
            if bar.low > min(bar.open, bar.close) or bar.high < max(bar.open, bar.close):
                raise DataGapError(f"Bar {bar.date} has inconsistent OHLC values")

        for previous, current in zip(ordered, ordered[1:]):
            prev_day = trading_day_for(previous.date, self.calendar.timezone)
            day = trading_day_for(current.date, self.calendar.timezone)
            if prev_day == day:
                raise DataGapError(f"Duplicate bar for {day}")
            if self.config.check_data_gaps:
                missing = self.calendar.missing_trading_days(prev_day, day)
                if missing:
                    raise DataGapError(
                        f"Missing bars between {prev_day} and {day}: "
                        + ", ".join(str(item) for item in missing)
                    )
        return ordered

    def _step(self, run: _Run) -> None:
        while True:
            handler = self._handlers.get(run.state.status)
            if handler is None or not handler(run):
                return

    # WAITING

    def _on_waiting(self, run: _Run) -> bool:
        plan, state, bar = run.plan, run.state, run.bar
        if run.day_count > plan.entry_window_days:
            self._expire(run)
            return False

        if plan.entry_confirmation == EntryConfirmation.TOUCH:
            if bar.low <= plan.entry <= bar.high:
                qty = planned_quantity(state.capital, plan.entry)
                self._open_position(
                    run,
                    price=plan.entry,
                    qty=qty,
                    detail=f"Pullback entry, limit filled at {self._money(plan.entry)}. Bought {qty} shares.",
                    tag=None,
                )
                return True
            self._close_window_if_due(run)
            return False

        if bar.close < plan.entry:
            self._close_window_if_due(run)
            return False

        assessment = self.classifier.classify(bar.close, plan.entry, plan.stop)
        if assessment.skips_entry:
            self._record(
                run,
                EventType.ENTRY_SKIPPED,
                price=bar.close,
                detail=(
                    f"Entry signal skipped, close {self._money(bar.close)} is {assessment.quality.value} "
                    f"(+{assessment.premium_pct:.1f}% above entry {self._money(plan.entry)}). Wait for pullback."
                ),
                tag=self._tag(assessment),
            )
            self._close_window_if_due(run)
            return False

        planned = planned_quantity(state.capital, plan.entry)
        display_qty = self.classifier.size(planned, bar.close, plan.entry, plan.stop)
        qty_note = f" (EXTENDED: reduced from {planned})" if display_qty != planned else ""
        state.status = SimulationStatus.ENTRY_SIGNALED
        state.signal_date = bar.date
        state.signal_close = bar.close
        state.planned_qty = planned
        self._record(
            run,
            EventType.ENTRY_SIGNAL,
            price=bar.close,
            qty=display_qty,
            detail=(
                f"Entry signal confirmed, close {self._money(bar.close)} vs entry {self._money(plan.entry)} "
                f"(+{assessment.premium_pct:.1f}%). Buy {display_qty} shares{qty_note} at next day's open."
            ),
            tag=self._tag(assessment),
        )
        return False

    # ENTRY_SIGNALED

    def _on_entry_signaled(self, run: _Run) -> bool:
        plan, state, bar = run.plan, run.state, run.bar
        fill = bar.open
        assessment = self.classifier.classify(fill, plan.entry, plan.stop)
        qty = 0 if assessment.skips_entry else self.classifier.size(state.planned_qty, fill, plan.entry, plan.stop)

        if qty <= 0:
            if assessment.quality == EntryQuality.BELOW_STOP:
                reason = f"is BELOW stop {self._money(plan.stop)}. Wait for better setup."
            elif assessment.quality == EntryQuality.OVEREXTENDED:
                reason = (
                    f"is OVEREXTENDED (+{assessment.premium_pct:.1f}% above entry "
                    f"{self._money(plan.entry)}). Wait for pullback."
                )
            else:
                reason = "leaves no shares after risk resizing."
            self._reset_signal(state)
            state.status = SimulationStatus.WAITING
            self._record(
                run,
                EventType.ENTRY_SKIPPED,
                price=fill,
                detail=f"Entry skipped, next day open {self._money(fill)} {reason}",
                tag=self._tag(assessment),
            )
            self._close_window_if_due(run)
            return False

        if assessment.quality == EntryQuality.GOOD:
            quality_note = ""
        elif assessment.quality == EntryQuality.GAP_DOWN:
            quality_note = f" (GAP_DOWN: opened {abs(assessment.premium_pct):.1f}% below entry)"
        else:
            quality_note = f" ({assessment.quality.value}: +{assessment.premium_pct:.1f}% premium, size reduced)"
        self._open_position(
            run,
            price=fill,
            qty=qty,
            detail=(
                f"Bought {qty} shares at open {self._money(fill)}{quality_note}. "
                f"Signal was {self._money(state.signal_close)} close on {state.signal_date}."
            ),
            tag=self._tag(assessment),
        )
        return True

    # ENTERED / PARTIAL_EXIT

    def _on_in_position(self, run: _Run) -> bool:
        plan, state, bar = run.plan, run.state, run.bar
        self._track_peak(state, bar)

        if bar.low <= state.trailing_stop:
            self._stop_out(run)
            return False

        booked = False
        if state.status == SimulationStatus.ENTERED and bar.high >= plan.target1:
            self._book_t1(run)
            booked = True
        if (
            state.status == SimulationStatus.PARTIAL_EXIT
            and not state.t2_booked
            and plan.target2 is not None
            and bar.high >= plan.target2
        ):
            self._book_t2(run)
            booked = True
        if (
            state.status == SimulationStatus.PARTIAL_EXIT
            and state.t2_booked
            and plan.target3 is not None
            and bar.high >= plan.target3
        ):
            self._book_t3(run)
            booked = True

        if (
            not booked
            and state.status.in_position
            and state.qty_remaining > 0
            and run.day_count >= plan.max_hold_days
        ):
            self._apply_week_end_rule(run)
        return False

    def _stop_out(self, run: _Run) -> None:
        state = run.state
        exit_price = state.trailing_stop
        qty = state.qty_remaining
        pnl = self._exit(state, exit_price, qty)
        if state.trailing_stop > run.plan.stop:
            event_type = EventType.TRAILING_STOP
            detail = f"Trailing stop hit at {self._money(exit_price)}, exited {qty} shares (profit locked from targets)"
        else:
            event_type = EventType.STOPPED_OUT
            detail = f"Stop loss hit at {self._money(exit_price)}, exited {qty} shares"
        state.status = SimulationStatus.STOPPED_OUT
        self._record(run, event_type, price=exit_price, qty=qty, pnl=pnl, detail=detail)

    def _book_t1(self, run: _Run) -> None:
        plan, state = run.plan, run.state
        qty = state.qty_total // 2
        pnl = self._exit(state, plan.target1, qty)
        self._raise_stop(state, state.entry_price)
        state.status = SimulationStatus.PARTIAL_EXIT
        self._record(
            run,
            EventType.T1_HIT,
            price=plan.target1,
            qty=qty,
            pnl=pnl,
            detail=(
                f"T1 hit. Booked 50% ({qty} shares) at {self._money(plan.target1)}, "
                f"{self._money(pnl)} locked. Stop moved to {self._money(state.trailing_stop)}"
            ),
        )

    def _book_t2(self, run: _Run) -> None:
        plan, state = run.plan, run.state
        if plan.target3 is not None:
            qty = state.qty_remaining * T2_BOOK_PERCENT // 100
        else:
            qty = state.qty_remaining
        pnl = self._exit(state, plan.target2, qty)
        state.t2_booked = True
        if plan.target3 is not None:
            self._raise_stop(state, plan.target2)
            detail = (
                f"T2 hit. Booked 70% ({qty} shares) at {self._money(plan.target2)}, holding "
                f"{state.qty_remaining} for T3 {self._money(plan.target3)}. "
                f"Stop moved to {self._money(state.trailing_stop)}"
            )
        else:
            state.status = SimulationStatus.FULL_EXIT
            detail = f"T2 hit. Booked all {qty} shares at {self._money(plan.target2)}, full target"
        self._record(run, EventType.T2_HIT, price=plan.target2, qty=qty, pnl=pnl, detail=detail)

    def _book_t3(self, run: _Run) -> None:
        plan, state = run.plan, run.state
        qty = state.qty_remaining
        pnl = self._exit(state, plan.target3, qty)
        state.status = SimulationStatus.FULL_EXIT
        self._record(
            run,
            EventType.T3_HIT,
            price=plan.target3,
            qty=qty,
            pnl=pnl,
            detail=f"T3 hit. Booked remaining {qty} shares at {self._money(plan.target3)}, full target",
        )

    def _apply_week_end_rule(self, run: _Run) -> None:
        plan, state, bar = run.plan, run.state, run.bar
        rule = plan.week_end_rule

        if rule == WeekEndRule.EXIT_IF_NO_T1:
            if state.status != SimulationStatus.ENTERED:
                return
            qty = state.qty_remaining
            pnl = self._exit(state, bar.close, qty)
            state.status = SimulationStatus.FULL_EXIT
            self._record(
                run,
                EventType.WEEK_END_EXIT,
                price=bar.close,
                qty=qty,
                pnl=pnl,
                detail=(
                    f"Hold period over, T1 not reached. Exited {qty} shares at {self._money(bar.close)} "
                    f"({'profit' if pnl >= 0 else 'loss'})"
                ),
            )
            return

        if rule == WeekEndRule.HOLD_IF_ABOVE_ENTRY:
            if bar.close >= state.entry_price:
                self._record(
                    run,
                    EventType.WEEK_END_HOLD,
                    price=bar.close,
                    detail=f"Hold period over, close above entry {self._money(state.entry_price)}, position held",
                )
                return
            qty = state.qty_remaining
            pnl = self._exit(state, bar.close, qty)
            state.status = SimulationStatus.FULL_EXIT
            self._record(
                run,
                EventType.WEEK_END_EXIT,
                price=bar.close,
                qty=qty,
                pnl=pnl,
                detail=f"Hold period over, close below entry. Exited {qty} shares at {self._money(bar.close)}",
            )
            return

        if rule == WeekEndRule.TRAIL_OR_EXIT and run.prev_bar is not None:
            if self._raise_stop(state, run.prev_bar.low):
                self._record(
                    run,
                    EventType.TRAIL_TIGHTENED,
                    price=state.trailing_stop,
                    detail=f"Hold period over, trailing stop tightened to {self._money(state.trailing_stop)} (previous day's low)",
                )

    # shared transitions

    def _open_position(
        self,
        run: _Run,
        price: float,
        qty: int,
        detail: str,
        tag: Optional[EntryQualityTag],
    ) -> None:
        state = run.state
        state.entry_price = price
        state.entry_date = run.bar.date
        state.qty_total = qty
        state.qty_remaining = qty
        state.qty_exited = 0
        self._raise_stop(state, run.plan.stop)
        state.status = SimulationStatus.ENTERED
        self._reset_signal(state)
        self._record(run, EventType.ENTRY, price=price, qty=qty, detail=detail, tag=tag)

    def _expire(self, run: _Run) -> None:
        plan = run.plan
        how = "close above" if plan.entry_confirmation == EntryConfirmation.CLOSE_ABOVE else "touch at"
        run.state.status = SimulationStatus.EXPIRED
        self._record(
            run,
            EventType.EXPIRED,
            price=run.bar.close,
            detail=(
                f"Entry window expired, no {how} {self._money(plan.entry)} "
                f"within {plan.entry_window_days} days"
            ),
        )

    def _close_window_if_due(self, run: _Run) -> None:
        if run.state.status == SimulationStatus.WAITING and run.day_count >= run.plan.entry_window_days:
            self._expire(run)

    @staticmethod
    def _exit(state: SimulationState, price: float, qty: int) -> float:
        pnl = (price - state.entry_price) * qty
        state.realized_pnl += pnl
        state.qty_remaining -= qty
        state.qty_exited += qty
        return pnl

    @staticmethod
    def _raise_stop(state: SimulationState, level: float) -> bool:
        if level > state.trailing_stop:
            state.trailing_stop = level
            return True
        return False

    @staticmethod
    def _track_peak(state: SimulationState, bar: Bar) -> None:
        if bar.high > state.peak_price:
            state.peak_price = bar.high
            state.peak_gain_pct = (bar.high - state.entry_price) / state.entry_price * 100.0

    @staticmethod
    def _reset_signal(state: SimulationState) -> None:
        state.signal_date = None
        state.signal_close = None
        state.planned_qty = 0

    @staticmethod
    def _tag(assessment: EntryAssessment) -> EntryQualityTag:
        return EntryQualityTag(quality=assessment.quality, premium_pct=assessment.premium_pct)

    def _record(
        self,
        run: _Run,
        event_type: EventType,
        price: float,
        detail: str,
        qty: int = 0,
        pnl: float = 0.0,
        tag: Optional[EntryQualityTag] = None,
    ) -> None:
        event = Event(
            date=run.bar.date,
            type=event_type,
            price=price,
            qty=qty,
            pnl=round(pnl, 2),
            detail=detail,
            entry_quality=tag,
        )
        run.state.events.append(event)
        logger.debug("%s %s %s: %s", run.plan.symbol or "plan", event.date, event_type.value, detail)

    def _money(self, value: float) -> str:
        return f"{self.config.currency}{value:,.2f}"

    @staticmethod
    def _finalize(state: SimulationState, mark_price: Optional[float]) -> None:
        if state.qty_remaining > 0 and state.entry_price is not None and mark_price is not None:
            state.unrealized_pnl = (mark_price - state.entry_price) * state.qty_remaining
        state.total_pnl = round(state.realized_pnl + state.unrealized_pnl, 2)
        state.realized_pnl = round(state.realized_pnl, 2)
        state.unrealized_pnl = round(state.unrealized_pnl, 2)
        state.total_return_pct = round(state.total_pnl / state.capital * 100.0, 2)
        state.peak_gain_pct = round(state.peak_gain_pct, 2)


def simulate(
    plan: LevelPlan,
    bars: Iterable[Bar],
    current_price: Optional[float] = None,
    config: Optional[SimulatorConfig] = None,
) -> SimulationState:
    return TradeSimulator(config).simulate(plan, bars, current_price)

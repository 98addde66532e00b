"""Daily status, flags and alert decisions for tracked plans."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from swingtrack.quality.classifier import EntryQualityClassifier, planned_quantity, resize_for_risk
from swingtrack.quality.models import EntryQuality
from swingtrack.tracking.models import DailySnapshot, TrackingAlert, TrackingFlag, TrackingLevels, TrackingStatus

logger = logging.getLogger("swingtrack.tracking")

DEFAULT_CAPITAL = 100000.0
RETEST_ARCHETYPE = "52w_breakout"

STATUS_ALERTS = {
    (TrackingStatus.WATCHING, TrackingStatus.ENTRY_ZONE): "Stock entered buy zone. Should user enter now?",
    (TrackingStatus.WATCHING, TrackingStatus.RETEST_ZONE): "52W breakout stock retesting old high. Is retest holding?",
    (TrackingStatus.APPROACHING, TrackingStatus.ENTRY_ZONE): "Stock moved from approaching to entry zone.",
    (TrackingStatus.ENTRY_ZONE, TrackingStatus.ABOVE_ENTRY): "Entry triggered. Confirm position or caution?",
}

ANY_STATUS_ALERTS = {
    TrackingStatus.STOPPED_OUT: "Stop hit. Confirm exit or false break?",
    TrackingStatus.TARGET1_HIT: "T1 reached. 50% booked, trailing remainder.",
    TrackingStatus.TARGET2_HIT: "T2 reached. Full exit recommended.",
    TrackingStatus.TARGET3_HIT: "T3 reached. Extension target achieved, exit remainder.",
}

FLAG_ALERTS = {
    TrackingFlag.RSI_DANGER: "RSI crossed 72. Risk of overextension.",
    TrackingFlag.RSI_EXIT: "RSI crossed 75. Strong exit signal.",
    TrackingFlag.VOLUME_SPIKE: "Unusual volume (2x+ average). Distribution or accumulation?",
    TrackingFlag.GAP_DOWN: "Significant gap down (>3%). Reassess stop.",
}

BELOW_ENTRY_STATUSES = frozenset({TrackingStatus.WATCHING, TrackingStatus.RETEST_ZONE, TrackingStatus.APPROACHING})


def _distance_from_entry_pct(price: float, entry: float) -> float:
    return (price - entry) / entry * 100.0


def tracking_status(price: float, levels: TrackingLevels) -> TrackingStatus:
    """Classify ``price`` against the plan levels, terminal states first."""
    if price < levels.stop:
        return TrackingStatus.STOPPED_OUT
    if levels.target3 is not None and price >= levels.target3:
        return TrackingStatus.TARGET3_HIT
    if levels.target2 is not None and price >= levels.target2:
        return TrackingStatus.TARGET2_HIT
    if levels.target1 is not None and price >= levels.target1:
        return TrackingStatus.TARGET1_HIT

    entry_low, entry_high = levels.entry_low, levels.entry_high
    if entry_low <= price <= entry_high:
        return TrackingStatus.ENTRY_ZONE

    if levels.archetype == RETEST_ARCHETYPE and levels.stop * 1.02 <= price < entry_low:
        return TrackingStatus.RETEST_ZONE

    upper = levels.target1 if levels.target1 is not None else levels.target2
    if upper is not None and entry_high < price < upper:
        return TrackingStatus.ABOVE_ENTRY

    distance = _distance_from_entry_pct(price, levels.entry)
    if 0 < distance <= 2:
        return TrackingStatus.APPROACHING
    return TrackingStatus.WATCHING


def tracking_flags(snapshot: DailySnapshot, levels: TrackingLevels) -> list[TrackingFlag]:
    flags: list[TrackingFlag] = []
    if snapshot.daily_rsi is not None:
        if snapshot.daily_rsi >= 75:
            flags.append(TrackingFlag.RSI_EXIT)
        elif snapshot.daily_rsi >= 72:
            flags.append(TrackingFlag.RSI_DANGER)

    if (
        snapshot.avg_volume_50d
        and snapshot.avg_volume_50d > 0
        and snapshot.todays_volume is not None
        and snapshot.todays_volume >= snapshot.avg_volume_50d * 2
    ):
        flags.append(TrackingFlag.VOLUME_SPIKE)

    distance = _distance_from_entry_pct(snapshot.ltp, levels.entry)
    if 0 < distance <= 2:
        flags.append(TrackingFlag.APPROACHING_ENTRY)

    if snapshot.prev_close and snapshot.prev_close > 0 and snapshot.open and snapshot.open > 0:
        if snapshot.open < snapshot.prev_close * 0.97:
            flags.append(TrackingFlag.GAP_DOWN)

    logger.debug("Flags at %.2f: %s", snapshot.ltp, [flag.value for flag in flags])
    return flags


def entry_signal_reason(
    close: float,
    levels: TrackingLevels,
    classifier: Optional[EntryQualityClassifier] = None,
    capital: float = DEFAULT_CAPITAL,
) -> str:
    """Alert text for a close at or above entry; the buy happens at the next open."""
    classifier = classifier or EntryQualityClassifier()
    assessment = classifier.classify(close, levels.entry, levels.stop)
    qty = planned_quantity(capital, levels.entry)
    premium = f"{assessment.premium_pct:+.2f}%"

    if assessment.quality == EntryQuality.OVEREXTENDED:
        return (
            f"Entry signal skipped. Close {close:.2f} is {premium} above entry {levels.entry:.2f}. "
            "Too extended, wait for pullback."
        )
    if assessment.quality == EntryQuality.EXTENDED:
        adjusted = resize_for_risk(qty, levels.entry, levels.stop, close)
        return (
            f"Entry signal confirmed (EXTENDED {premium}). Close {close:.2f} above entry {levels.entry:.2f}. "
            f"Buy {adjusted} shares (reduced from {qty}) at tomorrow's open. Stop: {levels.stop:.2f}."
        )
    return (
        f"Entry signal confirmed ({assessment.quality.value} {premium}). Close {close:.2f} at entry "
        f"{levels.entry:.2f}. Buy {qty} shares at tomorrow's open. Stop: {levels.stop:.2f}."
    )


def detect_change(
    new_status: TrackingStatus,
    old_status: Optional[TrackingStatus],
    new_flags: Iterable[TrackingFlag],
    old_flags: Iterable[TrackingFlag] = (),
    close: Optional[float] = None,
    levels: Optional[TrackingLevels] = None,
    classifier: Optional[EntryQualityClassifier] = None,
    capital: float = DEFAULT_CAPITAL,
) -> TrackingAlert:
    """Decide whether today's status, close or flags deserve an alert.

    Checked in order: a status transition with a known message, a close that
    confirms entry after a below-entry status, then any flag not present
    yesterday.
    """
    if new_status != old_status:
        reason = STATUS_ALERTS.get((old_status, new_status)) or ANY_STATUS_ALERTS.get(new_status)
        if reason is not None:
            return TrackingAlert(True, reason)

    if close is not None and levels is not None and old_status in BELOW_ENTRY_STATUSES and close >= levels.entry:
        reason = entry_signal_reason(close, levels, classifier, capital)
        logger.info("Entry signal on close %.2f >= %.2f", close, levels.entry)
        return TrackingAlert(True, reason)

    previous = set(old_flags)
    for flag in new_flags:
        if flag in previous:
            continue
        reason = FLAG_ALERTS.get(flag)
        if reason is not None:
            return TrackingAlert(True, reason)
    return TrackingAlert(False)


def track_day(
    snapshot: DailySnapshot,
    levels: TrackingLevels,
    old_status: Optional[TrackingStatus] = None,
    old_flags: Iterable[TrackingFlag] = (),
    classifier: Optional[EntryQualityClassifier] = None,
) -> tuple[TrackingStatus, list[TrackingFlag], TrackingAlert]:
    status = tracking_status(snapshot.ltp, levels)
    flags = tracking_flags(snapshot, levels)
    alert = detect_change(status, old_status, flags, old_flags, snapshot.ltp, levels, classifier)
    return status, flags, alert

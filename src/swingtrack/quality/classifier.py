"""Grade a fill against the planned entry and keep rupee risk constant."""

from __future__ import annotations

import math
from typing import Optional

from swingtrack.quality.models import EntryAssessment, EntryQuality, QualityThresholds

_RECOMMENDATIONS = {
    EntryQuality.GOOD: "Entry confirmed. Fill near entry level, ideal.",
    EntryQuality.GAP_DOWN: "Entry confirmed below the planned level after a gap down.",
    EntryQuality.EXTENDED: "Entry confirmed but extended. Position reduced to keep the same risk.",
    EntryQuality.OVEREXTENDED: "Fill too far above entry. Skip and wait for a pullback.",
    EntryQuality.BELOW_STOP: "Fill below the stop. Do not enter.",
}


def premium_pct(fill: float, planned_entry: float) -> float:
    return (fill - planned_entry) / planned_entry * 100.0


class EntryQualityClassifier:
    def __init__(self, thresholds: Optional[QualityThresholds] = None) -> None:
        self.thresholds = thresholds or QualityThresholds()

    def classify(self, fill: float, planned_entry: float, stop: float) -> EntryAssessment:
        if planned_entry <= 0:
            raise ValueError("planned_entry must be positive")

        premium = premium_pct(fill, planned_entry)
        original_risk = planned_entry - stop
        fill_risk = fill - stop
        adjusted_rr = round(fill_risk / original_risk, 2) if original_risk > 0 else None

        if fill < stop:
            quality = EntryQuality.BELOW_STOP
        elif premium > self.thresholds.extended_max_pct:
            quality = EntryQuality.OVEREXTENDED
        elif premium > self.thresholds.good_max_pct:
            # resizing needs a positive risk on both legs
            if fill_risk <= 0 or original_risk <= 0:
                quality = EntryQuality.OVEREXTENDED
            else:
                quality = EntryQuality.EXTENDED
        elif premium >= 0:
            quality = EntryQuality.GOOD
        else:
            quality = EntryQuality.GAP_DOWN

        return EntryAssessment(
            quality=quality,
            premium_pct=round(premium, 2),
            adjusted_rr=adjusted_rr,
            recommendation=_RECOMMENDATIONS[quality],
        )

    def size(self, planned_qty: int, fill: float, planned_entry: float, stop: float) -> int:
        """Quantity for ``fill`` that risks the same amount as ``planned_qty`` at entry."""
        assessment = self.classify(fill, planned_entry, stop)
        if assessment.skips_entry:
            return 0
        if assessment.quality != EntryQuality.EXTENDED:
            return planned_qty
        return resize_for_risk(planned_qty, planned_entry, stop, fill)


def resize_for_risk(planned_qty: int, planned_entry: float, stop: float, fill: float) -> int:
    original_risk = planned_entry - stop
    fill_risk = fill - stop
    if original_risk <= 0 or fill_risk <= 0:
        return 0
    return math.floor(planned_qty * original_risk / fill_risk)


def planned_quantity(capital: float, entry: float) -> int:
    if entry <= 0:
        return 0
    return math.floor(capital / entry)

"""Entry quality models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class EntryQuality(str, Enum):
    GOOD = "GOOD"
    GAP_DOWN = "GAP_DOWN"
    EXTENDED = "EXTENDED"
    OVEREXTENDED = "OVEREXTENDED"
    BELOW_STOP = "BELOW_STOP"

    @property
    def skips_entry(self) -> bool:
        return self in {EntryQuality.OVEREXTENDED, EntryQuality.BELOW_STOP}


@dataclass(frozen=True)
class QualityThresholds:
    good_max_pct: float = 2.0
    extended_max_pct: float = 5.0


@dataclass(frozen=True)
class EntryAssessment:
    quality: EntryQuality
    premium_pct: float
    adjusted_rr: Optional[float]
    recommendation: str

    @property
    def skips_entry(self) -> bool:
        return self.quality.skips_entry

"""Entry quality classification shared by replay and live alerts."""

from swingtrack.quality.classifier import (
    EntryQualityClassifier,
    planned_quantity,
    premium_pct,
    resize_for_risk,
)
from swingtrack.quality.models import EntryAssessment, EntryQuality, QualityThresholds

__all__ = [
    "EntryAssessment",
    "EntryQuality",
    "EntryQualityClassifier",
    "QualityThresholds",
    "planned_quantity",
    "premium_pct",
    "resize_for_risk",
]

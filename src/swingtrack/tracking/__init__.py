"""Daily tracking of plan levels."""

from swingtrack.tracking.models import DailySnapshot, TrackingAlert, TrackingFlag, TrackingLevels, TrackingStatus
from swingtrack.tracking.status import detect_change, entry_signal_reason, track_day, tracking_flags, tracking_status

__all__ = [
    "DailySnapshot",
    "TrackingAlert",
    "TrackingFlag",
    "TrackingLevels",
    "TrackingStatus",
    "detect_change",
    "entry_signal_reason",
    "track_day",
    "tracking_flags",
    "tracking_status",
]

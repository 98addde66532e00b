"""Monitoring exports."""

from swingtrack.monitoring.audit import AuditLog
from swingtrack.monitoring.logs import setup_logging
from swingtrack.monitoring.monitor import Monitor
from swingtrack.monitoring.notifier import LogNotifier, MemoryNotifier, Notifier
from swingtrack.monitoring.summary import event_rows, state_summary

__all__ = [
    "AuditLog",
    "LogNotifier",
    "MemoryNotifier",
    "Monitor",
    "Notifier",
    "event_rows",
    "setup_logging",
    "state_summary",
]

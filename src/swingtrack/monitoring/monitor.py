"""Monitoring and alert routing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from swingtrack.monitoring.notifier import Notifier
from swingtrack.simulator.models import Event
from swingtrack.tracking.models import TrackingAlert
from swingtrack.triggers.models import CheckAction, CheckResult


@dataclass
class Monitor:
    notifier: Notifier

    def dispatch_events(self, events: Iterable[Event], symbol: Optional[str] = None) -> int:
        """Forward replay events in order; returns how many were sent."""
        label = f"{symbol} " if symbol else ""
        sent = 0
        for event in events:
            self.notifier.notify(event.type.value, f"{label}{event.date.isoformat()} {event.detail}")
            sent += 1
        return sent

    def trigger_decision(self, plan_id: str, result: CheckResult) -> None:
        if result.action == CheckAction.CONTINUE_MONITORING:
            return
        message = f"{plan_id}: {result.reason or result.action.value}"
        if result.expired_trigger:
            message += f" (trigger {result.expired_trigger})"
        self.notifier.notify(result.action.value.upper(), message)
        for warning in result.warnings:
            self.notifier.notify("WARNING", f"{plan_id}: [{warning.severity}] {warning.code} {warning.text}")

    def tracking_alert(self, symbol: str, alert: TrackingAlert) -> None:
        if alert.trigger and alert.reason:
            self.notifier.notify("TRACKING", f"{symbol}: {alert.reason}")

    def data_gap(self, symbol: str, reason: str) -> None:
        self.notifier.notify("DATA_GAP", f"{symbol}: {reason}")

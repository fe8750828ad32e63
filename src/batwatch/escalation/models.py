"""Data models for the escalation state machine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from batwatch.common.enums import Band, SuspendMethod, Urgency

UNKNOWN: int = -1

# Suppression windows are measured from the last alert, not the last poll
CRITICAL_ALERT_WINDOW: float = 30.0
WARNING_ALERT_WINDOW: float = 120.0

# Time the user gets to plug in a charger before the forced suspend
GRACE_DELAY: float = 10.0

# Display time for non-critical notifications
NORMAL_NOTIFY_TIMEOUT: int = 5


@dataclass(frozen=True)
class EscalationState:
    """Process-lifetime record of what the engine has already done.

    Replaced, never mutated, by each engine step. Timestamps are seconds
    on whatever clock the caller passes as ``now``.
    """

    last_percentage: int = UNKNOWN
    last_charging_state: int = UNKNOWN
    last_alert_time: float | None = None
    alert_active: bool = False

    # Grace sequence bookkeeping
    grace_pending: bool = False
    grace_started_at: float | None = None
    grace_percentage: int | None = None

    last_suspend_ok: bool | None = None

    def alert_due(self, now: float, window: float) -> bool:
        """Return True if the suppression window since the last alert has passed."""
        return self.last_alert_time is None or now - self.last_alert_time > window


# ── Actions ──────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class UpdateDisplay:
    """Refresh the passive indicator (tray icon and tooltip)."""

    band: Band
    percentage: int | None = None
    status_label: str = ""


@dataclass(frozen=True)
class Notify:
    """Show a desktop notification."""

    title: str
    message: str
    urgency: Urgency = Urgency.NORMAL
    timeout_seconds: int = NORMAL_NOTIFY_TIMEOUT


@dataclass(frozen=True)
class ImpossibleAlert:
    """Show an alert that stays on top until acknowledged."""

    title: str
    message: str


@dataclass(frozen=True)
class DismissAlert:
    """Close any alert that is still open."""


@dataclass(frozen=True)
class ScheduleRecheck:
    """Re-sample after ``delay_seconds`` and resolve the grace sequence."""

    delay_seconds: float
    percentage: int


@dataclass(frozen=True)
class Suspend:
    """Suspend the system, starting with ``method``."""

    method: SuspendMethod


Action = Union[UpdateDisplay, Notify, ImpossibleAlert, DismissAlert, ScheduleRecheck, Suspend]

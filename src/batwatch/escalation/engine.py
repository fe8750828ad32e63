"""Escalation state machine for battery readings.

The engine turns a reading plus the current settings and state into a new
state and a list of actions. It performs no I/O and never raises, so the
same arguments always produce the same result.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Final

from batwatch.common.enums import Band, SuspendMethod, Urgency
from batwatch.escalation.models import (
    CRITICAL_ALERT_WINDOW,
    GRACE_DELAY,
    UNKNOWN,
    WARNING_ALERT_WINDOW,
    Action,
    DismissAlert,
    EscalationState,
    ImpossibleAlert,
    Notify,
    ScheduleRecheck,
    Suspend,
    UpdateDisplay,
)
from batwatch.settings import MonitorSettings
from batwatch.system.status import BatteryReading

logger: Final = logging.getLogger(__name__)

Step = tuple[EscalationState, list[Action]]


class EscalationEngine:
    """Classifies readings and decides when to nag, alert and suspend.

    Rules, in precedence order:
    - Absent battery: only the display is updated
    - Charging: any open alert is dismissed and a pending suspend is aborted
    - Critical: alert at most once per critical window, then start the
      grace sequence if forced suspend is enabled
    - Warning: alert at most once per warning window
    - Normal: any open alert is dismissed

    The grace sequence is finished by resolve_grace(), which the caller runs
    after the ScheduleRecheck delay with a fresh reading.
    """

    def __init__(
        self,
        critical_window: float = CRITICAL_ALERT_WINDOW,
        warning_window: float = WARNING_ALERT_WINDOW,
        grace_delay: float = GRACE_DELAY,
    ) -> None:
        self.critical_window = critical_window
        self.warning_window = warning_window
        self.grace_delay = grace_delay

    @staticmethod
    def classify(reading: BatteryReading, settings: MonitorSettings) -> Band:
        """Return the severity band of a reading.

        Args:
            reading: Battery reading to classify
            settings: Thresholds to classify against

        Returns:
            Band, with Absent and Charging taking precedence over the level
        """
        if not reading.present:
            return Band.ABSENT
        if reading.charging:
            return Band.CHARGING
        if reading.percentage <= settings.critical_level:
            return Band.CRITICAL
        if reading.percentage <= settings.warning_level:
            return Band.WARNING
        return Band.NORMAL

    def evaluate(
        self,
        reading: BatteryReading,
        settings: MonitorSettings,
        state: EscalationState,
        now: float,
    ) -> Step:
        """Run one evaluation step.

        Args:
            reading: Fresh battery reading
            settings: Current settings
            state: State produced by the previous step
            now: Current time in seconds

        Returns:
            Tuple of (new_state, actions)
        """
        band = self.classify(reading, settings)

        if band is Band.ABSENT:
            state = replace(state, last_percentage=UNKNOWN, last_charging_state=UNKNOWN)
            return state, [UpdateDisplay(Band.ABSENT)]

        actions: list[Action] = [UpdateDisplay(band, reading.percentage, reading.status_label)]

        if band is Band.CHARGING:
            if state.grace_pending:
                logger.info("Charger connected, forced suspend aborted")
            state = self._clear_alert(state, actions)
            state = self._cancel_grace(state)
        elif band is Band.CRITICAL:
            state = self._critical(reading, settings, state, now, actions)
        elif band is Band.WARNING:
            state = self._warning(reading, settings, state, now, actions)
        else:
            state = self._clear_alert(state, actions)

        return self._remember(state, reading), actions

    def resolve_grace(
        self,
        reading: BatteryReading,
        settings: MonitorSettings,
        state: EscalationState,
        now: float,
    ) -> Step:
        """Finish the grace sequence with a reading taken after the delay.

        Suspends only if the battery is still critical, still discharging and
        forced suspend is still enabled.

        Args:
            reading: Reading taken after the grace delay
            settings: Current settings
            state: Current state
            now: Current time in seconds

        Returns:
            Tuple of (new_state, actions)
        """
        if not state.grace_pending:
            logger.debug("No grace sequence pending, nothing to resolve")
            return state, []

        waited = now - state.grace_started_at if state.grace_started_at is not None else 0.0
        state = self._cancel_grace(state)

        if not reading.present:
            logger.warning("Battery unreadable on re-check, forced suspend aborted")
            return state, []

        state = self._remember(state, reading)

        if reading.charging:
            logger.info("Charger connected during grace period, forced suspend aborted")
            return state, []
        if reading.percentage > settings.critical_level:
            logger.info("Battery recovered to %d%%, forced suspend aborted", reading.percentage)
            return state, []
        if not settings.force_suspend:
            logger.info("Forced suspend disabled during grace period")
            return state, []

        method = settings.suspend_method
        if not isinstance(method, SuspendMethod):
            logger.error("Unknown suspend method %r, not suspending", method)
            return state, []

        logger.warning(
            "Battery still at %d%% after %.0fs grace period, suspending via %s",
            reading.percentage,
            waited,
            method.name,
        )
        return state, [
            Notify(
                "SYSTEM SUSPENDING NOW!",
                "Battery critically low! Suspending to prevent data loss!",
                Urgency.CRITICAL,
                settings.alert_timeout,
            ),
            Suspend(method),
        ]

    def abort_grace(self, state: EscalationState) -> EscalationState:
        """Drop a pending grace sequence without suspending.

        Used when the re-check will never run (shutdown, or the re-check
        itself failed), so the next critical alert can start a new one.
        """
        if state.grace_pending:
            logger.info("Pending forced suspend dropped")
        return self._cancel_grace(state)

    def record_suspend(
        self,
        settings: MonitorSettings,
        state: EscalationState,
        ok: bool,
        detail: str = "",
    ) -> Step:
        """Record the outcome of a suspend request.

        Args:
            settings: Current settings
            state: Current state
            ok: Whether any suspend method succeeded
            detail: Description of the failed attempts

        Returns:
            Tuple of (new_state, actions); a failure yields a critical notification
        """
        state = replace(state, last_suspend_ok=ok)
        if ok:
            return state, []
        return state, [
            Notify(
                "SUSPEND FAILED",
                f"Could not suspend the system ({detail}).\n\n"
                "Plug in your charger or save your work now!",
                Urgency.CRITICAL,
                settings.alert_timeout,
            )
        ]

    # ── branches ─────────────────────────────────────────────────────────────
    def _critical(
        self,
        reading: BatteryReading,
        settings: MonitorSettings,
        state: EscalationState,
        now: float,
        actions: list[Action],
    ) -> EscalationState:
        if not state.alert_due(now, self.critical_window):
            logger.debug("Critical alert suppressed (%d%%)", reading.percentage)
            return state

        pct = reading.percentage
        title = f"CRITICAL BATTERY: {pct}%"
        message = f"Your battery is critically low at {pct}%!\n\nPLUG IN YOUR CHARGER IMMEDIATELY!"
        if settings.force_suspend:
            message += (
                f"\n\nSystem will suspend in {self.grace_delay:.0f} seconds to prevent data loss!"
            )
        self._alert(title, message, settings, actions)
        state = replace(state, alert_active=True, last_alert_time=now)

        if settings.force_suspend and not state.grace_pending:
            logger.warning("Battery critical at %d%%, grace period started", pct)
            actions.append(ScheduleRecheck(self.grace_delay, pct))
            state = replace(state, grace_pending=True, grace_started_at=now, grace_percentage=pct)
        return state

    def _warning(
        self,
        reading: BatteryReading,
        settings: MonitorSettings,
        state: EscalationState,
        now: float,
        actions: list[Action],
    ) -> EscalationState:
        if not state.alert_due(now, self.warning_window):
            logger.debug("Low battery alert suppressed (%d%%)", reading.percentage)
            return state

        pct = reading.percentage
        title = f"LOW BATTERY: {pct}%"
        message = f"Your battery is getting low at {pct}%!\n\nPlease plug in your charger soon!"
        if settings.force_suspend:
            message += (
                f"\n\nSystem will force suspend at {settings.critical_level}% "
                "to protect your data!"
            )
        self._alert(title, message, settings, actions)
        return replace(state, alert_active=True, last_alert_time=now)

    @staticmethod
    def _alert(
        title: str, message: str, settings: MonitorSettings, actions: list[Action]
    ) -> None:
        actions.append(Notify(title, message, Urgency.CRITICAL, settings.alert_timeout))
        if settings.impossible_alerts:
            actions.append(ImpossibleAlert(title, message))

    @staticmethod
    def _clear_alert(state: EscalationState, actions: list[Action]) -> EscalationState:
        if state.alert_active:
            actions.append(DismissAlert())
        return replace(state, alert_active=False)

    @staticmethod
    def _cancel_grace(state: EscalationState) -> EscalationState:
        return replace(state, grace_pending=False, grace_started_at=None, grace_percentage=None)

    @staticmethod
    def _remember(state: EscalationState, reading: BatteryReading) -> EscalationState:
        return replace(
            state,
            last_percentage=reading.percentage,
            last_charging_state=int(reading.charging),
        )

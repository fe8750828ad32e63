# filepath: src/batwatch/controller.py
"""Core controller for the battery watchdog."""

from __future__ import annotations

import logging
import signal
import time
from collections.abc import Callable, Sequence
from dataclasses import replace
from pathlib import Path
from types import FrameType
from typing import Any, Final

from batwatch.common.enums import SuspendMethod
from batwatch.display.notify import DesktopNotifier, LogPresenter
from batwatch.display.protocols import Presenter
from batwatch.errors import AllMethodsFailed, PersistenceError
from batwatch.escalation.engine import EscalationEngine
from batwatch.escalation.models import (
    Action,
    DismissAlert,
    EscalationState,
    Notify,
    ScheduleRecheck,
    Suspend,
)
from batwatch.power import SuspendAttempt, SuspendExecutor
from batwatch.scheduler import PollLoop
from batwatch.settings import MonitorSettings, default_config_path
from batwatch.system.sampler import BatterySampler, SysfsBatterySampler
from batwatch.system.status import BatteryReading

logger: Final = logging.getLogger(__name__)


class MonitorContext:
    """Owns everything the watchdog needs at runtime.

    This class ties the pieces together:
    - The live settings and the file they persist to
    - The escalation state, replaced after every engine step
    - The poll loop, including the pending grace re-check
    - The sampler, the suspend executor and the presenters

    Every evaluation runs on the poll loop's thread, one at a time. Actions
    returned by the engine are dispatched here: ScheduleRecheck becomes a
    timer continuation, Suspend goes to the executor, and everything else is
    handed to the presenters.
    """

    def __init__(
        self,
        settings: MonitorSettings | None = None,
        config_path: Path | None = None,
        sampler: BatterySampler | None = None,
        executor: SuspendExecutor | None = None,
        presenters: Sequence[Presenter] | None = None,
        engine: EscalationEngine | None = None,
        timefunc: Callable[[], float] = time.monotonic,
        delayfunc: Callable[[float], object] | None = None,
        debug: bool = False,
    ) -> None:
        """Initialize the monitor.

        Args:
            settings: Settings to use (default: loaded from config_path)
            config_path: Settings file (default: default_config_path())
            sampler: Battery sampler (default: sysfs)
            executor: Suspend executor (default: external commands)
            presenters: Action presenters (default: log + desktop notifications)
            engine: Escalation engine (default: standard windows)
            timefunc: Clock for the poll loop
            delayfunc: Blocking wait for the poll loop
            debug: Enable debug logging
        """
        # Configure logging
        logging.basicConfig(
            level=logging.DEBUG if debug else logging.INFO,
            format="%(asctime)s [%(levelname)s] %(message)s",
        )

        self.config_path = config_path or default_config_path()
        self.settings = settings or MonitorSettings.load(self.config_path)
        self.state = EscalationState()
        self.engine = engine or EscalationEngine()
        self.sampler = sampler or SysfsBatterySampler()
        self.executor = executor or SuspendExecutor()
        if presenters is None:
            presenters = [LogPresenter(lambda: self.settings), DesktopNotifier()]
        self.presenters = list(presenters)

        self.loop = PollLoop(self.evaluate_now, self.settings.check_interval, timefunc, delayfunc)
        self.last_reading: BatteryReading | None = None
        self._grace_event: Any = None
        self._evaluating = False

    # ── evaluation ───────────────────────────────────────────────────────────
    def evaluate_now(self) -> list[Action]:
        """Sample the battery and run one engine step.

        Returns:
            The actions produced by the engine (already dispatched)
        """
        if self._evaluating:
            logger.debug("Evaluation already in progress, skipping")
            return []

        self._evaluating = True
        try:
            reading = self.sampler.sample()
            self.last_reading = reading
            self.state, actions = self.engine.evaluate(
                reading, self.settings, self.state, self.loop.now()
            )
            self._dispatch(actions)
            return actions
        finally:
            self._evaluating = False

    def _resolve_grace(self) -> None:
        self._grace_event = None
        self._evaluating = True
        resolved = False
        try:
            reading = self.sampler.sample()
            self.last_reading = reading
            self.state, actions = self.engine.resolve_grace(
                reading, self.settings, self.state, self.loop.now()
            )
            resolved = True
            self._dispatch(actions)
        finally:
            if not resolved:
                # Re-check failed; let the next critical alert start over
                self.state = self.engine.abort_grace(self.state)
            self._evaluating = False

    @property
    def grace_pending(self) -> bool:
        """Whether a forced suspend is waiting on its re-check."""
        return self._grace_event is not None

    # ── dispatch ─────────────────────────────────────────────────────────────
    def _dispatch(self, actions: Sequence[Action]) -> None:
        for action in actions:
            if isinstance(action, ScheduleRecheck):
                self.loop.cancel(self._grace_event)
                self._grace_event = self.loop.call_later(action.delay_seconds, self._resolve_grace)
            elif isinstance(action, Suspend):
                self._present(action)
                self._suspend(action.method)
            else:
                self._present(action)

    def _present(self, action: Action) -> None:
        for presenter in self.presenters:
            try:
                presenter.present(action)
            except Exception:
                logger.exception("Presenter %s failed", type(presenter).__name__)

    def _suspend(self, method: SuspendMethod) -> None:
        try:
            attempt = self.executor.suspend(method)
        except AllMethodsFailed as exc:
            detail = ", ".join(f"{a.method.label}: {a.exit_indicator}" for a in exc.attempts)
            self.state, follow_up = self.engine.record_suspend(
                self.settings, self.state, ok=False, detail=detail
            )
        else:
            logger.info("System resumed after suspend via %s", attempt.method.name)
            self.state, follow_up = self.engine.record_suspend(self.settings, self.state, ok=True)
        self._dispatch(follow_up)

    def _dismiss_active_alert(self) -> None:
        if self.state.alert_active:
            self._present(DismissAlert())
            self.state = replace(self.state, alert_active=False)

    # ── settings ─────────────────────────────────────────────────────────────
    def update_settings(self, **changes: Any) -> MonitorSettings:
        """Validate, persist and apply a settings change.

        Args:
            **changes: Field values to replace

        Returns:
            The settings now in effect

        Raises:
            ConfigError: If the change does not validate (nothing is applied)
        """
        return self.apply_settings(self.settings.updated(**changes))

    def apply_settings(self, new: MonitorSettings) -> MonitorSettings:
        """Swap in already-validated settings.

        The file is written first; a write failure is logged and the new
        settings still take effect. The poll timer restarts with the new
        interval and any open alert is dismissed.

        Args:
            new: The settings to apply

        Returns:
            The settings now in effect
        """
        self._dismiss_active_alert()
        try:
            new.save(self.config_path)
        except PersistenceError as exc:
            logger.error("%s (keeping in-memory settings)", exc)

        self.settings = new
        if self.loop.running:
            self.loop.reschedule(new.check_interval)
        else:
            self.loop.interval = float(new.check_interval)
        self._present(Notify("Settings Saved", "Battery monitor settings have been updated!"))
        return new

    def reload_settings(self) -> MonitorSettings:
        """Re-read the settings file and apply it if anything changed.

        Returns:
            The settings now in effect
        """
        new = MonitorSettings.load(self.config_path)
        if new == self.settings:
            logger.info("Settings unchanged after reload")
            return self.settings
        logger.info("Settings reloaded from %s", self.config_path)
        return self.apply_settings(new)

    def save_settings(self) -> None:
        """Persist the current settings, logging any failure."""
        try:
            self.settings.save(self.config_path)
        except PersistenceError as exc:
            logger.error("%s", exc)

    # ── operator actions ─────────────────────────────────────────────────────
    def test_suspend(self) -> SuspendAttempt:
        """Run the configured suspend method once, bypassing escalation.

        Returns:
            The attempt, successful or not
        """
        return self.executor.test_suspend(self.settings.suspend_method)

    def status_text(self, reading: BatteryReading | None = None) -> str:
        """Describe the current battery and settings.

        Args:
            reading: Reading to describe (default: a fresh sample)

        Returns:
            Multi-line status summary
        """
        reading = reading or self.sampler.sample()
        if not reading.present:
            return "No battery detected!"

        def on_off(flag: bool) -> str:
            return "Enabled" if flag else "Disabled"

        s = self.settings
        return "\n".join(
            [
                f"Battery: {reading.formatted_percentage}",
                f"Status: {reading.status_label}",
                f"Warning Level: {s.warning_level}%",
                f"Critical Level: {s.critical_level}%",
                f"Check Interval: {s.check_interval}s",
                f"Force Suspend: {on_off(s.force_suspend)}",
                f"Impossible Alerts: {on_off(s.impossible_alerts)}",
                f"Suspend Method: {s.suspend_method.label}",
            ]
        )

    # ── lifecycle ────────────────────────────────────────────────────────────
    def request_quit(self) -> None:
        """Stop the loop, dropping the pending tick and any grace re-check.

        Runs on the loop's thread; signal handlers use loop.request_stop().
        """
        logger.info("Shutting down battery monitor")
        self._shutdown()
        self.loop.stop()

    def _shutdown(self) -> None:
        self.loop.cancel(self._grace_event)
        self._grace_event = None
        self.state = self.engine.abort_grace(self.state)
        self._dismiss_active_alert()

    def install_signal_handlers(self) -> None:
        """Quit gracefully on SIGINT and SIGTERM, reload settings on SIGHUP."""

        def quit_handler(signum: int, frame: FrameType | None) -> None:
            logger.info("Received signal %d, shutting down gracefully", signum)
            self.loop.request_stop()

        def reload_handler(signum: int, frame: FrameType | None) -> None:
            logger.info("Received signal %d, reloading settings", signum)
            self.loop.submit(self.reload_settings)

        signal.signal(signal.SIGINT, quit_handler)
        signal.signal(signal.SIGTERM, quit_handler)
        signal.signal(signal.SIGHUP, reload_handler)

    def run(self, handle_signals: bool = True) -> int:
        """Monitor the battery until a quit is requested.

        Returns:
            Process exit status: 1 if no battery is present at startup
        """
        if not self.sampler.sample().present:
            logger.error("No battery detected! This monitor is for devices with batteries.")
            return 1

        if handle_signals:
            self.install_signal_handlers()

        self.loop.start()
        self.evaluate_now()  # initial check
        logger.info(
            "Battery monitor active (every %ds, warning %d%%, critical %d%%)",
            self.settings.check_interval,
            self.settings.warning_level,
            self.settings.critical_level,
        )
        try:
            self.loop.run()
        finally:
            self._shutdown()
            self.save_settings()
        logger.info("Battery monitor stopped")
        return 0

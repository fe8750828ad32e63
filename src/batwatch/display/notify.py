"""Presenters backed by logging and freedesktop notifications."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from typing import Final

from batwatch.common.enums import Urgency
from batwatch.display.text import indicator_for
from batwatch.escalation.models import (
    Action,
    DismissAlert,
    ImpossibleAlert,
    Notify,
    Suspend,
    UpdateDisplay,
)
from batwatch.settings import MonitorSettings

logger: Final = logging.getLogger(__name__)

APP_NAME: Final = "batwatch"


class LogPresenter:
    """Writes every action to the log."""

    def __init__(self, settings: Callable[[], MonitorSettings]) -> None:
        """Initialize with a getter for the live settings.

        Args:
            settings: Returns the settings currently in effect
        """
        self._settings = settings

    def present(self, action: Action) -> None:
        if isinstance(action, UpdateDisplay):
            icon, tooltip = indicator_for(action, self._settings())
            logger.debug("Indicator [%s] %s", icon, tooltip)
        elif isinstance(action, Notify):
            log = logger.warning if action.urgency is Urgency.CRITICAL else logger.info
            log("%s: %s", action.title, action.message.replace("\n\n", " "))
        elif isinstance(action, ImpossibleAlert):
            logger.warning("ALERT %s", action.title)
        elif isinstance(action, DismissAlert):
            logger.info("Alert dismissed")
        elif isinstance(action, Suspend):
            logger.warning("Suspend requested via %s", action.method.name)


class DesktopNotifier:
    """Shows notifications and alerts through ``notify-send``.

    Critical alerts are sent without an expiry so they stay until the user
    closes them. Display updates and dismissals are left to the tray.
    """

    def __init__(self, icon: str = "battery-caution", timeout: float = 5.0) -> None:
        """Initialize the notifier.

        Args:
            icon: Icon name shown in notifications
            timeout: Seconds to wait for notify-send
        """
        self.icon = icon
        self.timeout = timeout
        self.available = True

    def present(self, action: Action) -> None:
        if isinstance(action, Notify):
            expire_ms = action.timeout_seconds * 1000
            self._send(action.title, action.message, action.urgency, expire_ms)
        elif isinstance(action, ImpossibleAlert):
            self._send(action.title, action.message, Urgency.CRITICAL, 0)

    def _send(self, title: str, message: str, urgency: Urgency, expire_ms: int) -> None:
        if not self.available:
            return
        cmd = [
            "notify-send",
            "--app-name",
            APP_NAME,
            "--urgency",
            urgency.value,
            "--expire-time",
            str(expire_ms),
            "--icon",
            self.icon,
            title,
            message,
        ]
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError:
            logger.warning("notify-send not found, desktop notifications disabled")
            self.available = False
        except subprocess.CalledProcessError as exc:
            logger.warning("notify-send failed: %s", (exc.stderr or "").strip() or exc)
        except subprocess.TimeoutExpired:
            logger.warning("notify-send timed out")

"""Tests for the presenters and indicator text."""

from __future__ import annotations

import logging
import subprocess
from typing import Any

import pytest

from batwatch.common.enums import Band, SuspendMethod, Urgency
from batwatch.display import notify
from batwatch.display.notify import DesktopNotifier, LogPresenter
from batwatch.display.protocols import Presenter, RecordingPresenter
from batwatch.display.text import MISSING_ICON, indicator_for
from batwatch.escalation.models import (
    DismissAlert,
    ImpossibleAlert,
    Notify,
    Suspend,
    UpdateDisplay,
)
from batwatch.settings import MonitorSettings


class _FakeSubprocess:
    """Record notify-send invocations."""

    CalledProcessError = subprocess.CalledProcessError
    TimeoutExpired = subprocess.TimeoutExpired

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc
        self.calls: list[list[str]] = []

    def run(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append(cmd)
        if self.exc:
            raise self.exc
        return subprocess.CompletedProcess(cmd, 0, "", "")


@pytest.mark.parametrize(
    "action, icon, tooltip",
    [
        (UpdateDisplay(Band.ABSENT), MISSING_ICON, "No battery detected"),
        (UpdateDisplay(Band.CHARGING, 50), "battery-caution-charging", "Charging: 50%"),
        (UpdateDisplay(Band.NORMAL, 80), "battery-good", "Battery: 80%"),
        (UpdateDisplay(Band.WARNING, 18), "battery-caution", "Low: 18% - Consider charging"),
        (UpdateDisplay(Band.CRITICAL, 4), "battery-caution", "CRITICAL: 4% - GET A CHARGER NOW!"),
    ],
)
def test_indicator_for(action: UpdateDisplay, icon: str, tooltip: str) -> None:
    assert indicator_for(action, MonitorSettings()) == (icon, tooltip)


def test_indicator_uses_configured_icons() -> None:
    settings = MonitorSettings(icon_low="custom-low")

    icon, _ = indicator_for(UpdateDisplay(Band.CRITICAL, 5), settings)

    assert icon == "custom-low"


def test_presenters_satisfy_protocol() -> None:
    assert isinstance(RecordingPresenter(), Presenter)
    assert isinstance(DesktopNotifier(), Presenter)
    assert isinstance(LogPresenter(MonitorSettings), Presenter)


def test_log_presenter(caplog: pytest.LogCaptureFixture) -> None:
    presenter = LogPresenter(MonitorSettings)

    with caplog.at_level(logging.DEBUG, logger="batwatch.display.notify"):
        presenter.present(UpdateDisplay(Band.NORMAL, 70, "Discharging"))
        presenter.present(Notify("LOW BATTERY: 18%", "plug in\n\nnow", Urgency.CRITICAL, 30))
        presenter.present(DismissAlert())
        presenter.present(Suspend(SuspendMethod.DBUS))

    messages = [r.getMessage() for r in caplog.records]
    assert "Indicator [battery-good] Battery: 70%" in messages
    assert "LOW BATTERY: 18%: plug in now" in messages
    assert "Alert dismissed" in messages
    assert "Suspend requested via DBUS" in messages


def test_notifier_sends_notification(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeSubprocess()
    monkeypatch.setattr(notify, "subprocess", fake, raising=False)

    DesktopNotifier().present(Notify("Settings Saved", "done"))

    cmd = fake.calls[0]
    assert cmd[0] == "notify-send"
    assert cmd[cmd.index("--urgency") + 1] == "normal"
    assert cmd[cmd.index("--expire-time") + 1] == "5000"
    assert cmd[-2:] == ["Settings Saved", "done"]


def test_impossible_alert_never_expires(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeSubprocess()
    monkeypatch.setattr(notify, "subprocess", fake, raising=False)

    DesktopNotifier().present(ImpossibleAlert("CRITICAL BATTERY: 5%", "now"))

    cmd = fake.calls[0]
    assert cmd[cmd.index("--urgency") + 1] == "critical"
    assert cmd[cmd.index("--expire-time") + 1] == "0"


def test_notifier_ignores_display_updates(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeSubprocess()
    monkeypatch.setattr(notify, "subprocess", fake, raising=False)

    notifier = DesktopNotifier()
    notifier.present(UpdateDisplay(Band.NORMAL, 90))
    notifier.present(DismissAlert())

    assert fake.calls == []


def test_missing_notify_send_disables_notifier(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeSubprocess(exc=FileNotFoundError("notify-send"))
    monkeypatch.setattr(notify, "subprocess", fake, raising=False)
    notifier = DesktopNotifier()

    notifier.present(Notify("a", "b"))
    notifier.present(Notify("c", "d"))

    assert notifier.available is False
    assert len(fake.calls) == 1


def test_failed_notify_send_is_logged(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    exc = subprocess.CalledProcessError(1, ["notify-send"], stderr="no bus\n")
    monkeypatch.setattr(notify, "subprocess", _FakeSubprocess(exc=exc), raising=False)
    notifier = DesktopNotifier()

    notifier.present(Notify("a", "b"))

    assert notifier.available is True
    assert "notify-send failed: no bus" in caplog.text

"""Presenters that render escalation actions."""

from batwatch.display.notify import DesktopNotifier, LogPresenter
from batwatch.display.protocols import Presenter, RecordingPresenter
from batwatch.display.text import indicator_for

__all__ = [
    "DesktopNotifier",
    "LogPresenter",
    "Presenter",
    "RecordingPresenter",
    "indicator_for",
]

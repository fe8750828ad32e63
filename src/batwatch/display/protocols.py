# src/batwatch/display/protocols.py
from __future__ import annotations

from typing import Protocol, runtime_checkable

from batwatch.escalation.models import Action


@runtime_checkable
class Presenter(Protocol):
    """Protocol for anything that renders escalation actions.

    Presenters are the only place where actions become visible: tray
    icons, notification popups, dialogs or log lines. The engine and the
    monitor never call presentation APIs directly.
    """

    def present(self, action: Action) -> None:
        """Render one action.

        Args:
            action: The action to render
        """
        ...


class RecordingPresenter:
    """Presenter that records actions for testing."""

    def __init__(self) -> None:
        self.actions: list[Action] = []

    def present(self, action: Action) -> None:
        """Record the action without rendering anything."""
        self.actions.append(action)

    def of_type(self, kind: type) -> list[Action]:
        """Return the recorded actions of one type."""
        return [a for a in self.actions if isinstance(a, kind)]

    def reset_call_history(self) -> None:
        """Reset the recorded actions."""
        self.actions = []

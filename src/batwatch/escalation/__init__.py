"""Escalation state machine: bands, suppression windows and the grace sequence."""

from batwatch.escalation.engine import EscalationEngine
from batwatch.escalation.models import (
    Action,
    DismissAlert,
    EscalationState,
    ImpossibleAlert,
    Notify,
    ScheduleRecheck,
    Suspend,
    UpdateDisplay,
)

__all__ = [
    "Action",
    "DismissAlert",
    "EscalationEngine",
    "EscalationState",
    "ImpossibleAlert",
    "Notify",
    "ScheduleRecheck",
    "Suspend",
    "UpdateDisplay",
]

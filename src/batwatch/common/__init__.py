"""Shared enumerations."""

from batwatch.common.enums import Band, SuspendMethod, Urgency

__all__ = ["Band", "SuspendMethod", "Urgency"]

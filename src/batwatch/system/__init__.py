# src/batwatch/system/__init__.py
"""System module for battery hardware status."""

from batwatch.system.sampler import BatterySampler, SysfsBatterySampler
from batwatch.system.status import BatteryReading

__all__ = [
    "BatteryReading",
    "BatterySampler",
    "SysfsBatterySampler",
]

from __future__ import annotations

from collections.abc import Iterable

import pytest

from batwatch.settings import MonitorSettings
from batwatch.system.status import BatteryReading


class FakeSampler:
    """Returns queued readings, repeating the last one."""

    def __init__(self, readings: Iterable[BatteryReading]) -> None:
        self.readings = list(readings)
        self.calls = 0

    def sample(self) -> BatteryReading:
        self.calls += 1
        if len(self.readings) > 1:
            return self.readings.pop(0)
        return self.readings[0]

    def push(self, reading: BatteryReading) -> None:
        self.readings = [reading]


class FakeClock:
    """Manually advanced clock for sched-based loops."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


def reading(pct: int, charging: bool = False) -> BatteryReading:
    return BatteryReading(
        present=True,
        percentage=pct,
        charging=charging,
        status_label="Charging" if charging else "Discharging",
    )


@pytest.fixture
def settings() -> MonitorSettings:
    return MonitorSettings(warning_level=20, critical_level=10, check_interval=30)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

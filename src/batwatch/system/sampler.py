"""Battery sampling from the Linux power-supply class."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final, Protocol, Sequence, runtime_checkable

from batwatch.errors import SamplingError
from batwatch.system.status import BatteryReading

logger: Final = logging.getLogger(__name__)

POWER_SUPPLY_ROOT: Final = Path("/sys/class/power_supply")

# Probed in this order; the first one reporting presence wins
DEFAULT_BATTERY_NAMES: Final = ("BAT0", "BAT1")

CHARGING_STATUS: Final = "Charging"


@runtime_checkable
class BatterySampler(Protocol):
    """Protocol for anything that can produce a battery reading."""

    def sample(self) -> BatteryReading:
        """Read the current battery state.

        Returns:
            A fresh BatteryReading; never raises
        """
        ...


class SysfsBatterySampler:
    """Reads battery state from /sys/class/power_supply/BAT*."""

    def __init__(
        self,
        root: Path = POWER_SUPPLY_ROOT,
        names: Sequence[str] = DEFAULT_BATTERY_NAMES,
    ) -> None:
        """Initialize with the power-supply directory and device names.

        Args:
            root: Directory holding the power-supply devices
            names: Device names to probe, in priority order
        """
        self.root = root
        self.names = tuple(names)

    def sample(self) -> BatteryReading:
        """Return the reading of the first present battery.

        Returns:
            BatteryReading, with present=False if no device is readable
        """
        for name in self.names:
            device = self.root / name
            try:
                if not self._is_present(device):
                    continue
            except SamplingError as exc:
                logger.debug("Skipping %s: %s", name, exc)
                continue

            return self._read_device(device)

        return BatteryReading.absent()

    def _is_present(self, device: Path) -> bool:
        path = device / "present"
        raw = self._read_attribute(path)
        try:
            return int(raw) != 0
        except ValueError as exc:
            raise SamplingError(str(path), exc) from exc

    def _read_device(self, device: Path) -> BatteryReading:
        try:
            percentage = int(self._read_attribute(device / "capacity"))
        except (SamplingError, ValueError) as exc:
            logger.debug("Capacity unavailable for %s: %s", device.name, exc)
            percentage = 0

        try:
            status = self._read_attribute(device / "status")
        except SamplingError as exc:
            logger.debug("Status unavailable for %s: %s", device.name, exc)
            status = "Unknown"

        return BatteryReading(
            present=True,
            percentage=percentage,
            charging=status == CHARGING_STATUS,
            status_label=status,
        )

    @staticmethod
    def _read_attribute(path: Path) -> str:
        """Read one sysfs attribute, stripped of its trailing newline.

        Raises:
            SamplingError: If the attribute is missing, unreadable or not text
        """
        try:
            value = path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            raise SamplingError(str(path), exc) from exc
        return value

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BatteryReading:
    """Point-in-time battery status.

    Produced fresh on every poll and never modified afterwards:
    - Whether a battery was detected at all
    - State of charge (percentage, 0-100)
    - Charging flag and the raw status label reported by the kernel
    """

    present: bool
    percentage: int = 0
    charging: bool = False
    status_label: str = "Unknown"

    def __post_init__(self) -> None:
        # Some firmware reports capacity above 100 while topping off
        clamped = max(0, min(100, self.percentage))
        if clamped != self.percentage:
            object.__setattr__(self, "percentage", clamped)

    @classmethod
    def absent(cls) -> BatteryReading:
        """Reading used when no battery could be detected."""
        return cls(present=False)

    @property
    def formatted_percentage(self) -> str:
        """Return formatted battery percentage string."""
        return f"{self.percentage}%"

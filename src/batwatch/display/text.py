"""Icon and tooltip text for the passive battery indicator."""

from __future__ import annotations

from batwatch.common.enums import Band
from batwatch.escalation.models import UpdateDisplay
from batwatch.settings import MonitorSettings

MISSING_ICON = "battery-missing"


def indicator_for(action: UpdateDisplay, settings: MonitorSettings) -> tuple[str, str]:
    """Return the icon name and tooltip for a display update.

    Args:
        action: Display update emitted by the engine
        settings: Settings holding the icon names

    Returns:
        Tuple of (icon_name, tooltip)
    """
    pct = action.percentage
    if action.band is Band.ABSENT:
        return MISSING_ICON, "No battery detected"
    if action.band is Band.CHARGING:
        return settings.icon_charging, f"Charging: {pct}%"
    if action.band is Band.CRITICAL:
        return settings.icon_low, f"CRITICAL: {pct}% - GET A CHARGER NOW!"
    if action.band is Band.WARNING:
        return settings.icon_low, f"Low: {pct}% - Consider charging"
    return settings.icon_battery, f"Battery: {pct}%"

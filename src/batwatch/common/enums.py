from enum import Enum, IntEnum


class SuspendMethod(IntEnum):
    """OS-level suspend mechanisms.

    The integer values are what the config file stores, and their order is
    the order of the fallback chain.
    """

    SYSTEMD = 0  # systemctl suspend
    PM_UTILS = 1  # pm-suspend
    DBUS = 2  # login1 Manager.Suspend over the system bus
    KERNEL_DIRECT = 3  # echo mem > /sys/power/state

    @property
    def label(self) -> str:
        """Human-readable name for menus and status output."""
        return _METHOD_LABELS[self]


_METHOD_LABELS = {
    SuspendMethod.SYSTEMD: "systemctl suspend (Systemd)",
    SuspendMethod.PM_UTILS: "pm-suspend (PM Utils)",
    SuspendMethod.DBUS: "D-Bus (Login Manager)",
    SuspendMethod.KERNEL_DIRECT: "Kernel Direct (/sys/power/state)",
}


class Band(Enum):
    """Severity classification of a battery reading."""

    ABSENT = "absent"
    CHARGING = "charging"
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class Urgency(Enum):
    """Notification urgency, matching the freedesktop notification levels."""

    NORMAL = "normal"
    CRITICAL = "critical"

"""Battery watchdog: escalating low-battery alerts and forced suspend."""

__version__ = "0.3.0"

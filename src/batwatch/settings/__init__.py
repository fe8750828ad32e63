"""Monitor settings management.

This package provides:
- MonitorSettings: Validated thresholds and behaviour flags
- default_config_path: Where the key=value settings file lives
"""

from batwatch.settings.user import MonitorSettings, default_config_path

__all__ = ["MonitorSettings", "default_config_path"]

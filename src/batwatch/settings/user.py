"""User-configurable settings loaded from the key=value config file."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, ClassVar, Final

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from batwatch.common.enums import SuspendMethod
from batwatch.errors import ConfigError, PersistenceError
from batwatch.utils.file import atomic_write_text

# Load environment variables from .env file(s)
load_dotenv()

logger: Final = logging.getLogger(__name__)

CONFIG_ENV_VAR: Final = "BATWATCH_CONFIG"
CONFIG_FILE_NAME: Final = "batwatch.conf"


def default_config_path() -> Path:
    """Resolve the per-user settings file.

    BATWATCH_CONFIG wins, then $XDG_CONFIG_HOME or ~/.config. Without a
    HOME the file lives in /tmp.

    Returns:
        Path of the settings file (which may not exist yet)
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    home = os.environ.get("HOME")
    if not home:
        return Path("/tmp") / CONFIG_FILE_NAME

    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(home, ".config")
    return Path(base) / CONFIG_FILE_NAME


def parse_config_lines(text: str) -> dict[str, str]:
    """Split key=value lines into a dict.

    Comment lines (starting with '#') and blank lines are skipped, as are
    lines without a key or a value. Later keys override earlier ones.

    Args:
        text: Contents of the settings file

    Returns:
        Raw string values keyed by setting name
    """
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        key, value = key.strip(), value.strip()
        if not sep or not key or not value:
            logger.debug("Ignoring malformed config line: %r", line)
            continue
        values[key] = value
    return values


class MonitorSettings(BaseModel):
    """Thresholds and behaviour flags consumed by the escalation engine.

    Field names are the keys of the settings file. Instances are frozen;
    use updated() to derive a validated copy.
    """

    model_config = ConfigDict(frozen=True)

    # Written in this order, each preceded by its comment
    FILE_COMMENTS: ClassVar[dict[str, str]] = {
        "warning_level": "Warning level percentage (when to show alerts)",
        "critical_level": "Critical level percentage (when to force suspend)",
        "check_interval": "Check interval in seconds",
        "alert_timeout": "Alert timeout in seconds",
        "force_suspend": "Force suspend at critical level (1=yes, 0=no)",
        "impossible_alerts": "Show impossible to dismiss alerts (1=yes, 0=no)",
        "suspend_method": "Suspend method (0=systemctl, 1=pm-suspend, 2=dbus, 3=kernel)",
        "icon_charging": "Icon names",
    }

    # Thresholds
    warning_level: int = Field(20, ge=1, le=100, description="Battery % at which nagging starts")
    critical_level: int = Field(
        10, ge=1, le=100, description="Battery % at which the grace sequence starts"
    )

    # Timing
    check_interval: int = Field(30, gt=0, description="Seconds between battery polls")
    alert_timeout: int = Field(30, gt=0, description="Seconds a critical notification stays up")

    # Behaviour
    force_suspend: bool = Field(True, description="Suspend the system at the critical level")
    impossible_alerts: bool = Field(True, description="Show alerts that demand acknowledgement")
    suspend_method: SuspendMethod = Field(
        SuspendMethod.SYSTEMD, description="Preferred suspend mechanism"
    )

    # Tray icons (consumed by presenters only)
    icon_charging: str = Field("battery-caution-charging", min_length=1)
    icon_battery: str = Field("battery-good", min_length=1)
    icon_low: str = Field("battery-caution", min_length=1)

    # ---- validators ----
    @field_validator("suspend_method", mode="before")
    @classmethod
    def coerce_method_index(cls, v: Any) -> Any:
        # The file stores the method as its table index
        if isinstance(v, str) and v.strip().lstrip("-").isdigit():
            return int(v)
        return v

    @model_validator(mode="after")
    def check_levels_ordered(self) -> MonitorSettings:
        if self.critical_level >= self.warning_level:
            raise ValueError(
                f"critical_level ({self.critical_level}) must be below "
                f"warning_level ({self.warning_level})"
            )
        return self

    # ---- convenience methods ----
    def updated(self, **changes: Any) -> MonitorSettings:
        """Return a validated copy with the given fields replaced.

        Args:
            **changes: Field values to replace

        Returns:
            New MonitorSettings instance

        Raises:
            ConfigError: If a field is unknown or the result does not validate
        """
        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        try:
            return type(self).model_validate({**self.model_dump(), **changes})
        except ValidationError as err:
            raise ConfigError(f"Invalid settings:\n{err}") from err

    def to_config_text(self) -> str:
        """Render the settings in the key=value file format."""
        lines = ["# Battery watchdog configuration"]
        for name, value in self.model_dump().items():
            comment = self.FILE_COMMENTS.get(name)
            if comment:
                lines.append(f"# {comment}")
            if isinstance(value, bool):
                value = int(value)
            elif isinstance(value, SuspendMethod):
                value = int(value)
            lines.append(f"{name}={value}")
        return "\n".join(lines) + "\n"

    def save(self, path: Path | None = None) -> Path:
        """Write the settings file, replacing it atomically.

        Args:
            path: Destination (default: default_config_path())

        Returns:
            The path written

        Raises:
            PersistenceError: If the file cannot be written
        """
        path = path or default_config_path()
        try:
            atomic_write_text(path, self.to_config_text())
        except OSError as exc:
            raise PersistenceError(str(path), exc) from exc
        logger.info("Configuration saved to %s", path)
        return path

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> MonitorSettings:
        """Build settings from raw values, defaulting every invalid field.

        Unknown keys are ignored. A field that fails validation falls back to
        its default while the remaining fields are kept. Inverted thresholds
        fall back to the default critical level first, then the default
        warning level.

        Args:
            raw: Values keyed by setting name

        Returns:
            Validated MonitorSettings object
        """
        settings, _ = cls.validate_mapping(raw)
        return settings

    @classmethod
    def validate_mapping(cls, raw: Mapping[str, Any]) -> tuple[MonitorSettings, dict[str, Any]]:
        """Like from_mapping(), but also report the values that were dropped.

        Args:
            raw: Values keyed by setting name

        Returns:
            Tuple of (settings, rejected values keyed by setting name)
        """
        data = {k: v for k, v in raw.items() if k in cls.model_fields}
        rejected: dict[str, Any] = {}
        while True:
            try:
                return cls.model_validate(data), rejected
            except ValidationError as err:
                invalid = cls._fields_to_reset(err, data)
                if not invalid:
                    # Defaults are always valid, so this means a programming error
                    raise ConfigError(f"Invalid configuration:\n{err}") from err
                for name in sorted(invalid):
                    rejected[name] = data.pop(name)
                    logger.warning("Invalid value %s=%r, using default", name, rejected[name])

    @staticmethod
    def _fields_to_reset(err: ValidationError, data: dict[str, Any]) -> set[str]:
        fields = {
            str(e["loc"][0]) for e in err.errors() if e["loc"] and e["loc"][0] in data
        }
        if fields:
            return fields
        # Model-level error: only the threshold ordering check exists
        for name in ("critical_level", "warning_level"):
            if name in data:
                return {name}
        return set()

    @classmethod
    def load(cls, path: Path | None = None) -> MonitorSettings:
        """Load settings from the key=value file.

        A missing or unreadable file yields the defaults; this never raises.

        Args:
            path: Path to the settings file (default: default_config_path())

        Returns:
            Validated MonitorSettings object
        """
        path = path or default_config_path()
        if not path.exists():
            logger.info("No config file found at %s, using defaults", path)
            return cls()

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unable to read config %s (%s), using defaults", path, exc)
            return cls()

        settings = cls.from_mapping(parse_config_lines(text))
        logger.info("Configuration loaded from %s", path)
        return settings

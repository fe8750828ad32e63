from pathlib import Path

import pytest
from pydantic import ValidationError

from batwatch.common.enums import SuspendMethod
from batwatch.errors import ConfigError, PersistenceError
from batwatch.settings import MonitorSettings, default_config_path
from batwatch.settings.user import parse_config_lines

FULL_CONF = """\
# Battery watchdog configuration
warning_level=25
critical_level=8
check_interval=45
alert_timeout=60
force_suspend=0
impossible_alerts=1
suspend_method=2
icon_charging=my-charging
icon_battery=my-battery
icon_low=my-low
"""


def test_defaults() -> None:
    cfg = MonitorSettings()
    assert cfg.warning_level == 20
    assert cfg.critical_level == 10
    assert cfg.check_interval == 30
    assert cfg.alert_timeout == 30
    assert cfg.force_suspend is True
    assert cfg.impossible_alerts is True
    assert cfg.suspend_method is SuspendMethod.SYSTEMD
    assert cfg.icon_battery == "battery-good"


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert MonitorSettings.load(tmp_path / "nope.conf") == MonitorSettings()


def test_load_full_file(tmp_path: Path) -> None:
    path = tmp_path / "batwatch.conf"
    path.write_text(FULL_CONF)

    cfg = MonitorSettings.load(path)

    assert cfg.warning_level == 25
    assert cfg.critical_level == 8
    assert cfg.check_interval == 45
    assert cfg.alert_timeout == 60
    assert cfg.force_suspend is False
    assert cfg.impossible_alerts is True
    assert cfg.suspend_method is SuspendMethod.DBUS
    assert cfg.icon_low == "my-low"


@pytest.mark.parametrize(
    "line, field, default",
    [
        ("warning_level=150", "warning_level", 20),
        ("warning_level=abc", "warning_level", 20),
        ("critical_level=0", "critical_level", 10),
        ("check_interval=0", "check_interval", 30),
        ("alert_timeout=-5", "alert_timeout", 30),
        ("force_suspend=maybe", "force_suspend", True),
        ("suspend_method=7", "suspend_method", SuspendMethod.SYSTEMD),
    ],
)
def test_invalid_field_falls_back_to_default_only(
    tmp_path: Path, line: str, field: str, default: object
) -> None:
    path = tmp_path / "batwatch.conf"
    path.write_text(f"warning_level=30\ncheck_interval=60\nimpossible_alerts=0\n{line}\n")

    cfg = MonitorSettings.load(path)

    assert getattr(cfg, field) == default
    if field != "warning_level":
        assert cfg.warning_level == 30
    if field != "check_interval":
        assert cfg.check_interval == 60
    assert cfg.impossible_alerts is False


def test_missing_field_uses_default(tmp_path: Path) -> None:
    path = tmp_path / "batwatch.conf"
    path.write_text("critical_level=5\n")

    cfg = MonitorSettings.load(path)

    assert cfg.critical_level == 5
    assert cfg.warning_level == 20
    assert cfg.check_interval == 30


def test_unknown_keys_and_comments_ignored(tmp_path: Path) -> None:
    path = tmp_path / "batwatch.conf"
    path.write_text("# comment\n\ncolor=blue\nnot a pair\nwarning_level = 40\n")

    cfg = MonitorSettings.load(path)

    assert cfg.warning_level == 40


def test_inverted_levels_rejected_on_construction() -> None:
    with pytest.raises(ValidationError):
        MonitorSettings(warning_level=10, critical_level=10)


def test_inverted_levels_in_file_reset_critical(tmp_path: Path) -> None:
    path = tmp_path / "batwatch.conf"
    path.write_text("warning_level=15\ncritical_level=18\n")

    cfg = MonitorSettings.load(path)

    assert cfg.warning_level == 15
    assert cfg.critical_level == 10


def test_inverted_levels_in_file_reset_both(tmp_path: Path) -> None:
    path = tmp_path / "batwatch.conf"
    path.write_text("warning_level=5\ncritical_level=8\n")

    cfg = MonitorSettings.load(path)

    assert (cfg.warning_level, cfg.critical_level) == (20, 10)


def test_warning_below_default_critical(tmp_path: Path) -> None:
    path = tmp_path / "batwatch.conf"
    path.write_text("warning_level=5\n")

    assert MonitorSettings.load(path).warning_level == 20


def test_validate_mapping_reports_rejected() -> None:
    cfg, rejected = MonitorSettings.validate_mapping({"warning_level": "500", "icon_low": "x"})

    assert rejected == {"warning_level": "500"}
    assert cfg.icon_low == "x"


def test_save_writes_every_key(tmp_path: Path) -> None:
    path = tmp_path / "sub" / "batwatch.conf"
    cfg = MonitorSettings(force_suspend=False, suspend_method=SuspendMethod.KERNEL_DIRECT)

    cfg.save(path)

    values = parse_config_lines(path.read_text())
    assert list(values) == [
        "warning_level",
        "critical_level",
        "check_interval",
        "alert_timeout",
        "force_suspend",
        "impossible_alerts",
        "suspend_method",
        "icon_charging",
        "icon_battery",
        "icon_low",
    ]
    assert values["force_suspend"] == "0"
    assert values["impossible_alerts"] == "1"
    assert values["suspend_method"] == "3"
    assert MonitorSettings.load(path) == cfg


def test_save_failure_raises_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("")

    with pytest.raises(PersistenceError):
        MonitorSettings().save(blocker / "batwatch.conf")


def test_updated_validates() -> None:
    cfg = MonitorSettings()

    assert cfg.updated(critical_level="5").critical_level == 5
    assert cfg.updated(suspend_method="1").suspend_method is SuspendMethod.PM_UTILS
    with pytest.raises(ConfigError):
        cfg.updated(critical_level=25)
    with pytest.raises(ConfigError):
        cfg.updated(volume=3)
    assert cfg.critical_level == 10


def test_settings_are_frozen() -> None:
    cfg = MonitorSettings()
    with pytest.raises(ValidationError):
        cfg.warning_level = 50  # type: ignore[misc]


def test_default_config_path_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("BATWATCH_CONFIG", str(tmp_path / "x.conf"))
    assert default_config_path() == tmp_path / "x.conf"


def test_default_config_path_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("BATWATCH_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert default_config_path() == tmp_path / "xdg" / "batwatch.conf"

    monkeypatch.delenv("XDG_CONFIG_HOME")
    assert default_config_path() == tmp_path / ".config" / "batwatch.conf"


def test_default_config_path_without_home(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BATWATCH_CONFIG", raising=False)
    monkeypatch.delenv("HOME", raising=False)
    assert default_config_path() == Path("/tmp/batwatch.conf")

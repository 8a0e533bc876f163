"""Tests for Linux OS interfaces"""

from datetime import datetime, time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

pytest.importorskip("pystemd")
pytest.importorskip("desktop_notifier")

from os_interfaces.base import NotificationStyle, TimerConfig  # noqa: E402
from os_interfaces.linux import (  # noqa: E402
  LinuxConfigStorage,
  LinuxNotificationManager,
  LinuxTimerManager,
  decode_extras,
  encode_extras,
)


class TestLinuxNotificationManager:
  """Tests for LinuxNotificationManager"""

  @patch("os_interfaces.linux.DesktopNotifier")
  def test_init(self, mock_notifier_class):
    """Test notification manager initialization"""
    manager = LinuxNotificationManager(app_name="TestApp")
    mock_notifier_class.assert_called_once_with(app_name="TestApp")
    assert manager.notifier is not None

  @pytest.mark.asyncio
  @patch("os_interfaces.linux.DesktopNotifier")
  async def test_create_notification(self, mock_notifier_class):
    """Test creating notification"""
    mock_notifier = MagicMock()
    mock_notifier.send = AsyncMock()
    mock_notifier_class.return_value = mock_notifier

    manager = LinuxNotificationManager(app_name="TestApp")
    await manager.create_notification(
      "Test Title", "Test Body", NotificationStyle(channel="chat")
    )

    mock_notifier.send.assert_called_once_with(title="Test Title", message="Test Body")

  @pytest.mark.asyncio
  @patch("os_interfaces.linux.DesktopNotifier")
  async def test_create_notification_failure_is_logged(self, mock_notifier_class):
    mock_notifier = MagicMock()
    mock_notifier.send = AsyncMock(side_effect=RuntimeError("no dbus session"))
    mock_notifier_class.return_value = mock_notifier

    manager = LinuxNotificationManager(app_name="TestApp")
    await manager.create_notification("Test Title", "Test Body")

  @pytest.mark.asyncio
  @patch("os_interfaces.linux.DesktopNotifier")
  async def test_permissions(self, mock_notifier_class):
    mock_notifier = MagicMock()
    mock_notifier.has_authorisation = AsyncMock(return_value=False)
    mock_notifier.request_authorisation = AsyncMock(return_value=True)
    mock_notifier_class.return_value = mock_notifier

    manager = LinuxNotificationManager(app_name="TestApp")
    assert await manager.are_notifications_enabled() is False
    assert await manager.request_permission() is True


@pytest.fixture
def systemd():
  """Patch the D-Bus connection and return the mocked systemd manager"""
  with (
    patch("os_interfaces.linux.DBus") as mock_dbus_class,
    patch("os_interfaces.linux.Manager") as mock_manager_class,
  ):
    mock_dbus = MagicMock()
    mock_dbus_class.return_value.__enter__ = MagicMock(return_value=mock_dbus)
    mock_dbus_class.return_value.__exit__ = MagicMock(return_value=None)
    mock_manager = MagicMock()
    mock_manager.Manager.ListUnitFiles.return_value = []
    mock_manager_class.return_value = mock_manager
    yield mock_manager


@pytest.fixture
def timer_mgr(tmp_path):
  manager = LinuxTimerManager(app_name="tenzin", fire_command="/usr/bin/tenzin-reminder-fire")
  with patch.object(LinuxTimerManager, "_user_unit_dir", return_value=tmp_path):
    yield manager


class TestLinuxTimerManager:
  """Tests for LinuxTimerManager"""

  def test_init(self):
    manager = LinuxTimerManager(app_name="TestApp")
    assert manager.app_name == "TestApp"
    assert manager.fire_command.endswith("tenzin-reminder-fire")

  def test_schedule_timer_writes_units(self, systemd, timer_mgr, tmp_path):
    extras = {"title": "Сануулга", "randomized": True, "min_minutes": 30}
    cfg = TimerConfig(
      trigger_at=datetime(2026, 10, 19, 14, 30, 5), request_code=3001, extras=extras
    )
    timer_id = timer_mgr.schedule_timer(cfg)

    assert timer_id == "tenzin-alarm-3001"
    timer_txt = (tmp_path / "tenzin-alarm-3001.timer").read_text()
    service_txt = (tmp_path / "tenzin-alarm-3001.service").read_text()
    assert "OnCalendar=2026-10-19 14:30:05" in timer_txt
    assert "WakeSystem=true" in timer_txt
    assert "Persistent=true" in timer_txt

    exec_line = next(
      line for line in service_txt.splitlines() if line.startswith("ExecStart=")
    )
    command, flag, encoded = exec_line.removeprefix("ExecStart=").split(" ")
    assert (command, flag) == ("/usr/bin/tenzin-reminder-fire", "--extras")
    assert decode_extras(encoded) == extras

    systemd.Manager.Reload.assert_called_once()
    systemd.Manager.RestartUnit.assert_called_once_with(
      b"tenzin-alarm-3001.timer", b"replace"
    )

  def test_schedule_daily(self, systemd, timer_mgr, tmp_path):
    first_fire = timer_mgr.schedule_daily(2001, time(19, 0), {"title": "Daily"})

    timer_txt = (tmp_path / "tenzin-alarm-2001.timer").read_text()
    assert "OnCalendar=*-*-* 19:00:00" in timer_txt
    assert first_fire > datetime.now()
    assert (first_fire.hour, first_fire.minute) == (19, 0)

  def test_cancel_missing_timer(self, systemd, timer_mgr):
    assert timer_mgr.cancel_timer(3001) is False
    systemd.Manager.StopUnit.assert_not_called()

  def test_cancel_existing_timer(self, systemd, timer_mgr):
    systemd.Manager.ListUnitFiles.return_value = [
      (b"/home/u/.config/systemd/user/tenzin-alarm-3001.timer", b"enabled")
    ]
    assert timer_mgr.cancel_timer(3001) is True
    systemd.Manager.StopUnit.assert_called_once_with(
      b"tenzin-alarm-3001.timer", b"replace"
    )
    systemd.Manager.DisableUnitFiles.assert_called_once()


def test_encoded_extras_are_a_single_safe_token():
  encoded = encode_extras({"body": "Өнөөдрийн хичээл? 100% 'quoted' \"text\""})
  assert " " not in encoded
  assert "%" not in encoded
  assert "'" not in encoded


class TestLinuxConfigStorage:
  @pytest.fixture
  def config_storage(self, tmp_path):
    with patch("os_interfaces.linux.user_config_dir", return_value=str(tmp_path)):
      yield LinuxConfigStorage(app_name="tenzin")

  def test_set_get_remove(self, config_storage, tmp_path):
    config_storage.set("next_random_reminder", 1_790_000_000_000)
    assert config_storage.get("next_random_reminder") == 1_790_000_000_000
    assert (tmp_path / "settings.yaml").exists()

    config_storage.remove("next_random_reminder")
    assert config_storage.get("next_random_reminder") is None
    config_storage.remove("next_random_reminder")

  def test_get_sees_writes_from_another_instance(self, config_storage, tmp_path):
    with patch("os_interfaces.linux.user_config_dir", return_value=str(tmp_path)):
      other = LinuxConfigStorage(app_name="tenzin")
    other.set("next_random_reminder", 42)
    assert config_storage.get("next_random_reminder") == 42

  def test_remove_clears_value_written_by_another_instance(
    self, config_storage, tmp_path
  ):
    with patch("os_interfaces.linux.user_config_dir", return_value=str(tmp_path)):
      other = LinuxConfigStorage(app_name="tenzin")
    other.set("next_random_reminder", 1_790_000_000_000)

    config_storage.remove("next_random_reminder")

    assert other.get("next_random_reminder") is None
    assert config_storage.get("next_random_reminder") is None

  def test_set_keeps_values_written_by_another_instance(self, config_storage, tmp_path):
    with patch("os_interfaces.linux.user_config_dir", return_value=str(tmp_path)):
      other = LinuxConfigStorage(app_name="tenzin")
    other.set("next_random_reminder", 42)

    config_storage.set("theme", "dark")

    assert other.get("next_random_reminder") == 42
    assert other.get("theme") == "dark"

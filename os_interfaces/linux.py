"""Linux-specific implementations of OS interfaces"""

import base64
import json
import logging
import shutil
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from pathlib import Path
from typing import Any, Optional

import yaml
from desktop_notifier import DesktopNotifier
from platformdirs import user_config_dir
from pystemd.dbuslib import DBus
from pystemd.systemd1 import Manager

from .base import (
  ConfigStorage,
  NotificationManager,
  NotificationStyle,
  TimerConfig,
  TimerManager,
)

logger = logging.getLogger(__name__)

FIRE_COMMAND = "tenzin-reminder-fire"


def encode_extras(extras: dict[str, Any]) -> str:
  """Encode timer extras as a single shell- and systemd-safe argument"""
  raw = json.dumps(extras, ensure_ascii=False).encode()
  return base64.urlsafe_b64encode(raw).decode()


def decode_extras(encoded: str) -> dict[str, Any]:
  return json.loads(base64.urlsafe_b64decode(encoded.encode()).decode())


class LinuxNotificationManager(NotificationManager):
  """Linux notification manager using desktop-notifier"""

  def __init__(self, app_name: str):
    self.notifier = DesktopNotifier(app_name=app_name)

  async def create_notification(
    self,
    title: str,
    body: str,
    style: Optional[NotificationStyle] = None,
  ) -> None:
    """Create and show a notification using desktop-notifier

    Launch extras and large icons have no desktop counterpart and are ignored.

    Args:
      title: Notification title
      body: Notification body text
      style: Presentation options
    """
    try:
      await self.notifier.send(title=title, message=body)
      logger.info(f"Notification sent: {title}")
    except Exception as e:
      logger.error(f"Failed to send notification: {e}")

  async def are_notifications_enabled(self) -> bool:
    return await self.notifier.has_authorisation()

  async def request_permission(self) -> bool:
    return await self.notifier.request_authorisation()


class LinuxTimerManager(TimerManager):
  """Linux timer manager using persistent systemd user units.

  A fired unit runs `tenzin-reminder-fire --extras <encoded>` which hands the
  extras to the reminder receiver in a fresh process.
  """

  def __init__(self, app_name: str, fire_command: str = FIRE_COMMAND):
    self.app_name = app_name
    self.fire_command = shutil.which(fire_command) or fire_command

  # ---- helpers ----
  @contextmanager
  def _connect_systemd(self):
    with DBus(user_mode=True) as bus:
      manager = Manager(bus=bus)
      manager.load()
      yield manager

  def _user_unit_dir(self) -> Path:
    return Path.home() / ".config/systemd/user"

  def _write_unit(self, name: str, content: str) -> Path:
    d = self._user_unit_dir()
    d.mkdir(parents=True, exist_ok=True)
    p = d / name
    p.write_text(content)
    return p

  def _list_unit_files(self, manager: Manager) -> list[bytes]:
    return [u[0] for u in manager.Manager.ListUnitFiles()]

  def _unit_files_exist(self, manager: Manager, base: str) -> bool:
    files = self._list_unit_files(manager)
    return any(f.endswith(f"{base}.timer".encode()) for f in files)

  def _enable_and_restart_timer(self, manager: Manager, timer: str) -> None:
    manager.Manager.EnableUnitFiles([f"{timer}.timer".encode()], False, True)
    manager.Manager.RestartUnit(f"{timer}.timer".encode(), b"replace")

  def _reload(self, manager: Manager) -> None:
    manager.Manager.Reload()

  def _unit_name(self, request_code: int) -> str:
    return f"{self.app_name}-alarm-{request_code}"

  def _service_content(self, base: str, extras: dict[str, Any]) -> str:
    exec_line = " ".join([self.fire_command, "--extras", encode_extras(extras)])
    return (
      "[Unit]\n"
      f"Description={self.app_name} service {base}\n"
      "\n[Service]\n"
      "Type=oneshot\n"
      f"ExecStart={exec_line}\n"
    )

  def _timer_content(self, base: str, on_calendar: str) -> str:
    return (
      "[Unit]\n"
      f"Description={self.app_name} timer {base}\n"
      "\n[Timer]\n"
      f"OnCalendar={on_calendar}\n"
      "Persistent=true\n"
      "WakeSystem=true\n"
      f"Unit={base}.service\n"
      "\n[Install]\n"
      "WantedBy=timers.target\n"
    )

  def _install(self, base: str, on_calendar: str, extras: dict[str, Any]) -> None:
    with self._connect_systemd() as m:
      self._write_unit(f"{base}.service", self._service_content(base, extras))
      self._write_unit(f"{base}.timer", self._timer_content(base, on_calendar))
      self._reload(m)
      self._enable_and_restart_timer(m, base)

  # ---- public API ----
  def schedule_timer(self, timer_config: TimerConfig) -> str:
    """Write a oneshot timer for the exact trigger time and (re)start it"""
    base = self._unit_name(timer_config.request_code)
    on_cal = timer_config.trigger_at.strftime("%Y-%m-%d %H:%M:%S")
    self._install(base, on_cal, timer_config.extras)
    logger.info(f"Scheduled alarm {base} at {on_cal}")
    return base

  def schedule_daily(
    self, request_code: int, run_time: time, extras: dict[str, Any]
  ) -> datetime:
    """Install a daily timer; rescheduling the same request code replaces it."""
    base = self._unit_name(request_code)
    on_cal = f"*-*-* {run_time.strftime('%H:%M')}:00"
    self._install(base, on_cal, extras)

    now = datetime.now()
    first_fire = datetime.combine(now.date(), run_time.replace(second=0, microsecond=0))
    if first_fire <= now:
      first_fire += timedelta(days=1)
    logger.info(f"Scheduled daily alarm {base} at {on_cal}")
    return first_fire

  def cancel_timer(self, request_code: int) -> bool:
    """Stop and disable the timer for a request code."""
    base = self._unit_name(request_code)
    try:
      with self._connect_systemd() as m:
        if not self._unit_files_exist(m, base):
          logger.info(f"No pending timer {base} to cancel")
          return False
        try:
          m.Manager.StopUnit(f"{base}.timer".encode(), b"replace")
          m.Manager.DisableUnitFiles([f"{base}.timer".encode()], False)
          logger.info(f"Cancelled timer {base}")
          return True
        except Exception as e:
          logger.warning(f"Could not cancel timer {base}: {e}")
    except Exception as e:
      logger.error(f"Failed to cancel timer: {e}")
    return False


class LinuxConfigStorage(ConfigStorage):
  """Linux configuration storage using YAML files in user config directory"""

  def __init__(self, app_name: str, config_name: str = "settings"):
    self.config_dir = Path(user_config_dir(app_name, ensure_exists=True))
    self.config_file = self.config_dir / f"{config_name}.yaml"
    self._config: dict = {}
    self._load_config()

  def _load_config(self) -> None:
    """Load configuration from disk"""
    if self.config_file.exists():
      try:
        with open(self.config_file, "r") as f:
          self._config = yaml.safe_load(f) or {}
        logger.debug(f"Loaded config from {self.config_file}")
      except Exception as e:
        logger.error(f"Failed to load config: {e}")
        self._config = {}
    else:
      self._config = {}

  def load(self) -> dict:
    """Load configuration from storage"""
    self._load_config()
    return self._config.copy()

  def save(self, config: dict) -> None:
    """Save configuration to storage"""
    self._config = config.copy()
    try:
      self.config_dir.mkdir(parents=True, exist_ok=True)
      with open(self.config_file, "w") as f:
        yaml.safe_dump(self._config, f, default_flow_style=False, allow_unicode=True)
      logger.debug(f"Saved config to {self.config_file}")
    except Exception as e:
      logger.error(f"Failed to save config: {e}")

  def get(self, key: str, default: Any = None) -> Any:
    """Get a configuration value by key

    Re-reads the file since alarm firings update it from another process.
    """
    self._load_config()
    return self._config.get(key, default)

  def set(self, key: str, value: Any) -> None:
    """Set a configuration value"""
    self._load_config()
    self._config[key] = value
    self.save(self._config)

  def remove(self, key: str) -> None:
    """Remove a configuration value"""
    self._load_config()
    self._config.pop(key, None)
    self.save(self._config)

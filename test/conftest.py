"""Shared fixtures: in-memory stand-ins for the platform interfaces"""

import random
from datetime import datetime, time, timedelta
from typing import Any, Optional

import pytest

from os_interfaces.base import (
  ConfigStorage,
  NotificationManager,
  NotificationStyle,
  OSImplementations,
  TimerConfig,
  TimerManager,
)
from reminders.scheduler import ReminderScheduler

NOW = datetime(2026, 10, 19, 9, 30)


class FakeNotificationManager(NotificationManager):
  def __init__(self, app_name: str = "tenzin"):
    self.app_name = app_name
    self.shown: list[tuple[str, str, NotificationStyle]] = []
    self.enabled = True
    self.permission_requests = 0

  async def create_notification(
    self, title: str, body: str, style: Optional[NotificationStyle] = None
  ) -> None:
    self.shown.append((title, body, style or NotificationStyle()))

  async def are_notifications_enabled(self) -> bool:
    return self.enabled

  async def request_permission(self) -> bool:
    self.permission_requests += 1
    return True


class FakeTimerManager(TimerManager):
  def __init__(self, app_name: str = "tenzin"):
    self.app_name = app_name
    self.pending: dict[int, Any] = {}
    self.scheduled: list[TimerConfig] = []

  def schedule_timer(self, timer_config: TimerConfig) -> str:
    self.pending[timer_config.request_code] = timer_config
    self.scheduled.append(timer_config)
    return f"fake-{timer_config.request_code}"

  def schedule_daily(
    self, request_code: int, run_time: time, extras: dict[str, Any]
  ) -> datetime:
    first_fire = datetime.combine(NOW.date(), run_time)
    if first_fire <= NOW:
      first_fire += timedelta(days=1)
    self.pending[request_code] = {"run_time": run_time, "extras": extras}
    return first_fire

  def cancel_timer(self, request_code: int) -> bool:
    return self.pending.pop(request_code, None) is not None


class FakeConfigStorage(ConfigStorage):
  def __init__(self, app_name: str = "tenzin"):
    self.app_name = app_name
    self.values: dict[str, Any] = {}

  def load(self) -> dict:
    return dict(self.values)

  def save(self, config: dict) -> None:
    self.values = dict(config)

  def get(self, key: str, default: Any = None) -> Any:
    return self.values.get(key, default)

  def set(self, key: str, value: Any) -> None:
    self.values[key] = value

  def remove(self, key: str) -> None:
    self.values.pop(key, None)


@pytest.fixture
def now():
  return NOW


@pytest.fixture
def notifier():
  return FakeNotificationManager()


@pytest.fixture
def timer_manager():
  return FakeTimerManager()


@pytest.fixture
def storage():
  return FakeConfigStorage()


@pytest.fixture
def scheduler(timer_manager, storage):
  return ReminderScheduler(
    timer_manager=timer_manager,
    storage=storage,
    clock=lambda: NOW,
    rng=random.Random(1234),
  )


@pytest.fixture
def fake_os_impl():
  return OSImplementations(
    notification_manager_cls=FakeNotificationManager,
    timer_manager_cls=FakeTimerManager,
    config_storage_cls=FakeConfigStorage,
  )

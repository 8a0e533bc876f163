"""Abstract base classes for OS-specific interfaces"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import Any, Awaitable, Callable, Literal, Optional

logger = logging.getLogger(__name__)

ChannelKind = Literal["reminders", "chat"]

REMINDER_NOTIFICATION_ID = 1001
CHAT_NOTIFICATION_ID = 2001

FireHandler = Callable[[dict[str, Any]], Any]


@dataclass
class NotificationStyle:
  """How a notification is presented.

  `launch_extras` are handed to the app when the notification is tapped.
  """

  channel: ChannelKind = "reminders"
  notification_id: int = REMINDER_NOTIFICATION_ID
  big_text: bool = False
  large_icon: bytes | None = None
  launch_extras: dict[str, Any] = field(default_factory=dict)


class NotificationManager(ABC):
  """Abstract base class for notification management"""

  @abstractmethod
  async def create_notification(
    self,
    title: str,
    body: str,
    style: Optional[NotificationStyle] = None,
  ) -> None:
    """Create and show a notification

    Args:
      title: Notification title
      body: Notification body text
      style: Channel, id and decoration; defaults to a plain reminder
    """
    raise NotImplementedError

  @abstractmethod
  async def are_notifications_enabled(self) -> bool:
    """Whether the user currently allows this app to post notifications"""
    raise NotImplementedError

  @abstractmethod
  async def request_permission(self) -> bool:
    """Ask the OS for permission to post notifications"""
    raise NotImplementedError


@dataclass
class TimerConfig:
  trigger_at: datetime
  request_code: int
  extras: dict[str, Any] = field(default_factory=dict)


class TimerManager(ABC):
  """Abstract base class for timer/alarm management.

  Timers are identified by a request code; scheduling under a code that is
  already pending replaces the pending timer. When a timer fires, its extras
  are passed to the handler registered with `set_fire_handler`.
  """

  _fire_handler: FireHandler | None = None

  def set_fire_handler(self, handler: FireHandler) -> None:
    self._fire_handler = handler

  def dispatch_fire(self, extras: dict[str, Any]) -> None:
    """Run the fire handler for a fired timer. Errors are logged."""
    if self._fire_handler is None:
      logger.warning("Timer fired with no handler registered: %s", extras)
      return
    try:
      outcome = self._fire_handler(extras)
      if inspect.isawaitable(outcome):
        asyncio.run(_await(outcome))
    except Exception:
      logger.exception("Timer fire handler failed")

  @abstractmethod
  def schedule_timer(self, timer_config: TimerConfig) -> str:
    """Schedule an exact, wake-capable one-shot timer.

    Args:
      timer_config: Trigger time, request code and extras

    Returns:
      Timer ID for logging
    """
    raise NotImplementedError

  @abstractmethod
  def schedule_daily(
    self, request_code: int, run_time: time, extras: dict[str, Any]
  ) -> datetime:
    """Schedule a daily recurring timer.

    Args:
      request_code: Identifies the timer for replacement and cancellation
      run_time: Time of day to fire
      extras: Passed to the fire handler on every firing

    Returns:
      The first firing time
    """
    raise NotImplementedError

  @abstractmethod
  def cancel_timer(self, request_code: int) -> bool:
    """Cancel a scheduled timer

    Args:
      request_code: Request code the timer was scheduled under

    Returns:
      True if a pending timer was cancelled
    """
    raise NotImplementedError


async def _await(awaitable: Awaitable[Any]) -> Any:
  return await awaitable


class ConfigStorage(ABC):
  """Abstract base class for key-value settings storage"""

  @abstractmethod
  def load(self) -> dict:
    """Load configuration from storage"""
    raise NotImplementedError

  @abstractmethod
  def save(self, config: dict) -> None:
    """Save configuration to storage"""
    raise NotImplementedError

  @abstractmethod
  def get(self, key: str, default: Any = None) -> Any:
    """Get a configuration value by key"""
    raise NotImplementedError

  @abstractmethod
  def set(self, key: str, value: Any) -> None:
    """Set a configuration value"""
    raise NotImplementedError

  @abstractmethod
  def remove(self, key: str) -> None:
    """Remove a configuration value; missing keys are ignored"""
    raise NotImplementedError


@dataclass
class OSImplementations:
  """Bundle of platform implementations injected by the entry points."""

  notification_manager_cls: Callable[..., NotificationManager]
  timer_manager_cls: Callable[..., TimerManager]
  config_storage_cls: Callable[..., ConfigStorage]

  def notification_manager(self, app_name: str) -> NotificationManager:
    return self.notification_manager_cls(app_name=app_name)

  def timer_manager(self, app_name: str) -> TimerManager:
    return self.timer_manager_cls(app_name=app_name)

  def config_storage(self, app_name: str) -> ConfigStorage:
    return self.config_storage_cls(app_name=app_name)

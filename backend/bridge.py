"""
Method channel between the UI layer and the notification subsystem.

Every method takes a flat argument map (camelCase keys, as sent by the UI)
and returns a simple JSON value. Missing or null arguments fall back to the
defaults below.
"""

import logging
import zlib
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field

from backend.exceptions import AppError
from os_interfaces.base import (
  CHAT_NOTIFICATION_ID,
  NotificationManager,
  NotificationStyle,
)
from reminders.models import DEFAULT_MAX_MINUTES, DEFAULT_MIN_MINUTES
from reminders.scheduler import ReminderScheduler

logger = logging.getLogger(__name__)

AVATAR_TIMEOUT_SECONDS = 10.0


class _Args(BaseModel):
  model_config = ConfigDict(populate_by_name=True)


class TestNotificationArgs(_Args):
  title: str = "Tenzin"
  body: str = "Test notification"


class DailyReminderArgs(_Args):
  hour: int = Field(default=19, ge=0, le=23)
  minute: int = Field(default=0, ge=0, le=59)
  title: str = "Tenzin Reminder"
  body: str = "Time to learn!"


class StreakReminderArgs(_Args):
  title: str = "Streak Reminder"
  body: str = "Keep your streak!"


class ChatNotificationArgs(_Args):
  sender_id: str = Field(default="", alias="senderId")
  sender_name: str = Field(default="Хэрэглэгч", alias="senderName")
  sender_avatar_url: Optional[str] = Field(default=None, alias="senderAvatarUrl")
  message_preview: str = Field(default="", alias="messagePreview")


class RandomizedReminderArgs(_Args):
  min_minutes: int = Field(default=DEFAULT_MIN_MINUTES, alias="minMinutes")
  max_minutes: int = Field(default=DEFAULT_MAX_MINUTES, alias="maxMinutes")
  title: str = "Тензин сануулга 📚"
  body: str = "Хичээлийн сануулга"


ArgsT = TypeVar("ArgsT", bound=_Args)


def parse_args(model: Type[ArgsT], args: Optional[Dict[str, Any]]) -> ArgsT:
  """Validate a flat argument map; nulls count as missing."""
  present = {k: v for k, v in (args or {}).items() if v is not None}
  return model.model_validate(present)


def chat_notification_id(sender_id: str) -> int:
  """Per-sender notification id, stable across processes"""
  return CHAT_NOTIFICATION_ID + zlib.crc32(sender_id.encode()) % 1_000_000


async def fetch_avatar(url: str) -> Optional[bytes]:
  """Download an avatar image; any failure yields None."""
  try:
    async with httpx.AsyncClient(
      timeout=AVATAR_TIMEOUT_SECONDS, follow_redirects=True
    ) as client:
      response = await client.get(url)
      response.raise_for_status()
      return response.content
  except (httpx.HTTPError, httpx.InvalidURL) as e:
    logger.warning(f"Failed to load avatar {url}: {e}")
    return None


Handler = Callable[[Optional[Dict[str, Any]]], Awaitable[Any]]


class NotificationBridge:
  """Dispatches named method calls to the notifier and reminder scheduler"""

  def __init__(
    self,
    notifier: NotificationManager,
    scheduler: ReminderScheduler,
    avatar_loader: Callable[[str], Awaitable[Optional[bytes]]] = fetch_avatar,
  ):
    self.notifier = notifier
    self.scheduler = scheduler
    self.avatar_loader = avatar_loader
    self._handlers: Dict[str, Handler] = {
      "requestPermission": self.request_permission,
      "areNotificationsEnabled": self.are_notifications_enabled,
      "showTestNotification": self.show_test_notification,
      "scheduleDailyReminder": self.schedule_daily_reminder,
      "cancelDailyReminder": self.cancel_daily_reminder,
      "scheduleStreakReminder": self.schedule_streak_reminder,
      "showChatNotification": self.show_chat_notification,
      "scheduleRandomizedReminders": self.schedule_randomized_reminders,
      "getNextRandomizedReminder": self.get_next_randomized_reminder,
      "cancelRandomizedReminders": self.cancel_randomized_reminders,
    }

  @property
  def methods(self) -> list[str]:
    return list(self._handlers)

  async def invoke(self, method: str, args: Optional[Dict[str, Any]] = None) -> Any:
    handler = self._handlers.get(method)
    if handler is None:
      raise AppError(
        description=f"Method '{method}' is not implemented",
        name="METHOD_NOT_IMPLEMENTED",
        source="not_implemented",
      )
    logger.debug(f"Invoking {method} with {args}")
    return await handler(args)

  # ---- permissions ----
  async def request_permission(self, _args) -> bool:
    return await self.notifier.request_permission()

  async def are_notifications_enabled(self, _args) -> bool:
    return await self.notifier.are_notifications_enabled()

  # ---- immediate notifications ----
  async def show_test_notification(self, args) -> bool:
    a = parse_args(TestNotificationArgs, args)
    await self.notifier.create_notification(a.title, a.body)
    return True

  async def show_chat_notification(self, args) -> bool:
    a = parse_args(ChatNotificationArgs, args)

    # The avatar, if any, must be known before the notification is rendered
    avatar = None
    if a.sender_avatar_url:
      avatar = await self.avatar_loader(a.sender_avatar_url)

    style = NotificationStyle(
      channel="chat",
      notification_id=chat_notification_id(a.sender_id),
      big_text=True,
      large_icon=avatar,
      launch_extras={
        "openChat": True,
        "chatUserId": a.sender_id,
        "chatUserName": a.sender_name,
      },
    )
    await self.notifier.create_notification(a.sender_name, a.message_preview, style)
    return True

  # ---- daily reminders ----
  async def schedule_daily_reminder(self, args) -> bool:
    a = parse_args(DailyReminderArgs, args)
    self.scheduler.schedule_daily(a.hour, a.minute, a.title, a.body)
    return True

  async def cancel_daily_reminder(self, _args) -> bool:
    try:
      self.scheduler.cancel_daily()
    except Exception as e:
      logger.error(f"Failed to cancel daily reminder: {e}")
      return False
    return True

  async def schedule_streak_reminder(self, args) -> bool:
    a = parse_args(StreakReminderArgs, args)
    self.scheduler.schedule_streak(a.title, a.body)
    return True

  # ---- randomized reminders ----
  async def schedule_randomized_reminders(self, args) -> int:
    a = parse_args(RandomizedReminderArgs, args)
    schedule = self.scheduler.schedule_randomized(
      a.min_minutes, a.max_minutes, a.title, a.body
    )
    return schedule.trigger_millis

  async def get_next_randomized_reminder(self, _args) -> Optional[int]:
    return self.scheduler.next_randomized()

  async def cancel_randomized_reminders(self, _args) -> bool:
    """The persisted trigger is cleared even when the OS cancel fails."""
    try:
      self.scheduler.cancel_randomized()
    except Exception as e:
      logger.error(f"Failed to cancel randomized reminder: {e}")
      return False
    return True

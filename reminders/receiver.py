"""Handles fired reminder alarms: show the notification, then re-arm if randomized."""

import logging
from typing import Any, Optional

from os_interfaces.base import NotificationManager
from reminders.models import AlarmExtras, ReminderSchedule
from reminders.scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


class ReminderReceiver:
  def __init__(self, notifier: NotificationManager, scheduler: ReminderScheduler):
    self.notifier = notifier
    self.scheduler = scheduler

  async def on_alarm(self, extras: dict[str, Any]) -> Optional[ReminderSchedule]:
    """Entry point for a fired alarm.

    Returns the next schedule when a randomized reminder was re-armed.
    Failures are logged; nothing propagates back to the OS callback.
    """
    alarm = AlarmExtras.parse(extras)

    try:
      await self.notifier.create_notification(alarm.title, alarm.body)
    except Exception as e:
      logger.error(f"Failed to show reminder notification: {e}")

    if not alarm.randomized:
      return None

    try:
      return self.scheduler.schedule_randomized(
        alarm.min_minutes, alarm.max_minutes, alarm.title, alarm.body
      )
    except Exception as e:
      logger.error(f"Failed to re-arm randomized reminder: {e}")
      return None

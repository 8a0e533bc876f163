"""Reminder scheduling module"""

from .models import AlarmExtras, ReminderSchedule
from .receiver import ReminderReceiver
from .scheduler import (
  NEXT_RANDOM_REMINDER_KEY,
  ReminderScheduler,
  compute_random_delay,
)

__all__ = [
  "AlarmExtras",
  "NEXT_RANDOM_REMINDER_KEY",
  "ReminderReceiver",
  "ReminderSchedule",
  "ReminderScheduler",
  "compute_random_delay",
]

"""
Reminder scheduling on top of the platform TimerManager.

Randomized reminders form a self-renewing chain: every firing computes a new
random delay within the same bounds and re-arms the alarm under the same
request code. The next trigger time is persisted so the UI can query it; the
persisted value is best-effort and may drift from the OS alarm registry.
"""

import logging
import random
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from os_interfaces.base import ConfigStorage, TimerConfig, TimerManager
from reminders.models import ReminderSchedule

logger = logging.getLogger(__name__)

NEXT_RANDOM_REMINDER_KEY = "next_random_reminder"
DAILY_REMINDER_REQUEST_CODE = 2001
RANDOM_REMINDER_REQUEST_CODE = 3001
STREAK_REMINDER_TIME = time(hour=20, minute=0)


def compute_random_delay(
  min_minutes: int, max_minutes: int, rng: Optional[random.Random] = None
) -> timedelta:
  """Uniform whole-minute delay in [min_minutes, max_minutes].

  min_minutes is clamped to at least 1 and max_minutes to at least min_minutes.
  """
  rng = rng or random.Random()
  low = max(min_minutes, 1)
  high = max(max_minutes, low)
  return timedelta(minutes=rng.randint(low, high))


class ReminderScheduler:
  """Schedules daily and randomized reminders"""

  def __init__(
    self,
    timer_manager: TimerManager,
    storage: ConfigStorage,
    clock: Callable[[], datetime] = datetime.now,
    rng: Optional[random.Random] = None,
  ):
    self.timer_manager = timer_manager
    self.storage = storage
    self.clock = clock
    self.rng = rng or random.Random()

  # ---- randomized chain ----
  def schedule_randomized(
    self, min_minutes: int, max_minutes: int, title: str, body: str
  ) -> ReminderSchedule:
    """Arm the next randomized reminder and persist its trigger time.

    Replaces any pending randomized reminder.
    """
    delay = compute_random_delay(min_minutes, max_minutes, self.rng)
    schedule = ReminderSchedule(
      trigger_time=self.clock() + delay,
      title=title,
      body=body,
      randomized=True,
      min_minutes=min_minutes,
      max_minutes=max_minutes,
    )

    self.timer_manager.schedule_timer(
      TimerConfig(
        trigger_at=schedule.trigger_time,
        request_code=RANDOM_REMINDER_REQUEST_CODE,
        extras=schedule.to_extras(),
      )
    )
    self.storage.set(NEXT_RANDOM_REMINDER_KEY, schedule.trigger_millis)

    logger.info(
      f"Randomized reminder armed in {int(delay.total_seconds() // 60)} min "
      f"at {schedule.trigger_time.isoformat()}"
    )
    return schedule

  def next_randomized(self) -> Optional[int]:
    """Persisted next trigger as epoch milliseconds, or None"""
    value = self.storage.get(NEXT_RANDOM_REMINDER_KEY)
    try:
      millis = int(value) if value is not None else 0
    except (TypeError, ValueError):
      logger.warning(f"Ignoring malformed {NEXT_RANDOM_REMINDER_KEY}: {value!r}")
      return None
    return millis if millis > 0 else None

  def cancel_randomized(self) -> None:
    """Cancel the pending randomized reminder and clear its persisted trigger."""
    try:
      cancelled = self.timer_manager.cancel_timer(RANDOM_REMINDER_REQUEST_CODE)
      logger.info(f"Randomized reminder cancelled (was pending: {cancelled})")
    finally:
      self.storage.remove(NEXT_RANDOM_REMINDER_KEY)

  # ---- daily ----
  def schedule_daily(self, hour: int, minute: int, title: str, body: str) -> datetime:
    """Arm a daily reminder at hour:minute; returns the first firing time."""
    run_time = time(hour=hour, minute=minute)
    extras = {"title": title, "body": body, "randomized": False}
    first_fire = self.timer_manager.schedule_daily(
      DAILY_REMINDER_REQUEST_CODE, run_time, extras
    )
    logger.info(f"Daily reminder armed for {run_time.strftime('%H:%M')}")
    return first_fire

  def schedule_streak(self, title: str, body: str) -> datetime:
    return self.schedule_daily(
      STREAK_REMINDER_TIME.hour, STREAK_REMINDER_TIME.minute, title, body
    )

  def cancel_daily(self) -> bool:
    return self.timer_manager.cancel_timer(DAILY_REMINDER_REQUEST_CODE)

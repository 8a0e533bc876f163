"""Tests for fired reminder handling"""

from datetime import timedelta

import pytest

from reminders.models import DEFAULT_BODY, DEFAULT_TITLE, AlarmExtras
from reminders.receiver import ReminderReceiver
from reminders.scheduler import NEXT_RANDOM_REMINDER_KEY, RANDOM_REMINDER_REQUEST_CODE


@pytest.fixture
def receiver(notifier, scheduler):
  return ReminderReceiver(notifier, scheduler)


@pytest.mark.asyncio
async def test_plain_reminder_shows_notification_only(receiver, notifier, timer_manager):
  result = await receiver.on_alarm({"title": "Daily", "body": "Time to learn!"})

  assert result is None
  assert [(t, b) for t, b, _ in notifier.shown] == [("Daily", "Time to learn!")]
  assert timer_manager.scheduled == []


@pytest.mark.asyncio
async def test_missing_extras_fall_back_to_defaults(receiver, notifier):
  await receiver.on_alarm({"title": None, "body": ""})
  assert notifier.shown[0][:2] == (DEFAULT_TITLE, DEFAULT_BODY)


@pytest.mark.asyncio
async def test_randomized_reminder_rearms_with_same_bounds(
  receiver, notifier, timer_manager, storage, now
):
  storage.set(NEXT_RANDOM_REMINDER_KEY, 1)
  extras = {
    "title": "Study",
    "body": "Open the app",
    "randomized": True,
    "min_minutes": 15,
    "max_minutes": 25,
  }

  next_schedule = await receiver.on_alarm(extras)

  assert notifier.shown[0][:2] == ("Study", "Open the app")
  assert next_schedule is not None
  assert timedelta(minutes=15) <= next_schedule.trigger_time - now <= timedelta(minutes=25)
  rearmed = timer_manager.pending[RANDOM_REMINDER_REQUEST_CODE]
  assert rearmed.extras == extras
  assert storage.get(NEXT_RANDOM_REMINDER_KEY) == next_schedule.trigger_millis


@pytest.mark.asyncio
async def test_invalid_extra_falls_back_without_breaking_chain(
  receiver, notifier, timer_manager, now
):
  next_schedule = await receiver.on_alarm(
    {"title": "Study", "randomized": True, "min_minutes": "soon", "max_minutes": 60}
  )

  assert notifier.shown[0][:2] == ("Study", DEFAULT_BODY)
  rearmed = timer_manager.pending[RANDOM_REMINDER_REQUEST_CODE]
  assert rearmed.extras["min_minutes"] == 30
  assert rearmed.extras["max_minutes"] == 60
  assert timedelta(minutes=30) <= next_schedule.trigger_time - now <= timedelta(minutes=60)


def test_alarm_extras_keep_valid_fields():
  alarm = AlarmExtras.parse({"title": "Study", "randomized": "maybe", "max_minutes": 90})
  assert (alarm.title, alarm.randomized, alarm.max_minutes) == ("Study", False, 90)


@pytest.mark.asyncio
async def test_chain_keeps_renewing(receiver, timer_manager):
  extras = {"randomized": True, "min_minutes": 5, "max_minutes": 5}
  for _ in range(3):
    fired = await receiver.on_alarm(extras)
    extras = timer_manager.pending[RANDOM_REMINDER_REQUEST_CODE].extras
    assert fired is not None
  assert len(timer_manager.scheduled) == 3


@pytest.mark.asyncio
async def test_notification_failure_still_rearms(receiver, notifier, timer_manager):
  async def broken(*_args, **_kwargs):
    raise RuntimeError("missing POST_NOTIFICATIONS")

  notifier.create_notification = broken
  await receiver.on_alarm({"randomized": True, "min_minutes": 30, "max_minutes": 60})
  assert RANDOM_REMINDER_REQUEST_CODE in timer_manager.pending


@pytest.mark.asyncio
async def test_persistence_failure_is_swallowed(receiver, storage):
  def broken_set(_key, _value):
    raise OSError("disk full")

  storage.set = broken_set
  result = await receiver.on_alarm({"randomized": True})
  assert result is None


def test_timer_manager_dispatches_fire_to_async_handler(receiver, notifier, timer_manager):
  timer_manager.set_fire_handler(receiver.on_alarm)
  timer_manager.dispatch_fire({"title": "Fired", "body": "from the OS"})
  assert notifier.shown[0][:2] == ("Fired", "from the OS")


def test_dispatch_without_handler_is_ignored(timer_manager):
  timer_manager.dispatch_fire({"title": "nobody listening"})

"""
Fire a reminder alarm on Linux.

systemd timer units written by LinuxTimerManager run this program when they
elapse. It shows the reminder and re-arms randomized reminders.

Usage:
    tenzin-reminder-fire --extras <encoded extras>
"""

import argparse
import asyncio
import logging

from backend.config import AppConfig
from os_interfaces.base import OSImplementations
from os_interfaces.linux import (
  LinuxConfigStorage,
  LinuxNotificationManager,
  LinuxTimerManager,
  decode_extras,
)
from reminders.receiver import ReminderReceiver
from reminders.scheduler import ReminderScheduler

logging.basicConfig(
  level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_receiver(os_impl: OSImplementations, app_name: str) -> ReminderReceiver:
  scheduler = ReminderScheduler(
    timer_manager=os_impl.timer_manager(app_name=app_name),
    storage=os_impl.config_storage(app_name=app_name),
  )
  return ReminderReceiver(os_impl.notification_manager(app_name=app_name), scheduler)


async def main(os_impl: OSImplementations | None = None) -> None:
  parser = argparse.ArgumentParser(
    description="Show a fired reminder and re-arm it when randomized."
  )
  parser.add_argument(
    "--extras",
    default="",
    help="Encoded alarm extras as written into the timer unit",
  )
  args = parser.parse_args()

  if os_impl is None:
    os_impl = OSImplementations(
      notification_manager_cls=LinuxNotificationManager,
      timer_manager_cls=LinuxTimerManager,
      config_storage_cls=LinuxConfigStorage,
    )

  try:
    extras = decode_extras(args.extras) if args.extras else {}
  except ValueError as e:
    logger.error(f"Could not decode alarm extras, using defaults: {e}")
    extras = {}

  receiver = build_receiver(os_impl, AppConfig.APP_NAME)
  next_schedule = await receiver.on_alarm(extras)
  if next_schedule:
    logger.info(f"Next reminder at {next_schedule.trigger_time.isoformat()}")


def run() -> None:
  asyncio.run(main())


if __name__ == "__main__":
  run()

"""Android-specific implementations of OS interfaces."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, time, timedelta
from typing import Any, Optional

from android.broadcast import BroadcastReceiver  # type: ignore
from android.permissions import check_permission, request_permissions  # type: ignore
from jnius import JavaException, autoclass  # type: ignore

from .base import (
  ConfigStorage,
  NotificationManager,
  NotificationStyle,
  TimerConfig,
  TimerManager,
)

logger = logging.getLogger(__name__)


# --- PyJNIus handles ---
PythonActivity = autoclass("org.kivy.android.PythonActivity")
Intent = autoclass("android.content.Intent")
PendingIntent = autoclass("android.app.PendingIntent")
NotificationManagerJava = autoclass("android.app.NotificationManager")
NotificationChannel = autoclass("android.app.NotificationChannel")
BuildVersion = autoclass("android.os.Build$VERSION")
NotificationCompatBuilder = autoclass("androidx.core.app.NotificationCompat$Builder")
NotificationCompatBigTextStyle = autoclass(
  "androidx.core.app.NotificationCompat$BigTextStyle"
)
NotificationCompat = autoclass("androidx.core.app.NotificationCompat")
AlarmManagerJava = autoclass("android.app.AlarmManager")
BitmapFactory = autoclass("android.graphics.BitmapFactory")
AndroidRDrawable = autoclass("android.R$drawable")
Context = autoclass("android.content.Context")

ACTION_ALARM_FIRE = "com.tenzin.app.ALARM_FIRED"
REMINDER_CHANNEL_ID = "tenzin_reminders"
CHAT_CHANNEL_ID = "tenzin_chat"
PREFS_NAME = "tenzin_prefs"
POST_NOTIFICATIONS = "android.permission.POST_NOTIFICATIONS"

_CHANNEL_IDS = {"reminders": REMINDER_CHANNEL_ID, "chat": CHAT_CHANNEL_ID}


def _context():
  return PythonActivity.mActivity.getApplicationContext()


def _flags(base: int | None = None) -> int:
  flag_immutable = PendingIntent.FLAG_IMMUTABLE
  flag_update = PendingIntent.FLAG_UPDATE_CURRENT
  return (base or 0) | flag_immutable | flag_update


def _ensure_channels(manager) -> None:
  if BuildVersion.SDK_INT < 26:
    return
  reminders = NotificationChannel(
    REMINDER_CHANNEL_ID,
    "Сануулга",
    NotificationManagerJava.IMPORTANCE_DEFAULT,
  )
  reminders.setDescription("Өдөр бүрийн суралцах сануулга")
  manager.createNotificationChannel(reminders)

  chat = NotificationChannel(
    CHAT_CHANNEL_ID,
    "Мессежүүд",
    NotificationManagerJava.IMPORTANCE_HIGH,
  )
  chat.setDescription("Шинэ мессежийн мэдэгдэл")
  chat.enableVibration(True)
  manager.createNotificationChannel(chat)


def _millis(dt: datetime) -> int:
  return int(dt.timestamp() * 1000)


def _launch_intent(ctx, extras: dict[str, Any]):
  intent = Intent(ctx, PythonActivity)
  intent.setFlags(Intent.FLAG_ACTIVITY_NEW_TASK | Intent.FLAG_ACTIVITY_CLEAR_TASK)
  for key, value in extras.items():
    if isinstance(value, bool):
      intent.putExtra(key, value)
    else:
      intent.putExtra(key, str(value))
  return intent


def _alarm_intent(ctx, extras: dict[str, Any] | None = None):
  intent = Intent(ACTION_ALARM_FIRE)
  intent.setPackage(ctx.getPackageName())
  if extras is not None:
    intent.putExtra("extras", json.dumps(extras))
  return intent


class AndroidNotificationManager(NotificationManager):
  """Android notification manager using PyJNIus NotificationCompat."""

  def __init__(self, app_name: str = "Tenzin"):
    self.app_name = app_name
    self.ctx = _context()
    self.manager = self.ctx.getSystemService(Context.NOTIFICATION_SERVICE)
    _ensure_channels(self.manager)

  async def create_notification(
    self,
    title: str,
    body: str,
    style: Optional[NotificationStyle] = None,
  ) -> None:
    style = style or NotificationStyle()
    icon = (
      AndroidRDrawable.ic_dialog_email
      if style.channel == "chat"
      else AndroidRDrawable.ic_dialog_info
    )
    priority = (
      NotificationCompat.PRIORITY_HIGH
      if style.channel == "chat"
      else NotificationCompat.PRIORITY_DEFAULT
    )

    content_pi = PendingIntent.getActivity(
      self.ctx,
      style.notification_id,
      _launch_intent(self.ctx, style.launch_extras),
      _flags(),
    )

    builder = (
      NotificationCompatBuilder(self.ctx, _CHANNEL_IDS[style.channel])
      .setSmallIcon(icon)
      .setContentTitle(title)
      .setContentText(body)
      .setAutoCancel(True)
      .setPriority(priority)
      .setContentIntent(content_pi)
    )
    if style.big_text:
      builder.setStyle(NotificationCompatBigTextStyle().bigText(body))
    if style.channel == "chat":
      builder.setCategory(NotificationCompat.CATEGORY_MESSAGE)
    if style.large_icon:
      bitmap = BitmapFactory.decodeByteArray(style.large_icon, 0, len(style.large_icon))
      if bitmap is not None:
        builder.setLargeIcon(bitmap)

    try:
      self.manager.notify(style.notification_id, builder.build())
      logger.info("Notification %s created", style.notification_id)
    except JavaException as e:
      # SecurityException when POST_NOTIFICATIONS is not granted
      logger.warning("Could not post notification %s: %s", style.notification_id, e)

  async def are_notifications_enabled(self) -> bool:
    if BuildVersion.SDK_INT < 24:
      return True
    return bool(self.manager.areNotificationsEnabled())

  async def request_permission(self) -> bool:
    if BuildVersion.SDK_INT >= 33 and not check_permission(POST_NOTIFICATIONS):
      request_permissions([POST_NOTIFICATIONS])
    return True


_alarm_receiver: BroadcastReceiver | None = None


class AndroidTimerManager(TimerManager):
  """Android timer manager using AlarmManager setExact/setRepeating."""

  def __init__(self, app_name: str = "Tenzin"):
    self.app_name = app_name
    self.ctx = _context()
    self.alarm_manager = self.ctx.getSystemService(Context.ALARM_SERVICE)
    self._ensure_alarm_receiver()

  def _ensure_alarm_receiver(self) -> None:
    global _alarm_receiver
    if _alarm_receiver is None:
      _alarm_receiver = BroadcastReceiver(self._on_receive, actions=[ACTION_ALARM_FIRE])
      _alarm_receiver.start()

  def _on_receive(self, _context, intent) -> None:
    extras_json = intent.getStringExtra("extras")
    extras = json.loads(extras_json) if extras_json else {}
    threading.Thread(target=self.dispatch_fire, args=(extras,), daemon=True).start()

  def _set_exact(self, trigger_at: int, pending_intent) -> None:
    if BuildVersion.SDK_INT >= 23:
      self.alarm_manager.setExactAndAllowWhileIdle(
        AlarmManagerJava.RTC_WAKEUP, trigger_at, pending_intent
      )
    else:
      self.alarm_manager.setExact(AlarmManagerJava.RTC_WAKEUP, trigger_at, pending_intent)

  def schedule_timer(self, timer_config: TimerConfig) -> str:
    trigger_at = _millis(timer_config.trigger_at)
    pending_intent = PendingIntent.getBroadcast(
      self.ctx,
      timer_config.request_code,
      _alarm_intent(self.ctx, timer_config.extras),
      _flags(),
    )
    self._set_exact(trigger_at, pending_intent)

    timer_id = f"alarm-{timer_config.request_code}"
    logger.info("Scheduled alarm %s at %s", timer_id, timer_config.trigger_at.isoformat())
    return timer_id

  def schedule_daily(
    self, request_code: int, run_time: time, extras: dict[str, Any]
  ) -> datetime:
    now = datetime.now()
    first_fire = datetime.combine(now.date(), run_time.replace(second=0, microsecond=0))
    if first_fire <= now:
      first_fire += timedelta(days=1)

    pending_intent = PendingIntent.getBroadcast(
      self.ctx, request_code, _alarm_intent(self.ctx, extras), _flags()
    )
    self.alarm_manager.setRepeating(
      AlarmManagerJava.RTC_WAKEUP,
      _millis(first_fire),
      AlarmManagerJava.INTERVAL_DAY,
      pending_intent,
    )
    logger.info("Scheduled daily alarm %s for %s", request_code, run_time.isoformat())
    return first_fire

  def cancel_timer(self, request_code: int) -> bool:
    pending_intent = PendingIntent.getBroadcast(
      self.ctx,
      request_code,
      _alarm_intent(self.ctx),
      PendingIntent.FLAG_IMMUTABLE | PendingIntent.FLAG_NO_CREATE,
    )
    if pending_intent is None:
      logger.info("No pending alarm %s to cancel", request_code)
      return False
    self.alarm_manager.cancel(pending_intent)
    pending_intent.cancel()
    logger.info("Cancelled alarm %s", request_code)
    return True


class AndroidConfigStorage(ConfigStorage):
  """Key-value storage backed by SharedPreferences; values are stored as JSON."""

  def __init__(self, app_name: str = "Tenzin", prefs_name: str = PREFS_NAME):
    self.app_name = app_name
    self.prefs = _context().getSharedPreferences(prefs_name, Context.MODE_PRIVATE)

  def load(self) -> dict:
    keys = self.prefs.getAll().keySet().toArray()
    return {key: self.get(key) for key in keys}

  def save(self, config: dict) -> None:
    editor = self.prefs.edit().clear()
    for key, value in config.items():
      editor.putString(key, json.dumps(value))
    editor.apply()

  def get(self, key: str, default: Any = None) -> Any:
    raw = self.prefs.getString(key, None)
    if raw is None:
      return default
    try:
      return json.loads(raw)
    except ValueError:
      logger.warning("Discarding malformed preference %s", key)
      return default

  def set(self, key: str, value: Any) -> None:
    self.prefs.edit().putString(key, json.dumps(value)).apply()

  def remove(self, key: str) -> None:
    self.prefs.edit().remove(key).apply()

"""OS interface module - platform-specific implementations

Since we build separate executables for each platform,
import the appropriate implementation directly in the entry points:
- entrypoints/tenzin_app_linux.py imports from os_interfaces.linux
- entrypoints/tenzin_app_android.py imports from os_interfaces.android
"""

from .base import (
  ConfigStorage,
  NotificationManager,
  NotificationStyle,
  OSImplementations,
  TimerConfig,
  TimerManager,
)

__all__ = [
  "ConfigStorage",
  "NotificationManager",
  "NotificationStyle",
  "OSImplementations",
  "TimerConfig",
  "TimerManager",
]

"""Linux entrypoint for the packaged Tenzin app (pywebview shell + backend).

This entrypoint injects Linux OS interface implementations.
"""

from __future__ import annotations

import os
from pathlib import Path

from entrypoints.tenzin_app_core import run_pywebview_app
from os_interfaces.base import OSImplementations
from os_interfaces.linux import (
  LinuxConfigStorage,
  LinuxNotificationManager,
  LinuxTimerManager,
)

FRONTEND_PATH = Path(os.environ.get("TENZIN_FRONTEND_PATH", "frontend/dist"))


def main() -> None:
  os_impl = OSImplementations(
    notification_manager_cls=LinuxNotificationManager,
    timer_manager_cls=LinuxTimerManager,
    config_storage_cls=LinuxConfigStorage,
  )
  run_pywebview_app(frontend_path=FRONTEND_PATH, os_impl=os_impl)


if __name__ == "__main__":
  main()

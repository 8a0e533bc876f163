"""Android entrypoint for the packaged Tenzin app.

Injects Android OS interfaces into the shared pywebview+backend bootstrap.
"""

from __future__ import annotations

import os
from pathlib import Path

from entrypoints.tenzin_app_core import run_pywebview_app
from os_interfaces.base import OSImplementations
from os_interfaces.android import (
  AndroidConfigStorage,
  AndroidNotificationManager,
  AndroidTimerManager,
)

# On Android we rely on runtime-provided assets; in practice this may be set via env.
FRONTEND_PATH = Path(
  os.environ.get("TENZIN_FRONTEND_PATH", "/data/user/0/com.tenzin.app/files/frontend")
)


def main() -> None:
  os_impl = OSImplementations(
    notification_manager_cls=AndroidNotificationManager,
    timer_manager_cls=AndroidTimerManager,
    config_storage_cls=AndroidConfigStorage,
  )
  run_pywebview_app(frontend_path=FRONTEND_PATH, os_impl=os_impl)


if __name__ == "__main__":
  main()

"""Push notification fan-out worker"""

from .config import ConfigError, PushPayload, PushWorkerConfig
from .worker import BatchResult, PushWorker, RunSummary

__all__ = [
  "BatchResult",
  "ConfigError",
  "PushPayload",
  "PushWorker",
  "PushWorkerConfig",
  "RunSummary",
]

"""
Reminder data model
Schedules travel through alarm extras as flat JSON maps
"""

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Тензин сануулга 📚"
DEFAULT_BODY = "Өнөөдрийн хичээлээ хийхээ мартсан уу?"
DEFAULT_MIN_MINUTES = 30
DEFAULT_MAX_MINUTES = 180


class ReminderSchedule(BaseModel):
  """A pending reminder and everything needed to re-arm it"""

  trigger_time: datetime
  title: str = DEFAULT_TITLE
  body: str = DEFAULT_BODY
  randomized: bool = False
  min_minutes: int = Field(default=DEFAULT_MIN_MINUTES)
  max_minutes: int = Field(default=DEFAULT_MAX_MINUTES)

  @property
  def trigger_millis(self) -> int:
    return int(self.trigger_time.timestamp() * 1000)

  def to_extras(self) -> dict[str, Any]:
    """Alarm extras; the trigger time is owned by the alarm itself."""
    return {
      "title": self.title,
      "body": self.body,
      "randomized": self.randomized,
      "min_minutes": self.min_minutes,
      "max_minutes": self.max_minutes,
    }


class AlarmExtras(BaseModel):
  """Extras delivered with a fired alarm. Missing values fall back to defaults."""

  title: str = DEFAULT_TITLE
  body: str = DEFAULT_BODY
  randomized: bool = False
  min_minutes: int = DEFAULT_MIN_MINUTES
  max_minutes: int = DEFAULT_MAX_MINUTES

  @classmethod
  def parse(cls, extras: dict[str, Any]) -> "AlarmExtras":
    """Parse alarm extras; missing or invalid fields fall back to defaults."""
    cleaned = {k: v for k, v in extras.items() if v is not None and v != ""}
    try:
      return cls(**cleaned)
    except ValidationError as e:
      invalid = {err["loc"][0] for err in e.errors() if err["loc"]}
      logger.warning(f"Alarm extras {sorted(map(str, invalid))} invalid, using defaults")
      return cls(**{k: v for k, v in cleaned.items() if k not in invalid})

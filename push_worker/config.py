"""
Push worker configuration
Read from the environment (and a .env file) once per run
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from backend.config import APPWRITE_API_KEY, get_api_key

logger = logging.getLogger(__name__)

# Firebase Cloud Messaging accepts at most 500 tokens per multicast
MAX_MULTICAST_TOKENS = 500


class ConfigError(ValueError):
  """Raised when the worker environment is incomplete or malformed"""


class PushPayload(BaseModel):
  """Notification shown on every device in the run"""

  title: str = "Tenzin"
  body: str = "Hello from Tenzin!"
  data: Dict[str, str] = Field(default_factory=dict)

  @field_validator("data", mode="before")
  @classmethod
  def stringify_values(cls, v):
    """FCM data payloads only carry string values"""
    if isinstance(v, dict):
      return {
        str(k): val if isinstance(val, str) else json.dumps(val)
        for k, val in v.items()
      }
    return v


class PushWorkerConfig(BaseModel):
  appwrite_endpoint: str
  appwrite_project_id: str
  appwrite_api_key: str = Field(repr=False)
  database_id: str = "default"
  collection_id: str = "push_tokens"
  firebase_service_account_json: Path
  payload: PushPayload = Field(default_factory=PushPayload)
  fetch_limit: int = Field(default=500, ge=1)
  batch_size: int = Field(default=MAX_MULTICAST_TOKENS, ge=1, le=MAX_MULTICAST_TOKENS)

  @classmethod
  def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PushWorkerConfig":
    """
    Build the configuration from environment variables

    Args:
        environ: Mapping to read from (default: os.environ)

    Raises:
        ConfigError: If a required variable is missing or a value is malformed
    """
    env = os.environ if environ is None else environ

    endpoint = env.get("APPWRITE_ENDPOINT")
    project_id = env.get("APPWRITE_PROJECT_ID")
    api_key = get_api_key(APPWRITE_API_KEY, "APPWRITE_API_KEY", environ=env)
    if not (endpoint and project_id and api_key):
      raise ConfigError("Missing Appwrite configuration in .env")

    service_account = env.get("FIREBASE_SERVICE_ACCOUNT_JSON")
    if not service_account:
      raise ConfigError(
        "Missing FIREBASE_SERVICE_ACCOUNT_JSON env var (path to service account JSON)"
      )

    try:
      data = json.loads(env["PUSH_DATA"]) if env.get("PUSH_DATA") else {}
    except json.JSONDecodeError as e:
      raise ConfigError(f"PUSH_DATA is not valid JSON: {e}") from e
    if not isinstance(data, dict):
      raise ConfigError("PUSH_DATA must be a JSON object")

    values = {
      "appwrite_endpoint": endpoint,
      "appwrite_project_id": project_id,
      "appwrite_api_key": api_key,
      "database_id": env.get("APPWRITE_DATABASE_ID") or "default",
      "collection_id": env.get("APPWRITE_COLLECTION_ID") or "push_tokens",
      "firebase_service_account_json": service_account,
      "payload": {
        "title": env.get("PUSH_TITLE") or "Tenzin",
        "body": env.get("PUSH_BODY") or "Hello from Tenzin!",
        "data": data,
      },
    }
    if env.get("PUSH_FETCH_LIMIT"):
      values["fetch_limit"] = env["PUSH_FETCH_LIMIT"]
    if env.get("PUSH_BATCH_SIZE"):
      values["batch_size"] = env["PUSH_BATCH_SIZE"]

    try:
      return cls(**values)
    except ValidationError as e:
      raise ConfigError(f"Invalid push worker configuration: {e}") from e

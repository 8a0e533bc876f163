"""
Configuration module for Tenzin
Handles secure API key storage and retrieval
"""

import os
import logging
from typing import Mapping, Optional
import keyring
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

# Configuration constants
KEYRING_SERVICE = "tenzin-app"
APPWRITE_API_KEY = "appwrite_api_key"

DEFAULT_APPWRITE_ENDPOINT = "https://sgp.cloud.appwrite.io/v1"
DEFAULT_APPWRITE_PROJECT_ID = "69536e3f003c0ac930bd"


def set_api_key(key_name: str, value: str) -> None:
  """
  Store an API key securely in the system keyring

  Args:
    key_name: Name of the key (e.g., 'appwrite_api_key')
    value: The API key value
  """
  try:
    keyring.set_password(KEYRING_SERVICE, key_name, value)
    logger.info(f"API key '{key_name}' stored successfully")
  except Exception as e:
    logger.error(f"Failed to store API key '{key_name}': {e}")
    raise


def get_api_key(
  key_name: str,
  env_fallback: Optional[str] = None,
  environ: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
  """
  Retrieve an API key from keyring with optional environment variable fallback

  Args:
    key_name: Name of the key to retrieve
    env_fallback: Optional environment variable name to check if keyring fails
    environ: Environment mapping to read the fallback from (default: os.environ)

  Returns:
    The API key value or None if not found
  """
  # Try keyring first
  try:
    value = keyring.get_password(KEYRING_SERVICE, key_name)
    if value:
      logger.debug(f"API key '{key_name}' retrieved from keyring")
      return value
  except Exception as e:
    logger.warning(f"Failed to retrieve '{key_name}' from keyring: {e}")

  # Fall back to environment variable
  if env_fallback:
    value = (os.environ if environ is None else environ).get(env_fallback)
    if value:
      logger.debug(f"API key '{key_name}' retrieved from environment variable")
      return value

  logger.warning(f"API key '{key_name}' not found in keyring or environment")
  return None


# Configuration class for other settings
class AppConfig:
  """Application configuration settings"""

  APP_NAME = os.getenv("TENZIN_APP_NAME", "tenzin")

  # Server settings
  HOST = os.getenv("HOST", "127.0.0.1")
  PORT = int(os.getenv("PORT", "8000"))

  # CORS settings
  CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS", "http://localhost:5173,http://localhost:8000"
  ).split(",")

  # Appwrite connectivity check
  APPWRITE_ENDPOINT = os.getenv("APPWRITE_ENDPOINT", DEFAULT_APPWRITE_ENDPOINT)
  APPWRITE_PROJECT_ID = os.getenv("APPWRITE_PROJECT_ID", DEFAULT_APPWRITE_PROJECT_ID)
  APPWRITE_PING = os.getenv("APPWRITE_PING", "true").lower() == "true"

  # Logging
  LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


# Utility function for CLI key management
if __name__ == "__main__":
  import sys

  if len(sys.argv) < 2:
    print("Usage: python -m backend.config <command> [args]")
    print("Commands:")
    print("  check              - Check if the Appwrite API key is present")
    print("  set-appwrite <key> - Set Appwrite API key")
    sys.exit(1)

  command = sys.argv[1]

  if command == "check":
    if get_api_key(APPWRITE_API_KEY, "APPWRITE_API_KEY"):
      print("✓ Appwrite API key is present")
    else:
      print("✗ Missing Appwrite API key")
      sys.exit(1)

  elif command == "set-appwrite" and len(sys.argv) == 3:
    set_api_key(APPWRITE_API_KEY, sys.argv[2])
    print("✓ Appwrite API key set successfully")

  else:
    print("Invalid command or arguments")
    sys.exit(1)

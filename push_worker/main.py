"""
Send a push notification to every registered device token.

Meant to be triggered by an external scheduler (cron, CI job). Configuration
comes from the environment or a .env file.

Usage:
    tenzin-push-worker [--limit N] [--dry-run] [--env-file PATH]
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from push_worker.config import ConfigError, PushWorkerConfig
from push_worker.worker import PushWorker, create_databases, init_firebase

logging.basicConfig(
  level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
  number = int(value)
  if number < 1:
    raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
  return number


def main(argv: list[str] | None = None) -> int:
  parser = argparse.ArgumentParser(
    description="Fan out a push notification to device tokens stored in Appwrite."
  )
  parser.add_argument(
    "--limit",
    type=positive_int,
    help="Maximum number of token documents to fetch (default: PUSH_FETCH_LIMIT or 500)",
  )
  parser.add_argument(
    "--dry-run",
    action="store_true",
    help="Validate messages with FCM without delivering them",
  )
  parser.add_argument(
    "--env-file",
    type=Path,
    help="Additional .env file to load before reading configuration",
  )
  args = parser.parse_args(argv)

  if args.env_file:
    load_dotenv(args.env_file, override=True)

  try:
    config = PushWorkerConfig.from_env()
  except ConfigError as e:
    logger.error(str(e))
    return 1

  try:
    firebase_app = init_firebase(config.firebase_service_account_json)
  except Exception as e:
    logger.error(f"Failed to initialize Firebase: {e}")
    return 1

  worker = PushWorker(
    create_databases(config), config, firebase_app=firebase_app, dry_run=args.dry_run
  )
  summary = worker.run(limit=args.limit)
  logger.info(
    f"Run complete: {summary.documents} documents, {summary.batches} batches, "
    f"{summary.success} delivered, {summary.failure} failed, {summary.marked} marked"
  )
  return 0


def run() -> None:
  sys.exit(main())


if __name__ == "__main__":
  run()

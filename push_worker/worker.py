"""
Push fan-out worker.

Lists push-token documents from Appwrite, sends one multicast per batch via
Firebase Cloud Messaging and marks every document in the batch with the
batch's aggregate result. Failures are logged and skipped; a run is neither
atomic nor resumable.
"""

import logging
import time
from typing import Any, Iterator, Optional, Sequence

import firebase_admin
from appwrite.client import Client
from appwrite.query import Query
from appwrite.services.databases import Databases
from firebase_admin import credentials, messaging
from pydantic import BaseModel, Field

from push_worker.config import PushPayload, PushWorkerConfig

logger = logging.getLogger(__name__)


class TokenResult(BaseModel):
  token: str
  success: bool
  message_id: Optional[str] = None
  error: Optional[str] = None


class BatchResult(BaseModel):
  """Aggregate outcome of one multicast send"""

  success: int = 0
  failure: int = 0
  responses: list[TokenResult] = Field(default_factory=list)


class RunSummary(BaseModel):
  documents: int = 0
  batches: int = 0
  success: int = 0
  failure: int = 0
  marked: int = 0


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
  for start in range(0, len(items), size):
    yield items[start : start + size]


def create_databases(config: PushWorkerConfig) -> Databases:
  client = (
    Client()
    .set_endpoint(config.appwrite_endpoint)
    .set_project(config.appwrite_project_id)
    .set_key(config.appwrite_api_key)
  )
  return Databases(client)


def init_firebase(service_account_path) -> firebase_admin.App:
  """Initialize the default Firebase app once per process."""
  try:
    return firebase_admin.get_app()
  except ValueError:
    cred = credentials.Certificate(str(service_account_path))
    return firebase_admin.initialize_app(cred)


class PushWorker:
  def __init__(
    self,
    databases: Databases,
    config: PushWorkerConfig,
    firebase_app: Optional[firebase_admin.App] = None,
    dry_run: bool = False,
  ):
    self.databases = databases
    self.config = config
    self.firebase_app = firebase_app
    self.dry_run = dry_run

  def fetch_tokens(self, limit: int) -> list[dict[str, Any]]:
    """Fetch up to `limit` token documents; errors yield an empty list"""
    try:
      resp = self.databases.list_documents(
        self.config.database_id,
        self.config.collection_id,
        queries=[Query.limit(limit)],
      )
      return list(resp.get("documents") or [])
    except Exception as e:
      logger.error(f"Error fetching tokens: {e}")
      return []

  def send_batch(
    self, documents: Sequence[dict[str, Any]], payload: PushPayload
  ) -> BatchResult:
    """Send one multicast to the tokens of `documents`"""
    tokens = [doc.get("token") for doc in documents]
    tokens = [t for t in tokens if t]
    if not tokens:
      return BatchResult()

    message = messaging.MulticastMessage(
      tokens=tokens,
      notification=messaging.Notification(title=payload.title, body=payload.body),
      data=payload.data,
    )

    try:
      res = messaging.send_each_for_multicast(
        message, dry_run=self.dry_run, app=self.firebase_app
      )
    except Exception as e:
      logger.error(f"Error sending multicast: {e}")
      return BatchResult(failure=len(tokens))

    responses = [
      TokenResult(
        token=token,
        success=r.success,
        message_id=r.message_id,
        error=str(r.exception) if r.exception else None,
      )
      for token, r in zip(tokens, res.responses)
    ]
    return BatchResult(
      success=res.success_count, failure=res.failure_count, responses=responses
    )

  def mark_sent(self, document_id: str, result: BatchResult) -> bool:
    try:
      self.databases.update_document(
        self.config.database_id,
        self.config.collection_id,
        document_id,
        data={
          "sent": True,
          "sent_at": int(time.time() * 1000),
          "last_result": result.model_dump_json(),
        },
      )
      return True
    except Exception as e:
      logger.error(f"Failed to mark token sent for {document_id}: {e}")
      return False

  def run(self, limit: Optional[int] = None) -> RunSummary:
    if limit is None:
      limit = self.config.fetch_limit
    elif limit < 1:
      raise ValueError(f"limit must be at least 1, got {limit}")

    logger.info("Fetching tokens from Appwrite...")
    documents = self.fetch_tokens(limit)
    logger.info(f"Found {len(documents)} token documents.")

    summary = RunSummary(documents=len(documents))
    for index, chunk in enumerate(chunked(documents, self.config.batch_size), start=1):
      logger.info(f"Sending chunk {index} ({len(chunk)} tokens)")
      result = self.send_batch(chunk, self.config.payload)
      logger.info(f"Result: success={result.success} failure={result.failure}")

      summary.batches += 1
      summary.success += result.success
      summary.failure += result.failure

      # every document in the chunk gets the chunk's aggregate result
      for doc in chunk:
        if self.mark_sent(doc["$id"], result):
          summary.marked += 1

    logger.info("Done.")
    return summary

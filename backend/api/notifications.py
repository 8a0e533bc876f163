"""
Notifications API endpoints
Exposes the notification method channel to the UI layer
"""

from fastapi import APIRouter, Body, Request
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
import logging

from backend.bridge import NotificationBridge
from backend.exceptions import AppError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


class MethodResult(BaseModel):
  """Result of a method-channel call"""

  method: str
  result: Any = None


def _bridge(request: Request) -> NotificationBridge:
  return request.app.state.notification_bridge


@router.get("/methods", response_model=List[str])
async def list_methods(request: Request) -> List[str]:
  """
  List the method names the channel understands
  """
  return _bridge(request).methods


@router.post("/{method}", response_model=MethodResult)
async def call_method(
  method: str,
  request: Request,
  args: Optional[Dict[str, Any]] = Body(default=None),
) -> MethodResult:
  """
  Invoke a named method with a flat argument map
  """
  try:
    result = await _bridge(request).invoke(method, args)
    return MethodResult(method=method, result=result)
  except (AppError, ValueError):
    raise
  except Exception as e:
    logger.error(f"Error invoking {method}: {e}")
    raise AppError.from_exception(
      e,
      name="NOTIFICATION_METHOD_ERROR",
      source="notifications",
      context=f"Failed to invoke {method}",
    )

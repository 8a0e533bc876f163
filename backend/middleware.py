"""
Middleware for error handling and request logging
"""

import time
import logging

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.types import ASGIApp, Receive, Scope, Send
from asgi_correlation_id import CorrelationIdMiddleware
from backend.exceptions import AppError, get_status_code

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware:
  def __init__(self, app: ASGIApp):
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send):
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    response_started = False

    async def send_wrapper(message):
      nonlocal response_started
      if message["type"] == "http.response.start":
        response_started = True  # Mark that we've started
      await send(message)

    try:
      await self.app(scope, receive, send_wrapper)
    except Exception as e:
      response = error_handler(e)
      if not response_started:
        await response(scope, receive, send_wrapper)
      else:
        logger.error("Can't send error - response already started")


def _describe_validation_error(e: ValidationError) -> str:
  """One line per rejected argument, keyed by the name the caller sent"""
  parts = []
  for err in e.errors():
    field = ".".join(str(p) for p in err["loc"]) or "args"
    parts.append(f"{field}: {err['msg']}")
  return "; ".join(parts)


def error_handler(exc: Exception) -> JSONResponse:
  """
  Convert an exception raised by a route into the AppError response format.

  Method-channel callers only look at `name` and `description`, so unexpected
  errors report the exception type and message without a traceback.
  """
  match exc:
    case AppError() as e:
      logger.error(f"[{e.source}] {e.name}: {e.description}")
      return JSONResponse(
        status_code=get_status_code(e.source),
        content=e.to_response().model_dump(),
      )

    case HTTPException() as e:
      logger.error(f"HTTP error {e.status_code}: {e.detail}")
      app_error = AppError(
        description=str(e.detail),
        name=f"HTTP_{e.status_code}",
        source="http",
      )
      return JSONResponse(
        status_code=e.status_code,
        content=app_error.to_response().model_dump(),
      )

    case ValidationError() as e:
      description = _describe_validation_error(e)
      logger.warning(f"Rejected method arguments: {description}")
      app_error = AppError(
        description=description,
        name="VALIDATION_ERROR",
        source="validation",
        caused_by=f"{e.error_count()} invalid argument(s) for {e.title}",
      )
      return JSONResponse(
        status_code=get_status_code("validation"),
        content=app_error.to_response().model_dump(),
      )

    case ValueError() as e:
      logger.warning(f"Validation error: {e}")
      app_error = AppError(
        description=str(e),
        name="VALIDATION_ERROR",
        source="validation",
        caused_by=e.__class__.__name__,
      )
      return JSONResponse(
        status_code=get_status_code("validation"),
        content=app_error.to_response().model_dump(),
      )

    case Exception() as e:
      logger.error(f"Unhandled error: {e}", exc_info=e)
      app_error = AppError(
        description=str(e) or "Internal error",
        name="INTERNAL_ERROR",
        source="unknown",
        caused_by=e.__class__.__name__,
      )
      return JSONResponse(
        status_code=get_status_code("unknown"),
        content=app_error.to_response().model_dump(),
      )


# Polled by the desktop shell while the backend starts
QUIET_PATHS = frozenset({"/health"})
METHOD_CHANNEL_PREFIX = "/api/notifications/"


class LoggingMiddleware:
  """Logs one line per request; method-channel calls are logged by method name."""

  def __init__(self, app: ASGIApp):
    self.app = app

  async def __call__(self, scope: Scope, receive: Receive, send: Send):
    if scope["type"] != "http":
      await self.app(scope, receive, send)
      return

    start_time = time.time()
    method = scope["method"]
    path = scope["path"]
    level = logging.DEBUG if path in QUIET_PATHS else logging.INFO

    if method == "POST" and path.startswith(METHOD_CHANNEL_PREFIX):
      target = f"method {path.removeprefix(METHOD_CHANNEL_PREFIX)}"
    else:
      target = f"{method} {path}"

    status_code = None

    async def send_wrapper(message):
      nonlocal status_code
      if message["type"] == "http.response.start":
        status_code = message["status"]
      await send(message)

    try:
      await self.app(scope, receive, send_wrapper)
    finally:
      duration = time.time() - start_time
      logger.log(level, f"{target} -> {status_code} ({duration:.3f}s)")


def setup_logging_middleware(app):
  """
  Set up all middleware for the application

  Args:
    app: FastAPI application instance
  """
  # Logging should be outermost to log all requests
  app.add_middleware(LoggingMiddleware)

  app.add_middleware(CorrelationIdMiddleware)

  logger.info("Middleware configured successfully")

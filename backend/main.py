"""
Tenzin notifications backend - FastAPI server
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse
from contextlib import asynccontextmanager
import logging
import os
import asyncio
from pathlib import Path
from asgi_correlation_id import CorrelationIdFilter

from backend.api.notifications import router as notifications_router
from backend.appwrite_ping import ping_appwrite
from backend.bridge import NotificationBridge
from backend.config import AppConfig
from backend.middleware import ErrorHandlingMiddleware, setup_logging_middleware
from os_interfaces.base import OSImplementations
from reminders.receiver import ReminderReceiver
from reminders.scheduler import ReminderScheduler

# Configure logging
logging.basicConfig(
  level=AppConfig.LOG_LEVEL,
  format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Add correlation ID filter to all handlers
for handler in logging.root.handlers:
  handler.addFilter(CorrelationIdFilter(uuid_length=4))

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
  """Manage application lifecycle"""
  logger.info("Starting Tenzin backend...")
  if AppConfig.APPWRITE_PING:
    app.state.ping_task = asyncio.create_task(
      ping_appwrite(AppConfig.APPWRITE_ENDPOINT, AppConfig.APPWRITE_PROJECT_ID)
    )
  yield
  logger.info("Shutting down Tenzin backend...")


def _mount_frontend(app: FastAPI) -> None:
  """Serve the bundled frontend when TENZIN_FRONTEND_PATH points at it"""
  frontend_dir = os.environ.get("TENZIN_FRONTEND_PATH")
  frontend_path = Path(frontend_dir) if frontend_dir else None

  if not frontend_path or not frontend_path.exists():
    logger.warning("Frontend directory not found or not set. API-only mode.")

    @app.get("/")
    async def root():
      """Root endpoint - API only mode"""
      return {"message": "Tenzin notifications API", "version": VERSION}

    return

  logger.info(f"Serving frontend from: {frontend_path}")
  app.mount("/assets", StaticFiles(directory=frontend_path / "assets"), name="assets")

  # Catch-all route for SPA - must be last
  @app.get("/{full_path:path}")
  async def serve_frontend(full_path: str):
    """Serve frontend files, fallback to index.html for SPA routing"""
    file_path = frontend_path / full_path
    if file_path.is_file():
      return FileResponse(file_path)

    response = FileResponse(frontend_path / "index.html")
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return response


def create_app(os_impl: OSImplementations) -> FastAPI:
  """Build the app and wire platform implementations into the bridge."""
  app_name = AppConfig.APP_NAME
  notifier = os_impl.notification_manager(app_name=app_name)
  timer_manager = os_impl.timer_manager(app_name=app_name)
  storage = os_impl.config_storage(app_name=app_name)

  scheduler = ReminderScheduler(timer_manager=timer_manager, storage=storage)
  receiver = ReminderReceiver(notifier, scheduler)
  timer_manager.set_fire_handler(receiver.on_alarm)

  app = FastAPI(
    title="Tenzin notifications",
    description="Local reminders and notification display for the Tenzin app",
    version=VERSION,
    lifespan=lifespan,
  )
  app.state.notifier = notifier
  app.state.timer_manager = timer_manager
  app.state.storage = storage
  app.state.reminder_scheduler = scheduler
  app.state.notification_bridge = NotificationBridge(notifier, scheduler)

  # innermost
  app.add_middleware(ErrorHandlingMiddleware)

  app.add_middleware(
    CORSMiddleware,
    allow_origins=AppConfig.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )

  # outermost
  setup_logging_middleware(app)

  app.include_router(notifications_router)

  @app.get("/health")
  async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "tenzin-backend", "version": VERSION}

  _mount_frontend(app)
  return app

"""
Location Bridge - FastAPI Server
Geolocation and mock location automation for Android devices over ADB.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from config.defaults import load_defaults_from_env
from core.adb.adb_manager import ADBManager
from core.bidi.events import BiDiLogHandler
from services.device_sessions import DeviceSessionManager
from utils.error_handler import LocationBridgeError, handle_api_error
from utils.version import APP_VERSION

# Route modules (modular architecture)
from routes import RouteDependencies, set_dependencies
from routes import bidi, geolocation, health, legacy

defaults = load_defaults_from_env()

# Configure logging
logging.basicConfig(
    level=getattr(logging, defaults.LOG_LEVEL.upper(), logging.INFO),
    format="[%(asctime)s] %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


# Startup and Shutdown Events
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire managers on startup, close device sessions on shutdown"""
    logger.info(f"[Server] Starting Location Bridge v{APP_VERSION}")
    logger.info(f"[Server] Mock app store: {defaults.MOCK_APP_IDS_STORE}")

    bidi_log_handler = BiDiLogHandler(max_buffer=defaults.BIDI_EVENT_BUFFER)
    bidi_log_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logging.getLogger().addHandler(bidi_log_handler)

    session_manager = DeviceSessionManager(
        ADBManager(), defaults=defaults, bidi_handler=bidi_log_handler
    )
    set_dependencies(
        RouteDependencies(
            session_manager=session_manager,
            defaults=defaults,
            bidi_log_handler=bidi_log_handler,
        )
    )
    logger.info("[Server] Route dependencies initialized")

    try:
        yield
    finally:
        logger.info("[Server] Shutting down, closing device sessions")
        await session_manager.close_all()
        logging.getLogger().removeHandler(bidi_log_handler)
        set_dependencies(None)


app = FastAPI(title="Location Bridge", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LocationBridgeError)
async def location_bridge_exception_handler(request: Request, exc: LocationBridgeError):
    """Map domain errors to status codes"""
    return handle_api_error(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log and return detailed validation errors"""
    logger.error(f"[VALIDATION ERROR] {request.method} {request.url}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"success": False, "detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


# Register route modules
app.include_router(health.router)
app.include_router(geolocation.router)
app.include_router(legacy.router)
app.include_router(bidi.router)


if __name__ == "__main__":
    logger.info(f"Starting Location Bridge v{APP_VERSION}")
    logger.info(f"API: http://localhost:{defaults.SERVER_PORT}/api")
    uvicorn.run(app, host=defaults.SERVER_HOST, port=defaults.SERVER_PORT, log_level="info")

"""
FastAPI application for the Jot engine.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from jotengine import __version__
from .routes import router, get_config

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger(__name__)


# ============================================================================
# APP SETUP
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load configuration and prepare the upload directory on startup."""
    config = get_config()
    logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))
    config.ensure_directories()
    logger.info(f"Jot API starting | engine={config.transcription_engine} | "
                f"timezone={config.default_timezone}")
    yield
    logger.info("Jot API shutting down")


app = FastAPI(
    title="Jot",
    description="Turn voice and typed notes into structured tasks",
    version=__version__,
    lifespan=lifespan
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same 400 shape as every other input error."""
    logger.info(f"Rejected request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": {
            "error": "invalid_request",
            "message": "Some of the details sent were missing or in the wrong format.",
        }},
    )


app.include_router(router)

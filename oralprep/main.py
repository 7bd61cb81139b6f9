"""
Main entry point for the oral practice feedback service
"""

import logging
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from oralprep import __version__
from oralprep.api.deps import get_feedback_job_runner
from oralprep.api.main import create_app
from oralprep.core.config import settings


# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting oral practice feedback service",
                version=__version__,
                grader_model=settings.GRADER_MODEL,
                feedback_timeout=settings.FEEDBACK_TIMEOUT_SECONDS)

    if not settings.GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY is not set - session analysis will fail")
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        logger.warning("Supabase credentials are not set - session storage is unavailable")

    yield

    # Cleanup
    logger.info("Shutting down services...")
    await get_feedback_job_runner().shutdown()
    logger.info("Shutdown complete")


# Create the FastAPI app at module level for ASGI
app = create_app(lifespan=lifespan)


# For direct execution
if __name__ == "__main__":
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper()))

    logger.info("Starting uvicorn server", host=settings.API_HOST, port=settings.API_PORT)
    uvicorn.run(
        "oralprep.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
        reload=False
    )

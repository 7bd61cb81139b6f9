"""
FastAPI application setup and configuration
"""

from datetime import datetime, timezone
from typing import Callable, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from oralprep import __description__, __version__
from oralprep.api.routes import sessions
from oralprep.api.schemas import ErrorResponse, HealthResponse
from oralprep.core.config import settings

logger = structlog.get_logger(__name__)


def create_app(lifespan: Optional[Callable] = None) -> FastAPI:
    """
    Create and configure the FastAPI application

    Args:
        lifespan: Optional lifespan context manager

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=__version__,
        description=__description__,
        debug=settings.DEBUG,
        lifespan=lifespan
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(sessions.router, prefix=settings.API_V1_PREFIX)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions with structured error responses"""
        logger.warning("HTTP exception occurred",
                       status_code=exc.status_code,
                       detail=str(exc.detail),
                       path=request.url.path)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=str(exc.detail),
                request_id=request.headers.get("X-Request-ID")
            ).model_dump(exclude_none=True)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors"""
        logger.warning("Validation error occurred",
                       errors=exc.errors(),
                       path=request.url.path)

        error_details = []
        for error in exc.errors():
            error_details.append({
                "type": error["type"],
                "message": error["msg"],
                "field": ".".join(str(loc) for loc in error["loc"])
            })

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse(
                error="Validation error",
                details=error_details,
                request_id=request.headers.get("X-Request-ID")
            ).model_dump(exclude_none=True)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions"""
        logger.error("Unexpected exception occurred",
                     exception=str(exc),
                     exception_type=type(exc).__name__,
                     path=request.url.path)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal server error",
                request_id=request.headers.get("X-Request-ID")
            ).model_dump(exclude_none=True)
        )

    # Add middleware for request logging
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests for monitoring and debugging"""
        logger.info("Request started",
                    method=request.method,
                    path=request.url.path,
                    client_ip=request.client.host if request.client else None)

        response = await call_next(request)

        logger.info("Request completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code)

        return response

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check():
        services = {
            "grader": "configured" if settings.GEMINI_API_KEY else "not_configured",
            "database": "configured" if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY else "not_configured",
        }
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc),
            services=services,
            version=__version__
        )

    logger.info("FastAPI application configured",
                title=settings.PROJECT_NAME,
                version=__version__,
                cors_origins=settings.CORS_ORIGINS,
                debug=settings.DEBUG)

    return app

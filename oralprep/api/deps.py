"""
FastAPI dependency injection for services
"""

from functools import lru_cache

import structlog
from fastapi import HTTPException, status

from oralprep.db.sessions import SessionRepository
from oralprep.services.feedback_jobs import FeedbackJobRunner
from oralprep.services.feedback_service import FeedbackService
from oralprep.services.session_service import SessionService

logger = structlog.get_logger(__name__)


# Service Dependencies

@lru_cache()
def get_session_repository() -> SessionRepository:
    """Dependency for the practice session table"""
    return SessionRepository()


@lru_cache()
def get_session_service() -> SessionService:
    """
    Create and cache session service instance
    """
    try:
        return SessionService(get_session_repository())
    except Exception as e:
        logger.error("Failed to initialize session service", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session service unavailable"
        )


@lru_cache()
def get_feedback_service() -> FeedbackService:
    """
    Create and cache feedback service instance
    """
    try:
        return FeedbackService(get_session_repository())
    except Exception as e:
        logger.error("Failed to initialize feedback service", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Feedback service unavailable"
        )


@lru_cache()
def get_feedback_job_runner() -> FeedbackJobRunner:
    """Dependency for background feedback jobs"""
    return FeedbackJobRunner(get_feedback_service())

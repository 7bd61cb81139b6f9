"""
Practice session routes: lifecycle transitions, analysis and teacher overrides
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from oralprep.api.deps import get_feedback_job_runner, get_feedback_service, get_session_service
from oralprep.api.schemas import (
    FeedbackJobResponse,
    ScoreOverrideRequest,
    ScoreOverrideResponse,
    SessionAdvanceRequest,
    SessionCreateRequest,
)
from oralprep.domain.errors import (
    FeedbackPipelineError,
    InvalidOverrideError,
    InvalidTransitionError,
    SessionNotCompletedError,
    SessionNotFoundError,
)
from oralprep.domain.models import SessionPhase
from oralprep.services.feedback_jobs import FeedbackJobRunner
from oralprep.services.feedback_service import FeedbackService
from oralprep.services.session_service import SessionService

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/sessions", tags=["sessions"])

ANALYSIS_FAILED_DETAIL = "Analysis failed. You can retry."


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(
    request: SessionCreateRequest,
    session_service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    """Start a practice session in the preparation phase"""
    session = await session_service.create(request.user_id, request.image_context)
    return session.model_dump(mode="json", by_alias=True)


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    session_service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    """Stored session with transcript, phase timestamps and feedback"""
    try:
        session = await session_service.get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return session.model_dump(mode="json", by_alias=True)


@router.patch("/{session_id}")
async def advance_session(
    session_id: str,
    request: SessionAdvanceRequest,
    session_service: SessionService = Depends(get_session_service),
    job_runner: FeedbackJobRunner = Depends(get_feedback_job_runner)
) -> Dict[str, Any]:
    """
    Advance a session to its next phase

    Completing a session schedules feedback generation in the background.
    """
    try:
        session = await session_service.advance(session_id, request.status, request.presentation_text)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if session.status == SessionPhase.COMPLETED:
        job_runner.submit(session_id)

    return session.model_dump(mode="json", by_alias=True)


@router.post("/{session_id}/terminate")
async def terminate_session(
    session_id: str,
    session_service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    """Abandon a session that has not finished"""
    try:
        session = await session_service.terminate(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return session.model_dump(mode="json", by_alias=True)


@router.post("/{session_id}/analyze")
async def analyze_session(
    session_id: str,
    feedback_service: FeedbackService = Depends(get_feedback_service)
) -> Dict[str, Any]:
    """
    Run the feedback pipeline now and return the report

    Used for manual re-analysis after a failed background run.
    """
    try:
        report = await feedback_service.analyze_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except SessionNotCompletedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except FeedbackPipelineError as e:
        logger.error("Manual analysis failed", session_id=session_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=ANALYSIS_FAILED_DETAIL)
    return report.model_dump(mode="json", by_alias=True)


@router.get("/{session_id}/analysis", response_model=FeedbackJobResponse)
async def get_analysis_status(
    session_id: str,
    job_runner: FeedbackJobRunner = Depends(get_feedback_job_runner)
):
    """Progress of the background analysis scheduled when the session completed"""
    job = job_runner.get(session_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail=f"No analysis job for session: {session_id}")
    return FeedbackJobResponse(
        session_id=job.session_id,
        status=job.status.value,
        error=job.error,
        started_at=job.started_at,
        finished_at=job.finished_at,
    )


@router.patch("/{session_id}/override", response_model=ScoreOverrideResponse)
async def override_score(
    session_id: str,
    request: ScoreOverrideRequest,
    feedback_service: FeedbackService = Depends(get_feedback_service)
):
    """Teacher replacement of one criterion mark"""
    try:
        override = await feedback_service.apply_score_override(
            session_id,
            request.criterion,
            request.new_score,
            request.justification,
            request.teacher_id,
        )
    except InvalidOverrideError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SessionNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ScoreOverrideResponse(criterion=request.criterion, new_score=override.new_score)

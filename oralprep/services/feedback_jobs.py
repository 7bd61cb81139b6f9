"""
Background feedback jobs

Completing a session schedules its analysis without blocking the request that
completed it. Each job is one asyncio task; the outcome (report or error
marker) is persisted by the feedback service inside the task.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

import structlog
from pydantic import BaseModel

from oralprep.domain.errors import (
    FeedbackPipelineError,
    SessionNotCompletedError,
    SessionNotFoundError,
)
from oralprep.services.feedback_service import FeedbackService

logger = structlog.get_logger(__name__)

# Finished jobs kept for status lookups; older ones are dropped first
MAX_FINISHED_JOBS = 256


class FeedbackJobStatus(str, Enum):
    """Feedback job state"""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FeedbackJob(BaseModel):
    """Progress record of one background analysis"""
    session_id: str
    status: FeedbackJobStatus = FeedbackJobStatus.NOT_STARTED
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def active(self) -> bool:
        return self.status in (FeedbackJobStatus.NOT_STARTED, FeedbackJobStatus.RUNNING)


class FeedbackJobRunner:
    """Schedules analyze_session calls as tracked asyncio tasks, one per session"""

    def __init__(self, feedback_service: FeedbackService, max_finished_jobs: int = MAX_FINISHED_JOBS):
        self.feedback_service = feedback_service
        self.max_finished_jobs = max_finished_jobs
        self._jobs: Dict[str, FeedbackJob] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    def submit(self, session_id: str) -> FeedbackJob:
        """
        Schedule analysis of a session; must be called from a running event loop

        Returns:
            The new job, or the job already in flight for this session
        """
        existing = self._jobs.get(session_id)
        if existing is not None and existing.active:
            logger.info("Feedback job already running", session_id=session_id)
            return existing

        job = FeedbackJob(session_id=session_id)
        self._jobs.pop(session_id, None)
        self._jobs[session_id] = job
        self._tasks[session_id] = asyncio.create_task(self._run(job))

        logger.info("Feedback job submitted", session_id=session_id)
        return job

    def get(self, session_id: str) -> Optional[FeedbackJob]:
        return self._jobs.get(session_id)

    async def wait(self, session_id: str) -> Optional[FeedbackJob]:
        """Block until the session's job has finished"""
        task = self._tasks.get(session_id)
        if task is not None:
            await task
        return self._jobs.get(session_id)

    async def shutdown(self) -> None:
        """Cancel outstanding jobs"""
        tasks = list(self._tasks.values())
        if not tasks:
            return

        logger.info("Cancelling feedback jobs", outstanding=len(tasks))
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, job: FeedbackJob) -> None:
        job.status = FeedbackJobStatus.RUNNING
        job.started_at = datetime.now(timezone.utc)

        try:
            await self.feedback_service.analyze_session(job.session_id)
        except asyncio.CancelledError:
            job.status = FeedbackJobStatus.FAILED
            job.error = "Feedback job cancelled"
            raise
        except (FeedbackPipelineError, SessionNotCompletedError, SessionNotFoundError) as e:
            # Marker already persisted, or nothing to persist to
            job.status = FeedbackJobStatus.FAILED
            job.error = str(e)
        except Exception as e:
            job.status = FeedbackJobStatus.FAILED
            job.error = str(e)
            logger.error("Feedback job crashed",
                         session_id=job.session_id,
                         error=str(e),
                         error_type=type(e).__name__)
            self._store_crash(job)
        else:
            job.status = FeedbackJobStatus.SUCCEEDED
        finally:
            job.finished_at = datetime.now(timezone.utc)
            self._tasks.pop(job.session_id, None)
            self._evict_finished()
            logger.info("Feedback job finished",
                        session_id=job.session_id,
                        status=job.status.value,
                        error=job.error)

    def _evict_finished(self) -> None:
        finished = [session_id for session_id, job in self._jobs.items() if not job.active]
        for session_id in finished[:max(len(finished) - self.max_finished_jobs, 0)]:
            del self._jobs[session_id]

    def _store_crash(self, job: FeedbackJob) -> None:
        try:
            self.feedback_service.store_failure(job.session_id, job.error or "Analysis failed")
        except Exception as e:
            logger.error("Could not persist feedback error marker",
                         session_id=job.session_id,
                         error=str(e))

"""
Session service applying lifecycle transitions to stored practice sessions
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import structlog

from oralprep.db.sessions import SessionRepository
from oralprep.domain.errors import InvalidTransitionError, SessionNotFoundError
from oralprep.domain.lifecycle import TERMINAL_PHASES, apply_transition
from oralprep.domain.models import ImageContext, PracticeSession, SessionPhase, Turn, TurnRole

logger = structlog.get_logger(__name__)


class SessionService:
    """Creates, loads, advances and terminates practice sessions"""

    def __init__(self, repository: Optional[SessionRepository] = None):
        self.repository = repository or SessionRepository()

    async def create(
        self,
        user_id: str,
        image_context: Optional[ImageContext] = None,
        now: Optional[datetime] = None,
    ) -> PracticeSession:
        """Start a new session in PREPARING with an empty transcript"""
        session = PracticeSession(
            id=str(uuid4()),
            user_id=user_id,
            status=SessionPhase.PREPARING,
            image_context=image_context,
            prep_started_at=now or datetime.now(timezone.utc),
        )
        return self.repository.insert(session)

    async def get(self, session_id: str) -> PracticeSession:
        session = self.repository.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def advance(
        self,
        session_id: str,
        target: SessionPhase,
        presentation_text: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PracticeSession:
        """
        Move a session to the next phase and persist it

        Args:
            session_id: Session to advance
            target: Requested phase
            presentation_text: Stored as the presentation turn when moving to CONVERSING
            now: Instant used for the phase timestamp

        Returns:
            The updated session

        Raises:
            SessionNotFoundError: No such session
            InvalidTransitionError: Target not reachable; nothing is written
        """
        session = await self.get(session_id)
        current = session.status

        try:
            updated = apply_transition(session, target, now=now)
        except InvalidTransitionError:
            logger.warning("Rejected session transition",
                           session_id=session_id,
                           current=SessionPhase(current).value,
                           target=SessionPhase(target).value)
            raise

        if updated.status == SessionPhase.CONVERSING and presentation_text:
            presentation = Turn(
                role=TurnRole.PRESENTATION.value,
                content=presentation_text,
                timestamp=updated.converse_started_at,
            )
            others = [turn for turn in updated.transcript if turn.role != TurnRole.PRESENTATION]
            updated = updated.model_copy(update={"transcript": [presentation] + others})

        self.repository.save(updated)

        logger.info("Session advanced",
                    session_id=session_id,
                    current=SessionPhase(current).value,
                    target=updated.status.value)
        return updated

    async def terminate(self, session_id: str, now: Optional[datetime] = None) -> PracticeSession:
        """
        Abandon a session; ``completed_at`` is stamped if it is still unset

        Raises:
            SessionNotFoundError: No such session
            InvalidTransitionError: Session is already COMPLETED or TERMINATED
        """
        session = await self.get(session_id)
        if session.status in TERMINAL_PHASES:
            logger.warning("Rejected session termination",
                           session_id=session_id,
                           current=session.status.value)
            raise InvalidTransitionError(session.status.value, SessionPhase.TERMINATED.value)

        updated = apply_transition(session, SessionPhase.TERMINATED, now=now)
        if updated.completed_at is None:
            updated = updated.model_copy(update={"completed_at": now or datetime.now(timezone.utc)})

        self.repository.save(updated)

        logger.info("Session terminated",
                    session_id=session_id,
                    current=session.status.value)
        return updated

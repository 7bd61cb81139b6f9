"""
Practice session persistence on Supabase
"""
from typing import Any, Dict, Optional

import structlog
from supabase import Client

from oralprep.core.config import settings
from oralprep.domain.models import PracticeSession
from oralprep.db.supabase import get_supabase_client

logger = structlog.get_logger(__name__)

# Columns written by the lifecycle guard
LIFECYCLE_COLUMNS = {
    "status",
    "present_started_at",
    "converse_started_at",
    "completed_at",
}


def session_row(session: PracticeSession) -> Dict[str, Any]:
    """Lifecycle columns plus the transcript, ready for an update call"""
    row = session.model_dump(mode="json", include=LIFECYCLE_COLUMNS)
    row["transcript"] = [
        turn.model_dump(mode="json", by_alias=True, exclude_none=True)
        for turn in session.transcript
    ]
    return row


class SessionRepository:
    """Reads and updates rows of the practice sessions table"""

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        self._client = client
        self.table = table or settings.SESSIONS_TABLE

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def get(self, session_id: str) -> Optional[PracticeSession]:
        response = self.client.table(self.table).select("*").eq("id", session_id).limit(1).execute()
        if not response.data:
            return None
        return PracticeSession.model_validate(response.data[0])

    def insert(self, session: PracticeSession) -> PracticeSession:
        """Create the row for a new session"""
        row = session_row(session)
        row.update(session.model_dump(mode="json", include={"id", "user_id", "prep_started_at"}))
        if session.image_context is not None:
            row["image_context"] = session.image_context.model_dump(mode="json", by_alias=True, exclude_none=True)
        try:
            self.client.table(self.table).insert(row).execute()
        except Exception as e:
            logger.error("Session insert failed", session_id=session.id, error=str(e))
            raise
        logger.info("Session created", session_id=session.id, user_id=session.user_id)
        return session

    def save(self, session: PracticeSession) -> PracticeSession:
        """Persist status, phase timestamps and transcript"""
        self.update(session.id, session_row(session))
        return session

    def update(self, session_id: str, fields: Dict[str, Any]) -> None:
        try:
            self.client.table(self.table).update(fields).eq("id", session_id).execute()
        except Exception as e:
            logger.error("Session update failed",
                         session_id=session_id,
                         columns=sorted(fields),
                         error=str(e))
            raise
        logger.debug("Session updated", session_id=session_id, columns=sorted(fields))

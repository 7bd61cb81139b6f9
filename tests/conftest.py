"""Shared fixtures: an in-memory session table and sample transcripts."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from oralprep.domain.models import (
    ImageContext,
    PracticeSession,
    RubricResult,
    SessionPhase,
    Turn,
)

T0 = datetime(2025, 3, 14, 10, 0, tzinfo=timezone.utc)


class InMemorySessionRepository:
    """Stands in for SessionRepository; records every column update."""

    def __init__(self, sessions: Optional[List[PracticeSession]] = None):
        self.sessions: Dict[str, PracticeSession] = {s.id: s for s in sessions or []}
        self.updates: List[Dict[str, Any]] = []

    def get(self, session_id: str) -> Optional[PracticeSession]:
        return self.sessions.get(session_id)

    def insert(self, session: PracticeSession) -> PracticeSession:
        self.sessions[session.id] = session
        return session

    def save(self, session: PracticeSession) -> PracticeSession:
        self.sessions[session.id] = session
        return session

    def update(self, session_id: str, fields: Dict[str, Any]) -> None:
        self.updates.append(fields)
        self.sessions[session_id] = self.sessions[session_id].model_copy(update=fields)


def criterion(mark: int, band: str) -> Dict[str, Any]:
    return {
        "mark": mark,
        "band": band,
        "justification": "Uses \"sería\" and \"creo que\" accurately.",
        "strengths": ["Varied tenses"],
        "improvements": ["Develop answers further"],
    }


def rubric_payload(a: int = 8, b1: int = 4, b2: int = 5, c: int = 4, total: Optional[int] = None) -> Dict[str, Any]:
    return {
        "criterionA": criterion(a, "7-9"),
        "criterionB1": criterion(b1, "3-4"),
        "criterionB2": criterion(b2, "5-6"),
        "criterionC": criterion(c, "3-4"),
        "totalMark": a + b1 + b2 + c if total is None else total,
        "overallSummary": "Solid performance with clear cultural links.",
        "topStrengths": ["Tense range", "Cultural references"],
        "priorityImprovements": ["Examples", "Justify opinions", "Subjunctive"],
    }


def make_rubric(**marks) -> RubricResult:
    return RubricResult.model_validate(rubric_payload(**marks))


def sample_transcript() -> List[Turn]:
    return [
        Turn(role="presentation", content="Hola, voy a hablar de la imagen. Es una fiesta tradicional.",
             timestamp=T0 + timedelta(minutes=1)),
        Turn(role="examiner", content="¿Qué piensas de la fiesta?", timestamp=T0 + timedelta(minutes=4)),
        Turn(role="student", content="Creo que la cultura es importante porque nos une.",
             timestamp=T0 + timedelta(minutes=5)),
        Turn(role="examiner", content="¿Por qué?", timestamp=T0 + timedelta(minutes=6)),
        Turn(role="student", content="Por ejemplo, en mi familia sería diferente sin tradiciones.",
             timestamp=T0 + timedelta(minutes=7)),
        Turn(role="system", content="timer warning"),
    ]


def completed_session(session_id: str = "session-1", **overrides) -> PracticeSession:
    fields = dict(
        id=session_id,
        user_id="student-1",
        status=SessionPhase.COMPLETED,
        transcript=sample_transcript(),
        image_context=ImageContext(
            cultural_context="Día de Muertos in Oaxaca",
            theme="Identidades",
            talking_points=["family", "memory"],
        ),
        prep_started_at=T0 - timedelta(minutes=15),
        present_started_at=T0,
        converse_started_at=T0 + timedelta(minutes=3),
        completed_at=T0 + timedelta(minutes=8),
    )
    fields.update(overrides)
    return PracticeSession(**fields)


@pytest.fixture
def repository():
    return InMemorySessionRepository([
        completed_session("session-1"),
        completed_session("session-live", status=SessionPhase.CONVERSING, completed_at=None),
        PracticeSession(id="session-new", user_id="student-2", prep_started_at=T0),
    ])

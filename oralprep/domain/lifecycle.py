"""
Session lifecycle transition table

PREPARING -> PRESENTING -> CONVERSING -> COMPLETED, with TERMINATED reachable
from every non-terminal phase. COMPLETED and TERMINATED are absorbing.
"""

from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from oralprep.domain.errors import InvalidTransitionError
from oralprep.domain.models import PracticeSession, SessionPhase

VALID_TRANSITIONS: Dict[SessionPhase, FrozenSet[SessionPhase]] = {
    SessionPhase.PREPARING: frozenset({SessionPhase.PRESENTING, SessionPhase.TERMINATED}),
    SessionPhase.PRESENTING: frozenset({SessionPhase.CONVERSING, SessionPhase.TERMINATED}),
    SessionPhase.CONVERSING: frozenset({SessionPhase.COMPLETED, SessionPhase.TERMINATED}),
    SessionPhase.COMPLETED: frozenset(),
    SessionPhase.TERMINATED: frozenset(),
}

TIMESTAMP_FIELDS: Dict[SessionPhase, str] = {
    SessionPhase.PRESENTING: "present_started_at",
    SessionPhase.CONVERSING: "converse_started_at",
    SessionPhase.COMPLETED: "completed_at",
}

TERMINAL_PHASES = frozenset({SessionPhase.COMPLETED, SessionPhase.TERMINATED})


def can_transition(current: SessionPhase, target: SessionPhase) -> bool:
    return target in VALID_TRANSITIONS[current]


def apply_transition(
    session: PracticeSession,
    target: SessionPhase,
    now: Optional[datetime] = None,
) -> PracticeSession:
    """
    Return a copy of the session moved to ``target``.

    The phase timestamp for PRESENTING, CONVERSING or COMPLETED is stamped
    only if it is still unset. The input session is never modified.

    Raises:
        InvalidTransitionError: target is not reachable from the current phase
    """
    current = SessionPhase(session.status)
    target = SessionPhase(target)
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)

    update = {"status": target}
    field = TIMESTAMP_FIELDS.get(target)
    if field and getattr(session, field) is None:
        update[field] = now or datetime.now(timezone.utc)
    return session.model_copy(update=update)

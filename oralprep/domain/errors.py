"""
Exceptions raised by the lifecycle guard and the feedback pipeline
"""

from typing import Optional


class SessionNotFoundError(LookupError):
    """No practice session with the requested id"""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class InvalidTransitionError(ValueError):
    """Requested phase is not reachable from the current phase"""

    def __init__(self, current: str, requested: str, reason: Optional[str] = None):
        self.current = current
        self.requested = requested
        message = reason or f"Cannot transition from {current} to {requested}"
        super().__init__(message)


class SessionNotCompletedError(ValueError):
    """Feedback requested for a session that has not reached COMPLETED"""

    def __init__(self, session_id: str, status: str):
        self.session_id = session_id
        self.status = status
        super().__init__("Session must be completed before analysis")


class GradingError(RuntimeError):
    """Rubric grader could not obtain a valid rubric result"""


class FeedbackPipelineError(RuntimeError):
    """One of the pipeline units failed; no report was produced"""


class InvalidOverrideError(ValueError):
    """Teacher override with an unknown criterion, an out-of-range mark or no justification"""

"""
Services package for the oral practice feedback service
Contains the rubric grader, the feedback pipeline and session lifecycle services
"""

from .rubric_grader import RubricGrader, parse_rubric
from .session_service import SessionService
from .feedback_service import FeedbackService, feedback_columns
from .feedback_jobs import FeedbackJob, FeedbackJobRunner, FeedbackJobStatus

__all__ = [
    "RubricGrader",
    "parse_rubric",
    "SessionService",
    "FeedbackService",
    "feedback_columns",
    "FeedbackJob",
    "FeedbackJobRunner",
    "FeedbackJobStatus"
]

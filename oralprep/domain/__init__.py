# oralprep/domain/__init__.py
"""
Domain package for the oral practice feedback service
Contains domain models, transcript analyzers and the session lifecycle rules
"""

from .models import (
    SessionPhase, TurnRole, Turn, PhaseTimestamps, ImageContext, AiAnalysis,
    TenseAnalysis, VocabularyAnalysis, DepthAnalysis, PaceAnalysis,
    QuantitativeAnalysis, CriterionGrade, RubricResult, FeedbackReport,
    FeedbackErrorMarker, ScoreOverride, PracticeSession, CRITERION_MAX_MARKS
)
from .errors import (
    SessionNotFoundError, InvalidTransitionError, SessionNotCompletedError,
    GradingError, FeedbackPipelineError, InvalidOverrideError
)
from .tenses import TenseClassifier, tense_classifier
from .vocabulary import VocabularyScorer, vocabulary_scorer
from .depth import ResponseDepthScorer, response_depth_scorer
from .pace import PaceAnalyzer, pace_analyzer
from .lifecycle import VALID_TRANSITIONS, apply_transition, can_transition

__all__ = [
    "SessionPhase", "TurnRole", "Turn", "PhaseTimestamps", "ImageContext", "AiAnalysis",
    "TenseAnalysis", "VocabularyAnalysis", "DepthAnalysis", "PaceAnalysis",
    "QuantitativeAnalysis", "CriterionGrade", "RubricResult", "FeedbackReport",
    "FeedbackErrorMarker", "ScoreOverride", "PracticeSession", "CRITERION_MAX_MARKS",
    "SessionNotFoundError", "InvalidTransitionError", "SessionNotCompletedError",
    "GradingError", "FeedbackPipelineError", "InvalidOverrideError",
    "TenseClassifier", "tense_classifier",
    "VocabularyScorer", "vocabulary_scorer",
    "ResponseDepthScorer", "response_depth_scorer",
    "PaceAnalyzer", "pace_analyzer",
    "VALID_TRANSITIONS", "apply_transition", "can_transition"
]

"""
Feedback service: post-session analysis pipeline and its persistence

The rubric grader and the four transcript analyzers run concurrently. The
analyzers are CPU-bound and run in worker threads; the grader awaits a single
model call. Either all five succeed and one report is produced, or the run
fails as a whole.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

import structlog

from oralprep.core.config import settings
from oralprep.db.sessions import SessionRepository
from oralprep.domain.depth import response_depth_scorer
from oralprep.domain.errors import (
    FeedbackPipelineError,
    InvalidOverrideError,
    SessionNotCompletedError,
    SessionNotFoundError,
)
from oralprep.domain.models import (
    CRITERION_MAX_MARKS,
    FeedbackErrorMarker,
    FeedbackReport,
    ImageContext,
    PhaseTimestamps,
    PracticeSession,
    QuantitativeAnalysis,
    ScoreOverride,
    SessionPhase,
    Turn,
    TurnRole,
)
from oralprep.domain.pace import pace_analyzer
from oralprep.domain.tenses import tense_classifier
from oralprep.domain.vocabulary import vocabulary_scorer
from oralprep.services.rubric_grader import RubricGrader

logger = structlog.get_logger(__name__)

SCORE_COLUMNS: Dict[str, str] = {
    "A": "score_a",
    "B1": "score_b1",
    "B2": "score_b2",
    "C": "score_c",
}

PIPELINE_UNITS = ("rubric", "tenses", "depth", "vocabulary", "pace")


def feedback_columns(report: FeedbackReport) -> Dict[str, Any]:
    """Stored report plus the summary columns read by dashboards"""
    criteria = report.rubric.criteria()
    columns: Dict[str, Any] = {
        "feedback": report.model_dump(mode="json", by_alias=True),
        "speaking_pace": report.quantitative.pace.overall_wpm,
        "vocabulary_level": report.quantitative.vocabulary.estimated_level,
    }
    for criterion, column in SCORE_COLUMNS.items():
        columns[column] = criteria[criterion].mark
    return columns


class FeedbackService:
    """Runs the feedback pipeline for completed sessions and stores the outcome"""

    def __init__(
        self,
        repository: Optional[SessionRepository] = None,
        grader: Optional[RubricGrader] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.repository = repository or SessionRepository()
        self._grader = grader
        self.timeout_seconds = settings.FEEDBACK_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds

        self.tense_classifier = tense_classifier
        self.response_depth_scorer = response_depth_scorer
        self.vocabulary_scorer = vocabulary_scorer
        self.pace_analyzer = pace_analyzer

    @property
    def grader(self) -> RubricGrader:
        if self._grader is None:
            self._grader = RubricGrader()
        return self._grader

    async def generate_feedback(
        self,
        transcript: Sequence[Turn],
        timestamps: PhaseTimestamps,
        image_context: Optional[ImageContext] = None,
        now: Optional[datetime] = None,
    ) -> FeedbackReport:
        """
        Run the grader and the four analyzers concurrently and merge their results

        Args:
            transcript: Session turns; roles other than presentation, student
                and examiner are ignored
            timestamps: Phase boundary instants
            image_context: Stimulus description passed to the grader
            now: End instant for the pace analyzer when ``completed_at`` is missing

        Returns:
            FeedbackReport with the rubric and the quantitative analysis

        Raises:
            FeedbackPipelineError: Any unit failed; no partial report is returned
        """
        presentation = next((turn for turn in transcript if turn.role == TurnRole.PRESENTATION), None)
        presentation_text = presentation.content if presentation else ""
        student_messages = [turn.content for turn in transcript if turn.role == TurnRole.STUDENT]
        all_student_text = " ".join(text for text in [presentation_text, *student_messages] if text)

        logger.info("Starting feedback pipeline",
                    turns=len(transcript),
                    student_responses=len(student_messages),
                    has_presentation=presentation is not None)

        try:
            grader = self.grader
        except ValueError as e:
            raise FeedbackPipelineError(f"rubric analysis failed: {e}") from e

        results = await asyncio.gather(
            grader.grade(transcript, presentation_text, image_context, timestamps),
            asyncio.to_thread(self.tense_classifier.analyze, all_student_text),
            asyncio.to_thread(self.response_depth_scorer.analyze, student_messages),
            asyncio.to_thread(self.vocabulary_scorer.analyze, all_student_text),
            asyncio.to_thread(self.pace_analyzer.analyze, transcript, timestamps, now),
            return_exceptions=True,
        )

        failures = [
            (unit, result) for unit, result in zip(PIPELINE_UNITS, results)
            if isinstance(result, BaseException)
        ]
        if failures:
            for unit, error in failures:
                logger.error("Feedback pipeline unit failed",
                             unit=unit,
                             error=str(error),
                             error_type=type(error).__name__)
            unit, error = failures[0]
            raise FeedbackPipelineError(f"{unit} analysis failed: {error}") from error

        rubric, tenses, depth, vocabulary, pace = results
        report = FeedbackReport(
            rubric=rubric,
            quantitative=QuantitativeAnalysis(tenses=tenses, depth=depth, vocabulary=vocabulary, pace=pace),
        )

        logger.info("Feedback pipeline complete",
                    total_mark=rubric.total_mark,
                    vocabulary_level=vocabulary.estimated_level,
                    overall_wpm=pace.overall_wpm)
        return report

    async def analyze_session(self, session_id: str) -> FeedbackReport:
        """
        Generate and store feedback for one completed session

        On success the report and the derived score columns are written; on
        failure only the error marker is written and FeedbackPipelineError is
        raised. Nothing is retried here.

        Raises:
            SessionNotFoundError: No such session
            SessionNotCompletedError: Session has not reached COMPLETED
            FeedbackPipelineError: Pipeline failed or timed out
        """
        session = self._load(session_id)
        if session.status != SessionPhase.COMPLETED:
            logger.warning("Analysis refused for unfinished session",
                           session_id=session_id,
                           current=session.status.value)
            raise SessionNotCompletedError(session_id, session.status.value)

        logger.info("Starting session analysis", session_id=session_id)

        try:
            report = await asyncio.wait_for(
                self.generate_feedback(session.transcript, session.timestamps, session.image_context),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            message = f"Feedback generation timed out after {self.timeout_seconds:g} seconds"
            self.store_failure(session_id, message)
            raise FeedbackPipelineError(message) from e
        except FeedbackPipelineError as e:
            self.store_failure(session_id, str(e))
            raise

        columns = feedback_columns(report)
        self.repository.update(session_id, columns)

        logger.info("Session analysis stored",
                    session_id=session_id,
                    score_a=columns["score_a"],
                    score_b1=columns["score_b1"],
                    score_b2=columns["score_b2"],
                    score_c=columns["score_c"],
                    total=report.rubric.total_mark)
        return report

    async def apply_score_override(
        self,
        session_id: str,
        criterion: str,
        new_score: int,
        justification: str,
        teacher_id: str,
        now: Optional[datetime] = None,
    ) -> ScoreOverride:
        """
        Replace one criterion mark and record the override in the stored feedback

        Raises:
            InvalidOverrideError: Unknown criterion, mark out of range or blank justification
            SessionNotFoundError: No such session
        """
        if criterion not in CRITERION_MAX_MARKS:
            raise InvalidOverrideError("Invalid criterion")

        maximum = CRITERION_MAX_MARKS[criterion]
        if isinstance(new_score, bool) or not isinstance(new_score, int) or not 0 <= new_score <= maximum:
            raise InvalidOverrideError(f"Score must be between 0 and {maximum}")

        if not justification or not justification.strip():
            raise InvalidOverrideError("Justification is required")

        session = self._load(session_id)
        column = SCORE_COLUMNS[criterion]

        override = ScoreOverride(
            original_score=getattr(session, column),
            new_score=new_score,
            justification=justification.strip(),
            teacher_id=teacher_id,
            overridden_at=now or datetime.now(timezone.utc),
        )

        feedback = dict(session.feedback or {})
        overrides = dict(feedback.get("overrides") or {})
        overrides[criterion] = override.model_dump(mode="json", by_alias=True)
        feedback["overrides"] = overrides

        self.repository.update(session_id, {column: new_score, "feedback": feedback})

        logger.info("Score override applied",
                    session_id=session_id,
                    criterion=criterion,
                    original_score=override.original_score,
                    new_score=new_score,
                    teacher_id=teacher_id)
        return override

    def _load(self, session_id: str) -> PracticeSession:
        session = self.repository.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def store_failure(self, session_id: str, message: str) -> None:
        logger.error("Session analysis failed", session_id=session_id, error=message)
        marker = FeedbackErrorMarker(message=message)
        self.repository.update(session_id, {"feedback": marker.model_dump(mode="json", by_alias=True)})

"""Tests for the feedback pipeline, its persistence and score overrides."""
import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from conftest import T0, completed_session, make_rubric

from oralprep.domain.errors import (
    FeedbackPipelineError,
    GradingError,
    InvalidOverrideError,
    SessionNotCompletedError,
    SessionNotFoundError,
)
from oralprep.domain.models import Turn
from oralprep.services.feedback_service import FeedbackService


def stub_grader(**kwargs):
    return SimpleNamespace(grade=AsyncMock(**kwargs))


def test_generate_feedback_merges_all_units(repository):
    grader = stub_grader(return_value=make_rubric())
    service = FeedbackService(repository, grader=grader)
    session = completed_session()

    report = asyncio.run(service.generate_feedback(session.transcript, session.timestamps, session.image_context))

    assert report.rubric.total_mark == 21
    assert {entry.tense for entry in report.quantitative.tenses.tenses_found} >= {"present", "conditional"}
    assert report.quantitative.depth.factor_scores
    assert report.quantitative.pace.presentation_wpm == 4
    args = grader.grade.await_args.args
    assert args[1] == session.transcript[0].content


def test_analyze_session_stores_report_and_summary_columns(repository):
    service = FeedbackService(repository, grader=stub_grader(return_value=make_rubric()))

    report = asyncio.run(service.analyze_session("session-1"))

    stored = repository.get("session-1")
    assert stored.score_a == 8
    assert stored.score_b1 == 4
    assert stored.score_b2 == 5
    assert stored.score_c == 4
    assert stored.speaking_pace == report.quantitative.pace.overall_wpm
    assert stored.vocabulary_level == report.quantitative.vocabulary.estimated_level
    assert stored.feedback["rubric"]["criterionA"]["mark"] == 8
    assert "overallWPM" in stored.feedback["quantitative"]["pace"]


def test_grader_failure_stores_only_error_marker(repository):
    grader = stub_grader(side_effect=GradingError("Grading request failed: timed out"))
    service = FeedbackService(repository, grader=grader)

    with pytest.raises(FeedbackPipelineError, match="timed out"):
        asyncio.run(service.analyze_session("session-1"))

    assert repository.updates == [{"feedback": {"error": True, "message": "rubric analysis failed: "
                                                                       "Grading request failed: timed out"}}]
    stored = repository.get("session-1")
    assert "quantitative" not in stored.feedback
    assert stored.score_a is None


def test_analyzer_failure_fails_whole_pipeline(repository):
    service = FeedbackService(repository, grader=stub_grader(return_value=make_rubric()))
    service.vocabulary_scorer = SimpleNamespace(analyze=lambda text: 1 / 0)

    with pytest.raises(FeedbackPipelineError, match="vocabulary"):
        asyncio.run(service.analyze_session("session-1"))

    assert repository.get("session-1").feedback["error"] is True


def test_pipeline_timeout_stores_error_marker(repository):
    async def slow_grade(*args, **kwargs):
        await asyncio.sleep(5)

    service = FeedbackService(repository, grader=SimpleNamespace(grade=slow_grade), timeout_seconds=0.05)

    with pytest.raises(FeedbackPipelineError, match="timed out"):
        asyncio.run(service.analyze_session("session-1"))

    assert repository.get("session-1").feedback == {
        "error": True,
        "message": "Feedback generation timed out after 0.05 seconds",
    }


def test_unfinished_session_is_refused(repository):
    grader = stub_grader(return_value=make_rubric())
    service = FeedbackService(repository, grader=grader)

    with pytest.raises(SessionNotCompletedError, match="Session must be completed before analysis"):
        asyncio.run(service.analyze_session("session-live"))

    grader.grade.assert_not_awaited()
    assert repository.updates == []


def test_unknown_session(repository):
    service = FeedbackService(repository, grader=stub_grader(return_value=make_rubric()))

    with pytest.raises(SessionNotFoundError):
        asyncio.run(service.analyze_session("missing"))


def test_reanalysis_gives_identical_quantitative_results(repository):
    service = FeedbackService(repository, grader=stub_grader(return_value=make_rubric()))
    session = completed_session()

    async def twice():
        first = await service.generate_feedback(session.transcript, session.timestamps)
        second = await service.generate_feedback(session.transcript, session.timestamps)
        return first, second

    first, second = asyncio.run(twice())
    assert first.quantitative == second.quantitative


def test_score_override_updates_column_and_records_history(repository):
    service = FeedbackService(repository, grader=stub_grader(return_value=make_rubric()))
    asyncio.run(service.analyze_session("session-1"))

    override = asyncio.run(service.apply_score_override(
        "session-1", "B1", 6, "  Strong cultural links  ", "teacher-9", now=T0))

    stored = repository.get("session-1")
    assert override.original_score == 4
    assert stored.score_b1 == 6
    assert stored.feedback["overrides"]["B1"] == {
        "originalScore": 4,
        "newScore": 6,
        "justification": "Strong cultural links",
        "teacherId": "teacher-9",
        "overriddenAt": "2025-03-14T10:00:00Z",
    }
    assert stored.feedback["rubric"]["criterionB1"]["mark"] == 4


@pytest.mark.parametrize("criterion,score,justification,message", [
    ("D", 3, "ok", "Invalid criterion"),
    ("A", 13, "ok", "between 0 and 12"),
    ("C", -1, "ok", "between 0 and 6"),
    ("B2", 4, "   ", "Justification is required"),
])
def test_invalid_overrides_are_rejected(repository, criterion, score, justification, message):
    service = FeedbackService(repository, grader=stub_grader(return_value=make_rubric()))

    with pytest.raises(InvalidOverrideError, match=message):
        asyncio.run(service.apply_score_override("session-1", criterion, score, justification, "teacher-9"))

    assert repository.updates == []


def test_offset_less_turn_timestamps_do_not_break_the_pipeline(repository):
    service = FeedbackService(repository, grader=stub_grader(return_value=make_rubric()))
    session = completed_session()
    transcript = list(session.transcript)
    transcript[2] = Turn(role="student", content=transcript[2].content, timestamp="2025-03-14T10:05:00")

    report = asyncio.run(service.generate_feedback(transcript, session.timestamps))

    assert report.quantitative.pace.overall_wpm > 0
    assert report.quantitative.pace.pace_variability >= 0


def test_zero_timeout_is_kept(repository):
    service = FeedbackService(repository, grader=stub_grader(return_value=make_rubric()), timeout_seconds=0)

    assert service.timeout_seconds == 0

"""Tests for the speaking pace analyzer."""
from datetime import timedelta

from conftest import T0

from oralprep.domain.models import PhaseTimestamps, Turn
from oralprep.domain.pace import fluency_rating, fluency_score, pace_analyzer


def test_presentation_only_session():
    transcript = [Turn(role="presentation", content="Hola, voy a hablar de la imagen.", word_count=6)]
    timestamps = PhaseTimestamps(present_started_at=T0, converse_started_at=T0 + timedelta(minutes=3))

    result = pace_analyzer.analyze(transcript, timestamps, now=T0 + timedelta(minutes=3))

    assert result.presentation_wpm == 2
    assert result.conversation_wpm == 0
    assert result.overall_wpm == 2
    assert result.fluency_rating == "Slow"
    assert result.fluency_score == 2


def test_conversation_wpm_uses_phase_boundaries():
    transcript = [
        Turn(role="examiner", content="¿Qué opinas?"),
        Turn(role="student", content="palabra " * 100),
        Turn(role="student", content="palabra " * 50),
    ]
    timestamps = PhaseTimestamps(converse_started_at=T0, completed_at=T0 + timedelta(minutes=2))

    result = pace_analyzer.analyze(transcript, timestamps)

    assert result.conversation_wpm == 75
    assert result.presentation_wpm == 0
    assert result.overall_wpm == 75
    assert result.fluency_rating == "Slow"


def test_missing_timestamps_give_zero_not_error():
    transcript = [Turn(role="student", content="Creo que sí.")]

    result = pace_analyzer.analyze(transcript, PhaseTimestamps())

    assert result.overall_wpm == 0
    assert result.presentation_wpm == 0
    assert result.conversation_wpm == 0
    assert result.pace_variability == 0
    assert result.fluency_score == 0


def test_variability_from_turn_timestamps():
    transcript = [
        Turn(role="examiner", content="¿Por qué?", timestamp=T0),
        Turn(role="student", content="uno " * 100, timestamp=T0 + timedelta(minutes=1)),
        Turn(role="examiner", content="¿Y después?", timestamp=T0 + timedelta(minutes=2)),
        Turn(role="student", content="dos " * 60, timestamp=T0 + timedelta(minutes=2, seconds=30)),
    ]

    assert pace_analyzer.per_turn_samples(transcript) == [100, 120]
    result = pace_analyzer.analyze(transcript, PhaseTimestamps())
    assert result.pace_variability == 10.0


def test_samples_longer_than_ten_minutes_are_dropped():
    transcript = [
        Turn(role="examiner", content="¿Por qué?", timestamp=T0),
        Turn(role="student", content="uno " * 100, timestamp=T0 + timedelta(minutes=11)),
        Turn(role="examiner", content="¿Y?", timestamp=T0 + timedelta(minutes=12)),
        Turn(role="student", content="dos " * 50, timestamp=T0 + timedelta(minutes=22)),
    ]

    assert pace_analyzer.per_turn_samples(transcript) == [5]


def test_fluency_bands():
    assert fluency_rating(79) == "Slow"
    assert fluency_rating(80) == "Natural"
    assert fluency_rating(150) == "Natural"
    assert fluency_rating(151) == "Fast"
    assert fluency_score(115) == 10
    assert fluency_score(150) == 8
    assert fluency_score(60) == 6
    assert fluency_score(200) == 2


def test_timestamps_without_offset_are_read_as_utc():
    transcript = [
        Turn(role="presentation", content="Hola a todos.", timestamp=T0),
        Turn(role="student", content="palabra " * 50, timestamp="2025-03-14T10:05:00"),
    ]
    timestamps = PhaseTimestamps(present_started_at=T0, converse_started_at="2025-03-14T10:03:00")

    result = pace_analyzer.analyze(transcript, timestamps, now=T0 + timedelta(minutes=6))

    assert transcript[1].timestamp.tzinfo is not None
    assert pace_analyzer.per_turn_samples(transcript) == [10]
    assert result.presentation_wpm == 1
    assert result.overall_wpm == 9


def test_reversed_phase_boundaries_give_zero():
    transcript = [Turn(role="presentation", content="palabra " * 60)]
    timestamps = PhaseTimestamps(present_started_at=T0 + timedelta(minutes=3), converse_started_at=T0)

    result = pace_analyzer.analyze(transcript, timestamps, now=T0 + timedelta(minutes=4))

    assert result.presentation_wpm == 0

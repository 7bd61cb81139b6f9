"""
Speaking pace estimation from transcript timing

Words per minute are derived from phase boundary timestamps and turn word
counts only; no acoustic signal is involved.

Fluency rating thresholds:
- <80 WPM: Slow (may indicate hesitation or translation)
- 80-150 WPM: Natural conversational pace
- >150 WPM: Fast (may indicate rushing)
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

import structlog

from oralprep.domain.models import PaceAnalysis, PhaseTimestamps, Turn, TurnRole, as_utc
from oralprep.utils import minutes_between, population_std_dev, round_half_up, round_int

logger = structlog.get_logger(__name__)


SLOW_WPM_THRESHOLD = 80
FAST_WPM_THRESHOLD = 150
IDEAL_WPM = 115

# (max distance from IDEAL_WPM, score); anything further scores FALLBACK_FLUENCY_SCORE
FLUENCY_SCORE_BANDS = ((20, 10), (40, 8), (60, 6), (80, 4))
FALLBACK_FLUENCY_SCORE = 2

MAX_SAMPLE_INTERVAL_MINUTES = 10


def fluency_rating(wpm: float) -> str:
    if wpm < SLOW_WPM_THRESHOLD:
        return "Slow"
    if wpm <= FAST_WPM_THRESHOLD:
        return "Natural"
    return "Fast"


def fluency_score(wpm: float) -> int:
    """Bell curve centred on the ideal conversational pace"""
    if wpm == 0:
        return 0
    distance = abs(wpm - IDEAL_WPM)
    for max_distance, score in FLUENCY_SCORE_BANDS:
        if distance <= max_distance:
            return score
    return FALLBACK_FLUENCY_SCORE


def _wpm(words: int, start: Optional[datetime], end: Optional[datetime]) -> int:
    if start is None or end is None:
        return 0
    minutes = minutes_between(start, end)
    if minutes <= 0:
        return 0
    return round_int(words / minutes)


class PaceAnalyzer:
    """Computes phase and overall WPM, per-turn variability and a fluency rating"""

    def per_turn_samples(self, transcript: Sequence[Turn]) -> List[float]:
        """WPM of each student turn measured from the closest earlier timestamped turn"""
        samples: List[float] = []
        for index, turn in enumerate(transcript):
            if turn.role != TurnRole.STUDENT:
                continue
            words = turn.words
            if words == 0 or turn.timestamp is None:
                continue

            previous = next(
                (earlier.timestamp for earlier in reversed(transcript[:index]) if earlier.timestamp is not None),
                None,
            )
            if previous is None:
                continue

            minutes = minutes_between(previous, turn.timestamp)
            if 0 < minutes <= MAX_SAMPLE_INTERVAL_MINUTES:
                samples.append(words / minutes)
        return samples

    def analyze(
        self,
        transcript: Sequence[Turn],
        timestamps: PhaseTimestamps,
        now: Optional[datetime] = None,
    ) -> PaceAnalysis:
        """
        Estimate speaking pace for a session.

        Args:
            transcript: Turns in storage order
            timestamps: Phase boundary instants; any may be missing
            now: End instant used for sessions without ``completed_at``

        Returns:
            PaceAnalysis; missing timestamps yield zeros rather than errors
        """
        presentation = next((turn for turn in transcript if turn.role == TurnRole.PRESENTATION), None)
        student_turns = [turn for turn in transcript if turn.role == TurnRole.STUDENT]

        presentation_words = presentation.words if presentation else 0
        conversation_words = sum(turn.words for turn in student_turns)

        presentation_wpm = 0
        if presentation is not None:
            presentation_wpm = _wpm(presentation_words, timestamps.present_started_at, timestamps.converse_started_at)

        conversation_wpm = _wpm(conversation_words, timestamps.converse_started_at, timestamps.completed_at)

        session_start = timestamps.present_started_at or timestamps.converse_started_at
        session_end = timestamps.completed_at
        if session_end is None and timestamps.converse_started_at is not None:
            session_end = as_utc(now) or datetime.now(tz=timezone.utc)
        overall_wpm = _wpm(presentation_words + conversation_words, session_start, session_end)

        variability = round_half_up(population_std_dev(self.per_turn_samples(transcript)), 1)

        reference_wpm = overall_wpm or conversation_wpm
        result = PaceAnalysis(
            overall_wpm=overall_wpm,
            presentation_wpm=presentation_wpm,
            conversation_wpm=conversation_wpm,
            pace_variability=variability,
            fluency_rating=fluency_rating(reference_wpm),
            fluency_score=fluency_score(reference_wpm),
        )

        logger.debug("Pace analysis complete",
                     overall_wpm=overall_wpm,
                     presentation_wpm=presentation_wpm,
                     conversation_wpm=conversation_wpm,
                     variability=variability,
                     fluency=result.fluency_rating)
        return result


# Global analyzer instance
pace_analyzer = PaceAnalyzer()

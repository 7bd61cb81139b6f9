"""
Response depth scoring for the conversation phase

Six factors are scored 0-10 from per-utterance averages: length, sentence
count and four discourse-marker families (elaboration, examples, opinions,
justifications). Marker lists include English phrases for learners who
code-switch.
"""

import re
from typing import List, Sequence, Tuple

import structlog

from oralprep.domain.models import DepthAnalysis, FactorScore
from oralprep.utils import count_occurrences, round_half_up, round_int

logger = structlog.get_logger(__name__)


ELABORATION_MARKERS: Tuple[str, ...] = (
    "por ejemplo", "además", "sin embargo", "también", "es decir",
    "por otro lado", "en cambio", "no obstante", "asimismo", "de hecho",
    "en otras palabras", "a su vez", "por lo tanto", "en primer lugar",
    "en segundo lugar", "finalmente", "al mismo tiempo",
    "for example", "additionally", "however", "also", "furthermore",
    "on the other hand", "that is to say", "in fact", "moreover",
)

EXAMPLE_MARKERS: Tuple[str, ...] = (
    "por ejemplo", "como", "tal como", "un ejemplo de esto",
    "como por ejemplo", "un caso", "se puede ver en",
    "for example", "like", "such as", "an example of this",
)

OPINION_MARKERS: Tuple[str, ...] = (
    "creo que", "en mi opinión", "pienso que", "me parece que",
    "considero que", "para mí", "desde mi punto de vista",
    "a mi parecer", "opino que", "según mi opinión",
    "i think", "in my opinion", "i believe", "it seems to me",
)

JUSTIFICATION_MARKERS: Tuple[str, ...] = (
    "porque", "ya que", "debido a", "por eso", "por lo tanto",
    "puesto que", "dado que", "como consecuencia", "por esta razón",
    "a causa de", "en consecuencia", "así que", "de modo que",
    "because", "since", "due to", "therefore", "as a result",
)

# (name, weight, low bound, high bound), in reporting order
FACTORS: Tuple[Tuple[str, float, float, float], ...] = (
    ("Word Count", 0.15, 5, 60),
    ("Sentences", 0.10, 1, 5),
    ("Elaboration", 0.20, 0, 2),
    ("Examples", 0.20, 0, 1.5),
    ("Opinions", 0.15, 0, 1),
    ("Justifications", 0.20, 0, 1.5),
)

_SENTENCE_BOUNDARY = re.compile(r"[.!?¿¡]+")


def count_sentences(text: str) -> int:
    return len([segment for segment in _SENTENCE_BOUNDARY.split(text) if segment.strip()])


def score_from_range(value: float, low: float, high: float) -> int:
    """Linear map of value onto 0-10, clamped at both bounds"""
    if value <= low:
        return 0
    if value >= high:
        return 10
    return round_int((value - low) / (high - low) * 10)


class ResponseDepthScorer:
    """Scores how developed the learner's conversation answers are"""

    def analyze(self, student_messages: Sequence[str]) -> DepthAnalysis:
        if not student_messages:
            return DepthAnalysis(
                overall_score=0,
                factor_scores=[FactorScore(name=name, score=0, count=0) for name, _, _, _ in FACTORS],
                average_response_length=0,
                strongest_factor="none",
                weakest_factor="none",
            )

        totals = [0] * len(FACTORS)
        for message in student_messages:
            lower = message.lower()
            totals[0] += len(message.split())
            totals[1] += count_sentences(message)
            totals[2] += count_occurrences(lower, ELABORATION_MARKERS)
            totals[3] += count_occurrences(lower, EXAMPLE_MARKERS)
            totals[4] += count_occurrences(lower, OPINION_MARKERS)
            totals[5] += count_occurrences(lower, JUSTIFICATION_MARKERS)

        n = len(student_messages)
        factor_scores: List[FactorScore] = []
        for (name, _, low, high), total in zip(FACTORS, totals):
            factor_scores.append(FactorScore(name=name, score=score_from_range(total / n, low, high), count=total))

        weighted = sum(factor.score * weight for factor, (_, weight, _, _) in zip(factor_scores, FACTORS))
        overall = round_half_up(weighted, 1)

        # Stable sort: equal scores keep FACTORS order, so the strongest is the
        # first of the top scores and the weakest the last of the bottom ones.
        ranked = sorted(factor_scores, key=lambda factor: factor.score, reverse=True)

        result = DepthAnalysis(
            overall_score=overall,
            factor_scores=factor_scores,
            average_response_length=round_int(totals[0] / n),
            strongest_factor=ranked[0].name,
            weakest_factor=ranked[-1].name,
        )

        logger.debug("Depth analysis complete",
                     responses=n,
                     overall=overall,
                     strongest=result.strongest_factor,
                     weakest=result.weakest_factor)
        return result


# Global scorer instance
response_depth_scorer = ResponseDepthScorer()

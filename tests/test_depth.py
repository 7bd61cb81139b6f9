"""Tests for the response depth scorer."""
from oralprep.domain.depth import FACTORS, count_sentences, response_depth_scorer, score_from_range
from oralprep.utils import count_occurrences, round_half_up


def factor_map(result):
    return {factor.name: factor for factor in result.factor_scores}


def test_no_student_messages_scores_zero():
    result = response_depth_scorer.analyze([])

    assert result.overall_score == 0
    assert result.average_response_length == 0
    assert result.strongest_factor == "none"
    assert result.weakest_factor == "none"
    assert [factor.name for factor in result.factor_scores] == [name for name, _, _, _ in FACTORS]


def test_opinion_and_justification_markers():
    result = response_depth_scorer.analyze(["Creo que la cultura es importante porque nos une."])
    factors = factor_map(result)

    assert factors["Word Count"].count == 9
    assert factors["Word Count"].score == 1
    assert factors["Sentences"].score == 0
    assert factors["Opinions"].count == 1
    assert factors["Opinions"].score == 10
    assert factors["Justifications"].count == 1
    assert factors["Justifications"].score == 7
    assert result.strongest_factor == "Opinions"
    # Zero-score ties: the last factor in reporting order is the weakest
    assert result.weakest_factor == "Examples"


def test_overall_score_is_weighted_sum_of_factors():
    messages = [
        "En mi opinión, la fiesta es muy importante. Por ejemplo, mi familia cocina juntos.",
        "Además, creo que ayuda a la comunidad porque todos participan. Sin embargo, es caro.",
    ]
    result = response_depth_scorer.analyze(messages)

    weighted = sum(factor.score * weight for factor, (_, weight, _, _) in zip(result.factor_scores, FACTORS))
    assert result.overall_score == round_half_up(weighted, 1)
    assert 0 <= result.overall_score <= 10


def test_all_zero_scores_rank_in_reporting_order():
    result = response_depth_scorer.analyze(["hola"])

    assert all(factor.score == 0 for factor in result.factor_scores)
    assert result.strongest_factor == "Word Count"
    assert result.weakest_factor == "Justifications"


def test_marker_matches_do_not_overlap_themselves():
    assert count_occurrences("jajaja", ["jaja"]) == 1
    assert count_occurrences("por ejemplo y como por ejemplo", ["por ejemplo", "como por ejemplo"]) == 3


def test_sentence_count_ignores_empty_segments():
    assert count_sentences("¿Qué tal? ¡Muy bien! Gracias...") == 3
    assert count_sentences("...") == 0


def test_score_from_range_is_clamped():
    assert score_from_range(0, 5, 60) == 0
    assert score_from_range(100, 5, 60) == 10
    assert score_from_range(32.5, 5, 60) == 5


def test_analysis_is_repeatable():
    messages = ["Pienso que sí, ya que es parte de nuestra identidad."]
    assert response_depth_scorer.analyze(messages) == response_depth_scorer.analyze(messages)

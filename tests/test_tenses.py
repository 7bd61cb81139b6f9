"""Tests for the Spanish tense classifier."""
import pytest

from oralprep.domain.tenses import ALL_TENSES, IRREGULAR_LOOKUP, TenseClassifier, tense_classifier


def test_irregular_and_conditional_forms_are_classified():
    result = tense_classifier.analyze("Yo soy estudiante. Fui a Madrid. Sería genial.")

    found = {entry.tense: entry for entry in result.tenses_found}
    assert {"present", "preterite", "conditional"} <= set(found)
    assert "soy" in found["present"].examples
    assert found["preterite"].examples == ["fui"]
    assert found["conditional"].examples == ["sería"]
    assert result.missing_tenses == ["imperfect", "future", "subjunctive"]
    assert result.variety_score == 5


def test_equal_counts_keep_first_encountered_tense_dominant():
    assert tense_classifier.analyze("soy fui sería").dominant_tense == "present"
    assert tense_classifier.analyze("sería fui soy").dominant_tense == "conditional"


def test_found_tenses_are_sorted_by_count():
    result = tense_classifier.analyze("hablaba comía vivía soy")

    assert [entry.tense for entry in result.tenses_found] == ["imperfect", "present"]
    assert result.tenses_found[0].count == 3
    assert result.total_tenses_used == 4
    assert result.dominant_tense == "imperfect"


def test_examples_are_unique_and_capped():
    result = tense_classifier.analyze("hablo hablo como bebo vivo")

    present = result.tenses_found[0]
    assert present.count == 5
    assert present.examples == ["hablo", "como", "bebo"]


def test_regular_endings():
    classifier = TenseClassifier()
    assert classifier.classify("hablaré") == "future"
    assert classifier.classify("comería") == "conditional"
    assert classifier.classify("hablara") == "subjunctive"
    assert classifier.classify("hablaron") == "preterite"
    assert classifier.classify("madrid") == ""


def test_punctuation_is_stripped_before_lookup():
    assert TenseClassifier().tokenize("¡Fui, y era feliz!") == ["fui", "y", "era", "feliz"]


def test_empty_text_has_no_tenses():
    result = tense_classifier.analyze("   ")

    assert result.tenses_found == []
    assert result.total_tenses_used == 0
    assert result.variety_score == 0
    assert result.missing_tenses == list(ALL_TENSES)
    assert result.dominant_tense == "none"


def test_all_six_tenses_give_full_variety():
    result = tense_classifier.analyze("soy fui era seré sería sea")
    assert result.variety_score == 10
    assert result.missing_tenses == []


def test_irregular_lookup_is_read_only():
    with pytest.raises(TypeError):
        IRREGULAR_LOOKUP["soy"] = "future"
    assert IRREGULAR_LOOKUP["soy"] == "present"


def test_analysis_is_repeatable():
    text = "Creo que sería mejor si fuéramos juntos."
    assert tense_classifier.analyze(text) == tense_classifier.analyze(text)


def test_first_person_plural_endings_read_as_present():
    result = tense_classifier.analyze("nosotros hablamos y vivimos aqui")

    assert [(entry.tense, entry.examples) for entry in result.tenses_found] == [
        ("present", ["hablamos", "vivimos"]),
    ]
    assert result.dominant_tense == "present"

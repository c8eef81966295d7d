"""Tests for the reading-ease gate."""

import pytest

from app.services.rule_engine.readability import ReadabilityValidator, count_syllables

validator = ReadabilityValidator()


class TestSyllables:
    @pytest.mark.parametrize(
        "word,expected",
        [
            ("you", 1),
            ("aid", 1),
            ("Medicaid.", 3),
            ("before", 2),
            ("the", 1),
            ("eligibility", 6),
            ("$2,100", 1),
        ],
    )
    def test_count(self, word, expected):
        assert count_syllables(word) == expected


class TestScore:
    def test_short_plain_text_is_clamped_to_100(self):
        assert validator.score("You can get aid.") == 100.0

    def test_legal_text_is_clamped_to_0(self):
        text = (
            "Applicants must demonstrate continuous residency and documented "
            "citizenship verification before eligibility determination."
        )
        assert validator.score(text) == 0.0
        assert not validator.passes_target(text)

    @pytest.mark.parametrize(
        "text",
        [
            "You get SSI. You can get Medicaid.",
            "You are pregnant. You can get Medicaid.",
            "Your income is $2,100. You qualify for Medicaid.",
            "You did not meet the income limit. You do not qualify.",
        ],
    )
    def test_plain_explanations_pass(self, text):
        assert validator.passes_target(text)

    def test_known_value(self):
        assert validator.score("You get SSI. You can get Medicaid.") == pytest.approx(94.51, abs=0.01)

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None, "123 456 789"])
    def test_text_without_words_scores_0(self, text):
        assert validator.score(text) == 0.0

    def test_score_is_stable(self):
        text = "You did not meet the income limit. You do not qualify."
        assert validator.score(text) == validator.score(text)

    def test_custom_target(self):
        strict = ReadabilityValidator(target=95.0)
        assert not strict.passes_target("You get SSI. You can get Medicaid.")
        assert strict.passes_target("You can get aid.")


class TestAnalyze:
    def test_reports_counts(self):
        report = validator.analyze("You get SSI. You can get Medicaid.")
        assert report.word_count == 7
        assert report.sentence_count == 2
        assert report.syllable_count == 9
        assert report.average_sentence_length == 3.5
        assert report.average_syllables_per_word == pytest.approx(9 / 7)
        assert report.passes_target
        assert not report.too_complex

    def test_reports_jargon(self):
        report = validator.analyze("Your FPL is low. Your MAGI is low.")
        assert report.jargon_terms == ("MAGI", "FPL")

    def test_long_sentence_is_too_complex(self):
        text = " ".join(["word"] * 25) + "."
        assert validator.analyze(text).too_complex

    def test_empty_text(self):
        report = validator.analyze("")
        assert report.score == 0.0
        assert report.word_count == 0
        assert report.average_word_length == 0.0

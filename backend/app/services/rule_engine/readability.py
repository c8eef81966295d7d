"""Reading-ease scoring used as a quality gate on generated explanations."""

import re
from dataclasses import dataclass
from typing import Tuple

from app.services.rule_engine.glossary import find_forbidden_terms

# Flesch reading ease: 60-70 is plain English, 50-60 fairly difficult
DEFAULT_TARGET = 50.0

MAX_AVERAGE_SENTENCE_LENGTH = 20.0
MAX_AVERAGE_WORD_LENGTH = 6.0

_SENTENCE_END = re.compile(r"[.!?]+")
_VOWEL_GROUP = re.compile(r"[aeiouy]+")
_NON_LETTER = re.compile(r"[^a-z]")


def count_syllables(word: str) -> int:
    """Estimate syllables by counting vowel groups, dropping a silent trailing e."""
    letters = _NON_LETTER.sub("", word.lower())
    count = len(_VOWEL_GROUP.findall(letters))
    if letters.endswith("e") and count > 1:
        count -= 1
    return max(1, count)


def _words(text: str) -> list[str]:
    return [token for token in text.split() if any(char.isalpha() for char in token)]


@dataclass(frozen=True)
class ReadabilityReport:
    """Breakdown of a readability check."""

    score: float
    passes_target: bool
    word_count: int
    sentence_count: int
    syllable_count: int
    average_sentence_length: float
    average_word_length: float
    average_syllables_per_word: float
    jargon_terms: Tuple[str, ...]

    @property
    def too_complex(self) -> bool:
        return (
            self.average_sentence_length > MAX_AVERAGE_SENTENCE_LENGTH
            or self.average_word_length > MAX_AVERAGE_WORD_LENGTH
        )


class ReadabilityValidator:
    """
    Scores text with the Flesch reading-ease formula.

    Higher scores are easier to read. Scores are clamped to 0-100 and empty
    text scores 0. A text passes when its score is at least the target.
    """

    def __init__(self, target: float = DEFAULT_TARGET):
        self.target = target

    def score(self, text: str) -> float:
        if not text or not text.strip():
            return 0.0

        words = _words(text)
        if not words:
            return 0.0

        sentences = max(1, len(_SENTENCE_END.findall(text)))
        syllables = sum(count_syllables(word) for word in words)

        ease = (
            206.835
            - 1.015 * (len(words) / sentences)
            - 84.6 * (syllables / len(words))
        )
        return round(max(0.0, min(100.0, ease)), 2)

    def passes_target(self, text: str) -> bool:
        return self.score(text) >= self.target

    def analyze(self, text: str) -> ReadabilityReport:
        """
        Score text and report the figures behind the score.

        Args:
            text: Text to check

        Returns:
            ReadabilityReport including any forbidden jargon found
        """
        text = text or ""
        words = _words(text)
        sentences = max(1, len(_SENTENCE_END.findall(text)))
        syllables = sum(count_syllables(word) for word in words)
        letters = sum(len(_NON_LETTER.sub("", word.lower())) for word in words)
        score = self.score(text)

        return ReadabilityReport(
            score=score,
            passes_target=score >= self.target,
            word_count=len(words),
            sentence_count=sentences,
            syllable_count=syllables,
            average_sentence_length=len(words) / sentences if words else 0.0,
            average_word_length=letters / len(words) if words else 0.0,
            average_syllables_per_word=syllables / len(words) if words else 0.0,
            jargon_terms=tuple(find_forbidden_terms(text)),
        )

"""Tests for confidence scoring and status bands."""

from __future__ import annotations

from decimal import Decimal

import pytest

from app.core.enums import EligibilityStatus
from app.services.rule_engine.scoring import ConfidenceScoringPolicy

policy = ConfidenceScoringPolicy


class TestBoundaryScores:
    def test_match_with_complete_answers_scores_100(self):
        score = policy.score({"isCitizen": True}, True, referenced_fields=["isCitizen"])
        assert score == 100
        assert policy.status_for(score) == EligibilityStatus.LIKELY

    def test_no_match_scores_50(self):
        score = policy.score({"isCitizen": False}, False, referenced_fields=["isCitizen"])
        assert score == 50
        assert policy.status_for(score) == EligibilityStatus.UNLIKELY

    def test_boundaries_without_referenced_fields(self):
        assert policy.score({"isCitizen": True}, True) == 100
        assert policy.score({"isCitizen": False}, False) == 50


class TestCompleteness:
    def test_fraction_of_referenced_fields(self):
        answers = {"age": 30, "income": None}
        assert policy.completeness(answers, ["age", "income"]) == Decimal("0.5")

    def test_duplicate_fields_count_once(self):
        assert policy.completeness({"age": 30}, ["age", "age", "state"]) == Decimal("0.5")

    def test_no_referenced_fields_is_complete(self):
        assert policy.completeness({}, []) == Decimal("1")

    def test_empty_answers_without_field_list(self):
        assert policy.completeness({}, None) == Decimal("0.5")
        assert policy.completeness({"a": None}, None) == Decimal("0.5")

    def test_partial_data_lowers_a_match(self):
        score = policy.score({"age": 30}, True, referenced_fields=["age", "income"])
        assert score == 50

    def test_match_that_read_a_missing_field_as_false(self):
        score = policy.score(
            {"age": 30}, True, referenced_fields=["age"], used_default=True
        )
        assert score == 90
        assert policy.status_for(score) == EligibilityStatus.LIKELY

    def test_rounds_half_up(self):
        # 100 x 2/3 x 1.0 = 66.67
        score = policy.score({"a": 1, "b": 2}, True, referenced_fields=["a", "b", "c"])
        assert score == 67
        # 100 x 1/8 x 0.5 = 6.25
        answers = {"f1": 1}
        fields = [f"f{i}" for i in range(1, 9)]
        assert policy.score(answers, False, referenced_fields=fields) == 6


class TestStatusBands:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (100, EligibilityStatus.LIKELY),
            (85, EligibilityStatus.LIKELY),
            (84, EligibilityStatus.POSSIBLY),
            (60, EligibilityStatus.POSSIBLY),
            (59, EligibilityStatus.UNLIKELY),
            (0, EligibilityStatus.UNLIKELY),
        ],
    )
    def test_bands(self, score, expected):
        assert policy.status_for(score) == expected

    @pytest.mark.parametrize("score", [-1, 101])
    def test_out_of_range(self, score):
        with pytest.raises(ValueError):
            policy.status_for(score)

    def test_scores_stay_in_range(self):
        for matched in (True, False):
            for used_default in (True, False):
                for answers in ({}, {"a": 1}, {"a": None, "b": 2}):
                    score = policy.score(answers, matched, ["a", "b"], used_default)
                    assert 0 <= score <= 100

"""
Tests for the eligibility evaluator.

Covers:
- Boundary outcomes for a single citizenship rule
- One winner per program and match ordering
- Malformed rules, empty rule lists and cancellation
- The asset test on aged and disabled pathways
- Criteria aggregation for the explanation
"""

from __future__ import annotations

import logging
import threading
from datetime import date

import pytest

from app.core.enums import CriterionStatus, EligibilityStatus, ProgramCategory
from app.core.exceptions import EvaluationCancelledError, RulesUnavailableError
from app.services.rule_engine.base import EvaluationRequest
from app.services.rule_engine.engine import EligibilityEvaluator
from app.services.rule_engine.explanation import NO_CRITERIA_SUMMARY
from app.services.rule_engine.readability import ReadabilityValidator
from tests.factories import CITIZEN_RULE, FIXED_NOW, make_rule, make_rule_set

AGED_RULE = {">=": [{"var": "age"}, 65]}


def _request(answers, jurisdiction_code="TX"):
    return EvaluationRequest(
        jurisdiction_code=jurisdiction_code,
        effective_date=date(2026, 1, 20),
        answers=answers,
    )


class TestCitizenshipRule:
    def test_citizen_is_likely(self, evaluator, rule_set):
        result = evaluator.evaluate(
            _request({"isCitizen": True}), rule_set, [make_rule(CITIZEN_RULE)]
        )

        assert result.confidence_score == 100
        assert result.status == EligibilityStatus.LIKELY
        assert [m.program_code for m in result.matched_programs] == ["PROG_A"]
        assert result.rule_version_used == "2026.1"
        assert result.evaluated_at == FIXED_NOW
        (item,) = result.explanation_items
        assert item.criterion_id == "isCitizen"
        assert item.status == CriterionStatus.MET
        assert item.message == "✓ Citizenship: Requirement met"

    def test_non_citizen_is_unlikely(self, evaluator, rule_set):
        result = evaluator.evaluate(
            _request({"isCitizen": False}), rule_set, [make_rule(CITIZEN_RULE)]
        )

        assert result.confidence_score == 50
        assert result.status == EligibilityStatus.UNLIKELY
        assert result.matched_programs == ()
        (item,) = result.explanation_items
        assert item.status == CriterionStatus.UNMET
        assert "do not appear" in result.explanation

    def test_missing_answer(self, evaluator, rule_set):
        result = evaluator.evaluate(_request({}), rule_set, [make_rule(CITIZEN_RULE)])

        assert result.confidence_score == 0
        assert result.matched_programs == ()
        (item,) = result.explanation_items
        assert item.status == CriterionStatus.MISSING
        assert "need more answers" in result.explanation

    def test_match_explanation_uses_program_name(self, evaluator, rule_set):
        rule = make_rule(CITIZEN_RULE, program_name="Adult Coverage")
        result = evaluator.evaluate(_request({"isCitizen": True}), rule_set, [rule])

        (match,) = result.matched_programs
        assert match.program_name == "Adult Coverage"
        assert match.explanation == "You may qualify for Adult Coverage."

    def test_same_input_same_result(self, evaluator, rule_set):
        rules = [make_rule(CITIZEN_RULE), make_rule(AGED_RULE, "PROG_B", id="rule-2")]
        request = _request({"isCitizen": True, "age": 70})

        assert evaluator.evaluate(request, rule_set, rules) == evaluator.evaluate(
            request, rule_set, rules
        )


class TestProgramWinners:
    def test_highest_priority_rule_wins(self, evaluator, rule_set):
        rules = [
            make_rule({">=": [{"var": "age"}, 19]}, id="rule-low", priority=0),
            make_rule(
                {"or": [{">=": [{"var": "age"}, 19]}, {"var": "income"}]},
                id="rule-high",
                priority=5,
            ),
        ]
        result = evaluator.evaluate(_request({"age": 30}), rule_set, rules)

        (match,) = result.matched_programs
        # Half the fields answered and a missing field read as false
        assert match.confidence_score == 45

    def test_equal_priority_prefers_higher_score(self, evaluator, rule_set):
        rules = [
            make_rule(
                {"or": [{">=": [{"var": "age"}, 19]}, {"var": "income"}]}, id="rule-1"
            ),
            make_rule({">=": [{"var": "age"}, 19]}, id="rule-2"),
        ]
        result = evaluator.evaluate(_request({"age": 30}), rule_set, rules)

        (match,) = result.matched_programs
        assert match.confidence_score == 100

    def test_matches_sorted_by_score_then_code(self, evaluator, rule_set):
        partial = {"or": [{">=": [{"var": "age"}, 19]}, {"var": "income"}]}
        rules = [
            make_rule(partial, "PROG_A", id="rule-1"),
            make_rule({">=": [{"var": "age"}, 19]}, "PROG_C", id="rule-2"),
            make_rule({">=": [{"var": "age"}, 19]}, "PROG_B", id="rule-3"),
        ]
        result = evaluator.evaluate(_request({"age": 30}), rule_set, rules)

        assert [m.program_code for m in result.matched_programs] == ["PROG_B", "PROG_C", "PROG_A"]
        assert result.confidence_score == 100


class TestFailures:
    def test_malformed_rule_becomes_diagnostic(self, evaluator, rule_set):
        rules = [
            make_rule('{"between": [1, 2]}', "PROG_BAD", id="rule-bad"),
            make_rule(CITIZEN_RULE, id="rule-good"),
        ]
        result = evaluator.evaluate(_request({"isCitizen": True}), rule_set, rules)

        assert [m.program_code for m in result.matched_programs] == ["PROG_A"]
        (diagnostic,) = result.diagnostics
        assert "rule-bad" in diagnostic
        assert "PROG_BAD" in diagnostic

    def test_only_malformed_rules(self, evaluator, rule_set):
        result = evaluator.evaluate(
            _request({"isCitizen": True}), rule_set, [make_rule("not json", id="rule-bad")]
        )

        assert result.matched_programs == ()
        assert result.explanation == NO_CRITERIA_SUMMARY
        assert len(result.diagnostics) == 1

    def test_empty_rules(self, evaluator, rule_set):
        with pytest.raises(RulesUnavailableError):
            evaluator.evaluate(_request({}), rule_set, [])

    def test_missing_request_or_rule_set(self, evaluator, rule_set):
        with pytest.raises(ValueError):
            evaluator.evaluate(None, rule_set, [make_rule(CITIZEN_RULE)])
        with pytest.raises(ValueError):
            evaluator.evaluate(_request({}), None, [make_rule(CITIZEN_RULE)])

    def test_cancelled_before_start(self, evaluator, rule_set):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(EvaluationCancelledError):
            evaluator.evaluate(
                _request({"isCitizen": True}), rule_set, [make_rule(CITIZEN_RULE)], cancel
            )

    def test_unset_cancel_event_is_ignored(self, evaluator, rule_set):
        result = evaluator.evaluate(
            _request({"isCitizen": True}),
            rule_set,
            [make_rule(CITIZEN_RULE)],
            threading.Event(),
        )
        assert result.confidence_score == 100


class TestAssetLimit:
    @pytest.fixture()
    def aged_rule(self):
        return make_rule(
            AGED_RULE,
            "AGED",
            program_name="Aged Coverage",
            category=ProgramCategory.NON_MAGI_AGED,
        )

    def test_assets_over_limit_demote_the_match(self, evaluator, rule_set, aged_rule):
        result = evaluator.evaluate(
            _request({"age": 70, "assets_cents": 500_000}), rule_set, [aged_rule]
        )

        assert result.matched_programs == ()
        assert result.status == EligibilityStatus.UNLIKELY
        assert result.disqualifying_factors == (
            "Aged Coverage: your assets of $5,000.00 are over the $2,000.00 limit.",
        )
        statuses = {item.criterion_id: item.status for item in result.explanation_items}
        assert statuses == {"age": CriterionStatus.MET, "asset_limit": CriterionStatus.UNMET}

    def test_demoted_program_does_not_override_a_surviving_match(
        self, evaluator, rule_set, aged_rule
    ):
        adult_rule = make_rule(CITIZEN_RULE, "ADULT", id="rule-2", program_name="Adult Coverage")

        result = evaluator.evaluate(
            _request({"age": 70, "assets_cents": 500_000, "isCitizen": True}),
            rule_set,
            [aged_rule, adult_rule],
        )

        assert result.status == EligibilityStatus.LIKELY
        assert [m.program_code for m in result.matched_programs] == ["ADULT"]
        assert result.explanation.startswith("You appear to be eligible.")
        assert "do not appear to qualify" not in result.explanation
        assert result.disqualifying_factors == (
            "Aged Coverage: your assets of $5,000.00 are over the $2,000.00 limit.",
        )

    def test_assets_under_limit(self, evaluator, rule_set, aged_rule):
        result = evaluator.evaluate(
            _request({"age": 70, "assets_cents": 100_000}), rule_set, [aged_rule]
        )
        assert [m.program_code for m in result.matched_programs] == ["AGED"]
        assert result.disqualifying_factors == ()

    def test_no_assets_reported(self, evaluator, rule_set, aged_rule):
        result = evaluator.evaluate(_request({"age": 70}), rule_set, [aged_rule])
        assert len(result.matched_programs) == 1

    def test_unknown_state_is_not_tested(self, evaluator, aged_rule):
        rule_set = make_rule_set(jurisdiction_code="WA")
        result = evaluator.evaluate(
            _request({"age": 70, "assets_cents": 9_000_000}, "WA"), rule_set, [aged_rule]
        )
        assert len(result.matched_programs) == 1

    def test_other_categories_are_not_tested(self, evaluator, rule_set):
        rule = make_rule(AGED_RULE, category=ProgramCategory.MAGI)
        result = evaluator.evaluate(
            _request({"age": 70, "assets_cents": 9_000_000}), rule_set, [rule]
        )
        assert len(result.matched_programs) == 1

    def test_unusable_assets_become_diagnostic(self, evaluator, rule_set, aged_rule):
        result = evaluator.evaluate(
            _request({"age": 70, "assets_cents": "lots"}), rule_set, [aged_rule]
        )
        assert len(result.matched_programs) == 1
        assert any("AssetLimitFilter" in d for d in result.diagnostics)

    def test_filters_can_be_disabled(self, rule_set, aged_rule):
        evaluator = EligibilityEvaluator(secondary_filters=[])
        result = evaluator.evaluate(
            _request({"age": 70, "assets_cents": 9_000_000}), rule_set, [aged_rule]
        )
        assert len(result.matched_programs) == 1


class TestCriteria:
    def test_unused_or_branch_is_not_unmet(self, evaluator, rule_set):
        rule = make_rule({"or": [CITIZEN_RULE, AGED_RULE]})
        result = evaluator.evaluate(_request({"isCitizen": True, "age": 30}), rule_set, [rule])

        assert [(i.criterion_id, i.status) for i in result.explanation_items] == [
            ("isCitizen", CriterionStatus.MET)
        ]

    def test_missing_outranks_met(self, evaluator, rule_set):
        rules = [
            make_rule({"or": [CITIZEN_RULE, {"var": "income"}]}, "PROG_A", id="rule-1"),
            make_rule({"!": {"var": "income"}}, "PROG_B", id="rule-2"),
        ]
        result = evaluator.evaluate(_request({"isCitizen": True}), rule_set, rules)

        statuses = {item.criterion_id: item.status for item in result.explanation_items}
        assert statuses["income"] == CriterionStatus.MISSING

    def test_non_match_reports_every_criterion(self, evaluator, rule_set):
        rule = make_rule({"and": [CITIZEN_RULE, AGED_RULE]})
        result = evaluator.evaluate(_request({"isCitizen": True, "age": 30}), rule_set, [rule])

        statuses = {item.criterion_id: item.status for item in result.explanation_items}
        assert statuses == {"isCitizen": CriterionStatus.MET, "age": CriterionStatus.UNMET}


class TestExtras:
    def test_pathways(self, evaluator, rule_set):
        result = evaluator.evaluate(
            _request({"age": 70, "isCitizen": True}), rule_set, [make_rule(CITIZEN_RULE)]
        )
        assert result.pathways == ("NonMAGI_Aged",)

    def test_answers_are_not_mutated(self, evaluator, rule_set):
        answers = {"isCitizen": True}
        evaluator.evaluate(_request(answers), rule_set, [make_rule(CITIZEN_RULE)])
        assert answers == {"isCitizen": True}

    def test_low_readability_is_logged(self, rule_set, caplog):
        evaluator = EligibilityEvaluator(readability_validator=ReadabilityValidator(target=101))
        with caplog.at_level(logging.WARNING, logger="app.services.rule_engine.engine"):
            evaluator.evaluate(_request({"isCitizen": True}), rule_set, [make_rule(CITIZEN_RULE)])
        assert "reading ease" in caplog.text

    def test_parsed_rules_are_cached(self, evaluator, rule_set):
        rules = [make_rule(CITIZEN_RULE)]
        evaluator.evaluate(_request({"isCitizen": True}), rule_set, rules)
        evaluator.evaluate(_request({"isCitizen": False}), rule_set, rules)
        assert len(evaluator.expression_cache) == 1

"""Shared fixtures for eligibility engine tests."""

from __future__ import annotations

import pytest

from app.services.rule_engine.base import RuleSetVersionSnapshot
from app.services.rule_engine.engine import EligibilityEvaluator
from tests.factories import FIXED_NOW, make_rule_set


@pytest.fixture()
def rule_set() -> RuleSetVersionSnapshot:
    return make_rule_set()


@pytest.fixture()
def evaluator() -> EligibilityEvaluator:
    return EligibilityEvaluator(clock=lambda: FIXED_NOW)

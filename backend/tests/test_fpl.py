"""Tests for poverty level arithmetic."""

from decimal import Decimal

import pytest

from app.services.rule_engine.fpl import FplCalculator


class TestThresholds:
    def test_138_percent(self):
        assert FplCalculator.calculate_threshold(1_565_000, 138) == 2_159_700

    def test_rounds_half_up(self):
        # 333 x 150% = 499.5
        assert FplCalculator.calculate_threshold(333, 150) == 500

    def test_zero_percent(self):
        assert FplCalculator.calculate_threshold(1_565_000, 0) == 0

    @pytest.mark.parametrize("amount,percentage", [(-1, 100), (100, -1), (100, 1001)])
    def test_invalid_inputs(self, amount, percentage):
        with pytest.raises(ValueError):
            FplCalculator.calculate_threshold(amount, percentage)

    def test_monthly(self):
        assert FplCalculator.monthly_threshold(2_159_700) == 179_975


class TestHouseholdSize:
    @pytest.mark.parametrize("size", [1, 8, 50])
    def test_valid(self, size):
        FplCalculator.validate_household_size(size)

    @pytest.mark.parametrize("size", [0, -3, 51, True, 2.5, "4"])
    def test_invalid(self, size):
        with pytest.raises(ValueError):
            FplCalculator.validate_household_size(size)

    def test_extends_past_eight(self):
        assert FplCalculator.extend_for_large_household(5_000_000, 4_500_000, 10) == 6_000_000

    def test_extend_rejects_table_sizes(self):
        with pytest.raises(ValueError):
            FplCalculator.extend_for_large_household(5_000_000, 4_500_000, 8)


class TestPercentOfFpl:
    def test_two_decimal_places(self):
        assert FplCalculator.percent_of_fpl(2_000_000, 1_565_000) == Decimal("127.80")

    def test_exact(self):
        assert FplCalculator.percent_of_fpl(1_565_000, 1_565_000) == Decimal("100.00")

    def test_zero_poverty_amount(self):
        assert FplCalculator.percent_of_fpl(1_000, 0) is None

    def test_negative_income(self):
        with pytest.raises(ValueError):
            FplCalculator.percent_of_fpl(-1, 1_565_000)

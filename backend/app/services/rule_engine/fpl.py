"""Federal poverty level arithmetic."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

MIN_HOUSEHOLD_SIZE = 1
MAX_HOUSEHOLD_SIZE = 50
# Poverty tables publish sizes 1-8; larger households extend the size-8 amount
MAX_TABLE_HOUSEHOLD_SIZE = 8
MAX_PERCENTAGE = 1000


class FplCalculator:
    """Income thresholds and percentages against the poverty table."""

    @staticmethod
    def validate_household_size(household_size: int) -> None:
        if isinstance(household_size, bool) or not isinstance(household_size, int):
            raise ValueError("Household size must be a whole number")
        if not MIN_HOUSEHOLD_SIZE <= household_size <= MAX_HOUSEHOLD_SIZE:
            raise ValueError(
                f"Household size must be between {MIN_HOUSEHOLD_SIZE} and {MAX_HOUSEHOLD_SIZE}"
            )

    @staticmethod
    def calculate_threshold(fpl_amount_cents: int, percentage: int) -> int:
        """
        Income threshold at a percentage of the poverty level.

        Args:
            fpl_amount_cents: Annual poverty level in cents
            percentage: Percentage of the poverty level (138 for 138%)

        Returns:
            Annual threshold in cents, rounded half up

        Raises:
            ValueError: If the amount is negative or the percentage is out of range
        """
        if fpl_amount_cents < 0:
            raise ValueError("Poverty level amount must not be negative")
        if percentage < 0 or percentage > MAX_PERCENTAGE:
            raise ValueError(f"Percentage must be between 0 and {MAX_PERCENTAGE}")

        threshold = Decimal(fpl_amount_cents) * Decimal(percentage) / Decimal(100)
        return int(threshold.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @staticmethod
    def monthly_threshold(annual_threshold_cents: int) -> int:
        return int(
            (Decimal(annual_threshold_cents) / Decimal(12)).quantize(
                Decimal("1"), rounding=ROUND_HALF_UP
            )
        )

    @staticmethod
    def extend_for_large_household(
        size_eight_cents: int,
        size_seven_cents: int,
        household_size: int,
    ) -> int:
        """
        Poverty level for households larger than the published table.

        Each person beyond eight adds the difference between the size-8 and
        size-7 amounts.
        """
        FplCalculator.validate_household_size(household_size)
        if household_size <= MAX_TABLE_HOUSEHOLD_SIZE:
            raise ValueError("Only households larger than eight need extending")
        increment = size_eight_cents - size_seven_cents
        return size_eight_cents + (household_size - MAX_TABLE_HOUSEHOLD_SIZE) * increment

    @staticmethod
    def percent_of_fpl(annual_income_cents: int, fpl_amount_cents: int) -> Optional[Decimal]:
        """
        Household income as a percentage of the poverty level, to two places.

        Returns None when the poverty amount is not positive.
        """
        if fpl_amount_cents <= 0:
            return None
        if annual_income_cents < 0:
            raise ValueError("Income must not be negative")
        percent = Decimal(annual_income_cents) * Decimal(100) / Decimal(fpl_amount_cents)
        return percent.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

"""Repository for poverty level reference data."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.domain.eligibility import FederalPovertyLevel
from app.repositories.base import BaseRepository


class FederalPovertyLevelRepository(BaseRepository[FederalPovertyLevel]):
    """Repository for FederalPovertyLevel rows."""

    def __init__(self, db: AsyncSession):
        super().__init__(FederalPovertyLevel, db)

    async def get_for_household(
        self,
        year: int,
        household_size: int,
        jurisdiction_code: Optional[str] = None,
    ) -> Optional[FederalPovertyLevel]:
        """
        Retrieve the poverty level for a year and household size.

        A jurisdiction-specific row is preferred; otherwise the baseline row
        (no jurisdiction) is returned.

        Args:
            year: Guideline year
            household_size: Number of people in the household (1-8)
            jurisdiction_code: Optional two-letter code

        Returns:
            The matching row, or None if the table has no entry
        """
        if jurisdiction_code:
            stmt = select(FederalPovertyLevel).where(
                FederalPovertyLevel.year == year,
                FederalPovertyLevel.household_size == household_size,
                FederalPovertyLevel.jurisdiction_code == jurisdiction_code,
            )
            specific = await self._first(stmt)
            if specific is not None:
                return specific

        stmt = select(FederalPovertyLevel).where(
            FederalPovertyLevel.year == year,
            FederalPovertyLevel.household_size == household_size,
            FederalPovertyLevel.jurisdiction_code.is_(None),
        )
        return await self._first(stmt)

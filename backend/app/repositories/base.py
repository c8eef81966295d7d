from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import BaseModel

# Type variable for the model class
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository for read-only reference data.

    The eligibility engine never writes rule data, so repositories only
    expose query helpers that subclasses build their statements on.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize the repository.

        Args:
            model: The SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def _all(self, stmt: Any) -> List[ModelType]:
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _first(self, stmt: Any) -> Optional[ModelType]:
        result = await self.db.execute(stmt)
        return result.scalars().first()

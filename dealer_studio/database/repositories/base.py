"""Base repository implementation for database operations.

This module provides a generic repository pattern implementation with common
database operations that can be inherited by specific repositories.

Features:
- Generic CRUD operations
- Type-safe queries
- Ordered listing
"""

from typing import Any, Generic, List, Optional, Type, TypeVar, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealer_studio.core.logging import get_logger
from dealer_studio.models.database.base import Base

# Type variable for models
ModelType = TypeVar("ModelType", bound=Base)
logger = get_logger(__name__)


class BaseRepository(Generic[ModelType]):
    """Base repository providing common database operations."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """Initialize repository with model and session.

        Args:
            model: SQLAlchemy model class
            session: AsyncSession instance
        """
        self.model = model
        self.session = session

    async def create(self, **kwargs) -> ModelType:
        """Create a new record.

        Args:
            **kwargs: Model field values

        Returns:
            Created model instance
        """
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()
            return instance
        except Exception as e:
            logger.error(f"Create failed for {self.model.__name__}", error=e)
            raise

    async def get(self, id: Any) -> Optional[ModelType]:
        """Get record by ID.

        Args:
            id: Record ID

        Returns:
            Model instance if found, None otherwise
        """
        try:
            query = select(self.model).where(self.model.id == id)
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Get failed for {self.model.__name__}", error=e)
            raise

    async def get_multi(
        self,
        *,
        order_by: Optional[List[Union[str, tuple]]] = None
    ) -> List[ModelType]:
        """Get all records in the requested order.

        Args:
            order_by: Field names, or (field, "asc"|"desc") tuples

        Returns:
            List of model instances
        """
        try:
            query = select(self.model)

            for field in order_by or []:
                if isinstance(field, tuple):
                    field_name, direction = field
                    query = query.order_by(
                        getattr(getattr(self.model, field_name), direction)()
                    )
                else:
                    query = query.order_by(getattr(self.model, field))

            result = await self.session.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Get multi failed for {self.model.__name__}", error=e)
            raise

    async def upsert(self, id: Any, **kwargs) -> ModelType:
        """Insert the record, or overwrite the given fields if it exists.

        Args:
            id: Record ID
            **kwargs: Field values

        Returns:
            Persisted model instance
        """
        try:
            instance = await self.get(id)
            if instance is None:
                return await self.create(id=id, **kwargs)
            for field, value in kwargs.items():
                setattr(instance, field, value)
            await self.session.flush()
            return instance
        except Exception as e:
            logger.error(f"Upsert failed for {self.model.__name__}", error=e)
            raise

    async def delete(self, id: Any) -> bool:
        """Delete a record by ID.

        Args:
            id: Record ID

        Returns:
            True if record was deleted, False otherwise
        """
        try:
            query = delete(self.model).where(self.model.id == id)
            result = await self.session.execute(query)
            return result.rowcount > 0
        except Exception as e:
            logger.error(f"Delete failed for {self.model.__name__}", error=e)
            raise

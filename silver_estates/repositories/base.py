"""
Base repository class with common table operations using async SQLAlchemy.
Mirrors the remote store contract: query with equality filters, fetch by id, insert, delete.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from silver_estates.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing the common table operations.
    Every write commits immediately and rolls back on failure.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    def _column(self, name: str):
        if name not in self.model.__table__.columns:
            raise ValueError(f"Unknown column '{name}' on {self.model.__tablename__}")
        return getattr(self.model, name)

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Created model instance
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.commit()
            await self.db.refresh(db_obj)
            logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Get a record by its ID.

        Returns:
            Model instance if found, None otherwise
        """
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        obj = result.scalar_one_or_none()

        if obj is None:
            logger.debug(f"{self.model.__name__} with id {id} not found")

        return obj

    async def get_multi(
        self,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[ModelType]:
        """
        Get records matching equality filters.

        Args:
            filters: Column name to required value
            order_by: Column name, optionally suffixed with '.desc' or '.asc'
            limit: Maximum number of records to return

        Returns:
            List of model instances; insertion order when no ordering is given

        Raises:
            ValueError: If a filter or order column does not exist
        """
        query = select(self.model)

        for field, value in (filters or {}).items():
            query = query.where(self._column(field) == value)

        if order_by:
            field_name, _, direction = order_by.partition(".")
            column = self._column(field_name)
            query = query.order_by(column.desc() if direction == "desc" else column.asc())
        else:
            query = query.order_by(self.model.created_at.asc())

        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        objects = list(result.scalars().all())

        logger.debug(f"Retrieved {len(objects)} {self.model.__name__} records")
        return objects

    async def get_by_field(self, field: str, value: Any) -> Optional[ModelType]:
        """Get a single record by a specific field value."""
        result = await self.db.execute(select(self.model).where(self._column(field) == value))
        return result.scalar_one_or_none()

    async def delete(self, id: uuid.UUID) -> bool:
        """
        Delete a record by its ID.

        Returns:
            True if record was deleted, False if not found
        """
        try:
            result = await self.db.execute(delete(self.model).where(self.model.id == id))
            await self.db.commit()

            deleted = result.rowcount > 0
            if deleted:
                logger.debug(f"Deleted {self.model.__name__} with id: {id}")
            return deleted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete {self.model.__name__} {id}: {e}")
            raise
